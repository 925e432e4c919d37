"""Typed view of the Terraform JSON plan representation.

Only the parts the comment renderer consumes are modeled:
``resource_changes`` and ``output_changes``. Parsing validates the shape
and raises PlanValidationError on anything unexpected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import PlanValidationError

SUPPORTED_FORMAT_MAJOR = "1"


@dataclass(frozen=True)
class Change:
    """Before/after detail of a planned resource change."""
    actions: tuple[str, ...]
    before: Any = None
    after: Any = None
    before_sensitive: Any = None
    after_sensitive: Any = None
    importing: dict[str, Any] | None = None

    @property
    def is_import(self) -> bool:
        return self.importing is not None


@dataclass(frozen=True)
class ResourceChange:
    address: str
    type: str
    name: str
    change: Change | None = None


@dataclass(frozen=True)
class OutputChange:
    actions: tuple[str, ...]
    before: Any = None
    after: Any = None
    before_sensitive: Any = None
    after_sensitive: Any = None


@dataclass(frozen=True)
class Plan:
    format_version: str
    resource_changes: tuple[ResourceChange, ...] = ()
    output_changes: dict[str, OutputChange] = field(default_factory=dict)


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise PlanValidationError(f"{ctx}: expected object")
    return value


def _require_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str):
        raise PlanValidationError(f"{ctx}: expected string")
    return value


def _optional_str(value: Any, ctx: str) -> str:
    if value is None:
        return ""
    return _require_str(value, ctx)


def _parse_actions(value: Any, ctx: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise PlanValidationError(f"{ctx}: expected non-empty list of actions")
    return tuple(_require_str(item, f"{ctx}[{idx}]") for idx, item in enumerate(value))


def _parse_change(raw: Any, ctx: str) -> Change:
    data = _require_mapping(raw, ctx)
    importing = data.get("importing")
    if importing is not None:
        importing = _require_mapping(importing, f"{ctx}.importing")
    return Change(
        actions=_parse_actions(data.get("actions"), f"{ctx}.actions"),
        before=data.get("before"),
        after=data.get("after"),
        before_sensitive=data.get("before_sensitive"),
        after_sensitive=data.get("after_sensitive"),
        importing=importing,
    )


def _parse_resource_change(raw: Any, ctx: str) -> ResourceChange:
    data = _require_mapping(raw, ctx)
    address = _require_str(data.get("address"), f"{ctx}.address")
    if not address:
        raise PlanValidationError(f"{ctx}.address: must be non-empty")
    change = data.get("change")
    return ResourceChange(
        address=address,
        type=_optional_str(data.get("type"), f"{ctx}.type"),
        name=_optional_str(data.get("name"), f"{ctx}.name"),
        change=None if change is None else _parse_change(change, f"{ctx}.change"),
    )


def _parse_output_change(raw: Any, ctx: str) -> OutputChange:
    data = _require_mapping(raw, ctx)
    return OutputChange(
        actions=_parse_actions(data.get("actions"), f"{ctx}.actions"),
        before=data.get("before"),
        after=data.get("after"),
        before_sensitive=data.get("before_sensitive"),
        after_sensitive=data.get("after_sensitive"),
    )


def _validate_format_version(value: Any) -> str:
    if value is None:
        raise PlanValidationError("format_version: missing")
    version = _require_str(value, "format_version").strip()
    if version.split(".", 1)[0] != SUPPORTED_FORMAT_MAJOR:
        raise PlanValidationError(f"format_version: unsupported plan format version {version!r}")
    return version


def parse_plan(raw: Any) -> Plan:
    """Validate a decoded plan document and build a Plan."""
    data = _require_mapping(raw, "plan")
    format_version = _validate_format_version(data.get("format_version"))

    raw_resources = data.get("resource_changes")
    if raw_resources is None:
        raw_resources = []
    if not isinstance(raw_resources, list):
        raise PlanValidationError("resource_changes: expected list")
    resources = tuple(
        _parse_resource_change(item, f"resource_changes[{idx}]")
        for idx, item in enumerate(raw_resources)
    )

    raw_outputs = data.get("output_changes")
    raw_outputs = {} if raw_outputs is None else _require_mapping(raw_outputs, "output_changes")
    outputs = {
        _require_str(name, "output_changes key"): _parse_output_change(item, f"output_changes.{name}")
        for name, item in raw_outputs.items()
    }

    addresses = [rc.address for rc in resources]
    if len(set(addresses)) != len(addresses):
        raise PlanValidationError("resource_changes: duplicate resource address")

    return Plan(format_version=format_version, resource_changes=resources, output_changes=outputs)
