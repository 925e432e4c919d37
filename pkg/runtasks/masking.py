"""Redact sensitive values in plan value trees.

Terraform ships a ``*_sensitive`` tree next to every ``before``/``after``
value. Its shape follows the value tree: ``true`` marks a sensitive leaf,
a list of booleans marks elements of a list-valued attribute, and nested
objects mirror nested blocks.
"""

from __future__ import annotations

from typing import Any

MASKED_VALUE = "Sensitive value"


def _is_flagged(marker: Any) -> bool:
    return marker is True


def _mask_list(value: Any, marker: list[Any]) -> Any:
    # Partial redaction of list elements is not supported: one flagged
    # element hides the whole attribute.
    if not isinstance(value, list):
        return value
    if any(_is_flagged(item) for item in marker):
        return MASKED_VALUE
    return value


def _mask_mapping(value: Any, marker: dict[str, Any]) -> Any:
    if not isinstance(value, dict):
        return value
    masked = dict(value)
    for key, nested_value in value.items():
        if key not in marker:
            continue
        masked[key] = mask_sensitive_values(nested_value, marker[key])
    return masked


def mask_sensitive_values(value: Any, sensitive: Any) -> Any:
    """Return a copy of ``value`` with sensitive positions replaced.

    The input tree is never mutated. Marker/value shape mismatches leave the
    value untouched.
    """
    if isinstance(sensitive, bool):
        if sensitive and value is not None:
            return MASKED_VALUE
        return value
    if isinstance(sensitive, dict):
        return _mask_mapping(value, sensitive)
    if isinstance(sensitive, list):
        return _mask_list(value, sensitive)
    return value
