"""Terraform Cloud/Enterprise run task payloads and HTTP calls.

https://developer.hashicorp.com/terraform/cloud-docs/integrations/run-tasks#integration-details
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable
from urllib import error
from urllib import request

from .errors import DependencyError, PlanValidationError
from .plan import Plan, parse_plan

HttpOpen = Callable[[request.Request, float], Any]

VERIFICATION_TOKEN = "test-token"
CALLBACK_CONTENT_TYPE = "application/vnd.api+json"
TASK_RESULT_PASSED = "passed"


def _str_field(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass(frozen=True)
class RunTaskRequest:
    """Fields of the run task webhook payload the service uses."""
    access_token: str
    run_id: str = ""
    stage: str = ""
    plan_json_api_url: str = ""
    run_app_url: str = ""
    task_result_callback_url: str = ""
    vcs_commit_url: str = ""
    vcs_pull_request_url: str = ""
    workspace_name: str = ""
    # Carried through for log context only.
    organization_name: str = ""

    @property
    def is_verification(self) -> bool:
        """TFC sends a request with a fixed token when the run task is registered."""
        return self.access_token == VERIFICATION_TOKEN

    @classmethod
    def from_dict(cls, raw: Any) -> "RunTaskRequest":
        if not isinstance(raw, dict):
            raise ValueError("run task payload must be an object")
        return cls(
            access_token=_str_field(raw, "access_token"),
            run_id=_str_field(raw, "run_id"),
            stage=_str_field(raw, "stage"),
            plan_json_api_url=_str_field(raw, "plan_json_api_url"),
            run_app_url=_str_field(raw, "run_app_url"),
            task_result_callback_url=_str_field(raw, "task_result_callback_url"),
            vcs_commit_url=_str_field(raw, "vcs_commit_url"),
            vcs_pull_request_url=_str_field(raw, "vcs_pull_request_url"),
            workspace_name=_str_field(raw, "workspace_name"),
            organization_name=str(raw.get("organization_name") or ""),
        )


def task_result_payload(message: str, status: str = TASK_RESULT_PASSED) -> dict[str, Any]:
    return {
        "data": {
            "type": "task-results",
            "attributes": {"status": status, "message": message},
        }
    }


def _default_opener(req: request.Request, timeout_seconds: float) -> Any:
    return request.urlopen(req, timeout=timeout_seconds)


@dataclass
class TFEClient:
    """Data class for TFE Client."""
    timeout_seconds: float = 10
    opener: HttpOpen | None = None

    def _send(self, req: request.Request, what: str) -> bytes:
        opener = self.opener or _default_opener
        try:
            with opener(req, self.timeout_seconds) as response:
                status = int(getattr(response, "status", 0))
                body = response.read()
        except error.HTTPError as exc:
            raise DependencyError(f"{what}: unexpected status was returned: {exc.code}") from exc
        except error.URLError as exc:
            raise DependencyError(f"{what}: {exc.reason}") from exc
        except (OSError, ValueError) as exc:
            raise DependencyError(f"{what}: {exc}") from exc

        if status < 200 or status >= 300:
            raise DependencyError(f"{what}: unexpected status was returned: {status}")
        return body if isinstance(body, bytes) else str(body or "").encode()

    def fetch_plan(self, url: str, token: str) -> Plan:
        """Download and validate the JSON plan for a run."""
        req = request.Request(url, method="GET", headers={"Authorization": f"Bearer {token}"})
        body = self._send(req, "fetch plan")
        try:
            raw = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PlanValidationError(f"plan is not valid JSON: {exc}") from exc
        return parse_plan(raw)

    def send_callback(self, url: str, token: str, message: str) -> None:
        """Report the task result back to TFC/E."""
        data = json.dumps(task_result_payload(message)).encode()
        req = request.Request(
            url,
            data=data,
            method="PATCH",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": CALLBACK_CONTENT_TYPE,
            },
        )
        self._send(req, "send callback")
