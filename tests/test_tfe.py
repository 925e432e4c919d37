"""Tests for pkg.runtasks.tfe — run task payloads, plan fetch, callback."""
from __future__ import annotations

import json
from urllib import error

import pytest

from pkg.runtasks.errors import DependencyError, PlanValidationError
from pkg.runtasks.tfe import RunTaskRequest, TFEClient, task_result_payload


class _ContextResponse:
    def __init__(self, status: int, body: bytes = b""):
        self.status = status
        self._body = body

    def read(self, _size: int = -1) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *_args):
        return None


class RecordingOpener:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, req, timeout):
        self.requests.append((req, timeout))
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response


class TestRunTaskRequest:
    def test_from_dict(self):
        req = RunTaskRequest.from_dict(
            {
                "payload_version": 1,
                "access_token": "tok",
                "run_id": "run-1",
                "plan_json_api_url": "https://app.terraform.io/api/v2/plans/plan-1/json-output",
                "task_result_callback_url": "https://app.terraform.io/api/v2/task-results/tr-1/callback",
                "vcs_pull_request_url": "https://github.com/org/repo/pull/3",
                "organization_name": "acme",
                "is_speculative": True,
            }
        )
        assert req.access_token == "tok"
        assert req.run_id == "run-1"
        assert req.vcs_pull_request_url == "https://github.com/org/repo/pull/3"
        assert req.vcs_commit_url == ""
        assert req.organization_name == "acme"
        assert not req.is_verification

    def test_verification_request(self):
        assert RunTaskRequest.from_dict({"access_token": "test-token"}).is_verification

    def test_rejects_non_object(self):
        with pytest.raises(ValueError, match="object"):
            RunTaskRequest.from_dict([1, 2])

    def test_rejects_non_string_field(self):
        with pytest.raises(ValueError, match="run_id"):
            RunTaskRequest.from_dict({"access_token": "tok", "run_id": 5})


def test_task_result_payload_shape():
    assert task_result_payload("done") == {
        "data": {"type": "task-results", "attributes": {"status": "passed", "message": "done"}}
    }


class TestFetchPlan:
    def test_fetches_and_validates(self, sample_plan_raw):
        opener = RecordingOpener(_ContextResponse(200, json.dumps(sample_plan_raw).encode()))
        plan = TFEClient(timeout_seconds=3, opener=opener).fetch_plan("https://tfe.test/plan", "tok")
        assert len(plan.resource_changes) == 4
        req, timeout = opener.requests[0]
        assert req.get_method() == "GET"
        assert req.get_header("Authorization") == "Bearer tok"
        assert timeout == 3

    def test_invalid_json(self):
        opener = RecordingOpener(_ContextResponse(200, b"<html>"))
        with pytest.raises(PlanValidationError, match="not valid JSON"):
            TFEClient(opener=opener).fetch_plan("https://tfe.test/plan", "tok")

    def test_invalid_plan_shape(self):
        opener = RecordingOpener(_ContextResponse(200, b'{"resource_changes": []}'))
        with pytest.raises(PlanValidationError, match="format_version"):
            TFEClient(opener=opener).fetch_plan("https://tfe.test/plan", "tok")

    def test_http_error(self):
        exc = error.HTTPError("https://tfe.test/plan", 404, "Not Found", hdrs=None, fp=None)
        with pytest.raises(DependencyError, match="404"):
            TFEClient(opener=RecordingOpener(exc)).fetch_plan("https://tfe.test/plan", "tok")

    def test_transport_error(self):
        opener = RecordingOpener(error.URLError("timed out"))
        with pytest.raises(DependencyError, match="timed out"):
            TFEClient(opener=opener).fetch_plan("https://tfe.test/plan", "tok")

    def test_non_2xx_status(self):
        opener = RecordingOpener(_ContextResponse(302, b""))
        with pytest.raises(DependencyError, match="302"):
            TFEClient(opener=opener).fetch_plan("https://tfe.test/plan", "tok")


class TestSendCallback:
    def test_patches_task_result(self):
        opener = RecordingOpener(_ContextResponse(200, b""))
        TFEClient(opener=opener).send_callback("https://tfe.test/callback", "tok", "all good")
        req, _ = opener.requests[0]
        assert req.get_method() == "PATCH"
        assert req.get_header("Content-type") == "application/vnd.api+json"
        assert req.get_header("Authorization") == "Bearer tok"
        assert json.loads(req.data) == task_result_payload("all good")

    def test_failure_raises(self):
        opener = RecordingOpener(_ContextResponse(500, b""))
        with pytest.raises(DependencyError, match="send callback"):
            TFEClient(opener=opener).send_callback("https://tfe.test/callback", "tok", "msg")
