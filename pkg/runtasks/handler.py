"""HTTP entry point for run task webhooks."""

from __future__ import annotations

import hashlib
import hmac
import json
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler

from . import log
from .errors import RunTaskError
from .service import RunTaskService
from .tfe import RunTaskRequest

SIGNATURE_HEADER = "X-TFC-Task-Signature"


def compute_signature(key: str, body: bytes) -> str:
    return hmac.new(key.encode(), body, hashlib.sha512).hexdigest()


def verify_signature(key: str, body: bytes, signature: str | None) -> bool:
    """Check the hex HMAC-SHA512 TFC sends for the raw request body."""
    if not signature:
        return False
    # Headers arrive latin-1 decoded; compare_digest rejects non-ASCII str.
    expected = compute_signature(key, body).encode()
    return hmac.compare_digest(expected, signature.strip().lower().encode("latin-1", "replace"))


def parse_content_length(value: str | None) -> int | None:
    """Content-Length as a non-negative int; None when the header is malformed."""
    if value is None or not value.strip():
        return 0
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def handle_webhook(
    service: RunTaskService,
    hmac_key: str,
    method: str,
    body: bytes,
    signature: str | None,
) -> tuple[int, str]:
    """Validate and process one webhook request; returns (status, message)."""
    if not verify_signature(hmac_key, body, signature):
        log.error(f"Invalid {SIGNATURE_HEADER.lower()} value: {signature}. Please check your HMAC Key")
        return HTTPStatus.BAD_REQUEST, "invalid request"

    if method != "POST":
        log.error(f"This method is not allowed: {method}. Expected: POST.")
        return HTTPStatus.METHOD_NOT_ALLOWED, "method not allowed"

    try:
        req = RunTaskRequest.from_dict(json.loads(body.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError, ValueError) as exc:
        log.error(f"Failed to unmarshal request: {exc}")
        return HTTPStatus.BAD_REQUEST, "invalid request"

    try:
        service.handle(req)
    except RunTaskError as exc:
        log.error(f"run {req.run_id or '<unknown>'} failed: {type(exc).__name__}: {exc}")
        return HTTPStatus.INTERNAL_SERVER_ERROR, "internal server error"
    return HTTPStatus.OK, "ok"


class RunTaskHandler(BaseHTTPRequestHandler):
    """Request handler; ``service`` and ``hmac_key`` are bound by make_handler."""

    service: RunTaskService
    hmac_key: str = ""

    def _dispatch(self) -> None:
        length = parse_content_length(self.headers.get("Content-Length"))
        if length is None:
            log.error(f"Failed to load request: invalid Content-Length: {self.headers.get('Content-Length')}")
            self._respond(HTTPStatus.BAD_REQUEST, "invalid request")
            return
        body = self.rfile.read(length) if length > 0 else b""
        status, message = handle_webhook(
            self.service,
            self.hmac_key,
            self.command,
            body,
            self.headers.get(SIGNATURE_HEADER),
        )
        self._respond(status, message)

    def _respond(self, status: int, message: str) -> None:
        payload = message.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_POST = _dispatch
    do_GET = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch

    def log_message(self, format: str, *args: object) -> None:
        log.info(f"{self.address_string()} {format % args}")


def make_handler(service: RunTaskService, hmac_key: str) -> type[RunTaskHandler]:
    return type("BoundRunTaskHandler", (RunTaskHandler,), {"service": service, "hmac_key": hmac_key})
