"""GitHub App installation tokens for the gh CLI.

An app authenticates with a short-lived RS256 JWT signed by its private key,
then exchanges it for an installation access token:
https://docs.github.com/en/apps/creating-github-apps/authenticating-with-a-github-app/generating-an-installation-access-token-for-a-github-app
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
from urllib import error
from urllib import request

import jwt

from .config import ServiceConfig
from .github import GitHubClient, GitHubError

HttpOpen = Callable[[request.Request, float], Any]

GITHUB_API_URL = "https://api.github.com"
JWT_ALGORITHM = "RS256"
# GitHub rejects app JWTs that live longer than 10 minutes; iat is backdated
# to allow for clock drift.
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 540
# Mint a new installation token this long before the current one expires.
REFRESH_MARGIN_SECONDS = 60


def _default_opener(req: request.Request, timeout_seconds: float) -> Any:
    return request.urlopen(req, timeout=timeout_seconds)


def _parse_expires_at(value: Any) -> float | None:
    if not isinstance(value, str):
        return None
    try:
        expires = datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ")
    except ValueError:
        return None
    return expires.replace(tzinfo=timezone.utc).timestamp()


@dataclass
class InstallationTokenSource:
    """Mints installation tokens and reuses one until shortly before it expires."""
    app_id: int
    private_key: bytes
    installation_id: int
    timeout_seconds: float = 10
    opener: HttpOpen | None = None
    clock: Callable[[], float] = time.time
    _token: str = field(default="", init=False, repr=False)
    _expires_at: float = field(default=0.0, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def app_jwt(self) -> str:
        """Signed JWT identifying the app itself."""
        now = int(self.clock())
        claims = {
            "iat": now - JWT_BACKDATE_SECONDS,
            "exp": now + JWT_LIFETIME_SECONDS,
            "iss": str(self.app_id),
        }
        try:
            return jwt.encode(claims, self.private_key, algorithm=JWT_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise GitHubError(f"unable to sign GitHub App JWT: {exc}") from exc

    def __call__(self) -> str:
        with self._lock:
            if self._token and self.clock() < self._expires_at - REFRESH_MARGIN_SECONDS:
                return self._token
            token, expires_at = self._mint()
            # Tokens without a parseable expiry are used once.
            self._token = token if expires_at is not None else ""
            self._expires_at = expires_at or 0.0
            return token

    def _mint(self) -> tuple[str, float | None]:
        url = f"{GITHUB_API_URL}/app/installations/{self.installation_id}/access_tokens"
        req = request.Request(
            url,
            data=b"",
            method="POST",
            headers={
                "Authorization": f"Bearer {self.app_jwt()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )
        what = f"create installation token for installation {self.installation_id}"
        opener = self.opener or _default_opener
        try:
            with opener(req, self.timeout_seconds) as response:
                status = int(getattr(response, "status", 0))
                body = response.read()
        except error.HTTPError as exc:
            raise GitHubError(f"{what}: unexpected status was returned: {exc.code}") from exc
        except error.URLError as exc:
            raise GitHubError(f"{what}: {exc.reason}") from exc
        except (OSError, ValueError) as exc:
            raise GitHubError(f"{what}: {exc}") from exc

        if status < 200 or status >= 300:
            raise GitHubError(f"{what}: unexpected status was returned: {status}")
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GitHubError(f"{what}: invalid response: {exc}") from exc
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise GitHubError(f"{what}: response has no token")
        return token, _parse_expires_at(payload.get("expires_at"))


def client_from_config(config: ServiceConfig) -> GitHubClient:
    """GitHubClient authenticated by a personal token or, failing that, a GitHub App."""
    if config.github_token:
        return GitHubClient(token=config.github_token, timeout_seconds=config.timeout_seconds)
    if config.github_app_id is None or config.github_app_installation_id is None:
        raise GitHubError("no GitHub credentials configured")
    source = InstallationTokenSource(
        app_id=config.github_app_id,
        private_key=config.github_app_private_key,
        installation_id=config.github_app_installation_id,
        timeout_seconds=config.timeout_seconds,
    )
    return GitHubClient(timeout_seconds=config.timeout_seconds, token_source=source)
