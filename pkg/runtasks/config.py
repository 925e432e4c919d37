"""Typed service configuration.

Loaded once at process start from an optional YAML file plus environment
variables, then passed explicitly to the service. Nothing reads the
environment while handling a request.
"""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError
from .github import MAX_COMMENT_HISTORY
from .lifecycle import OUTDATED

DEFAULT_PORT = 8080
DEFAULT_TIMEOUT_SECONDS = 10
CONFIG_PATH_ENV = "RUNTASKS_CONFIG"
GITHUB_APP_ENV = ("GITHUB_APP_ID", "GITHUB_APP_PRIVATE_KEY", "GITHUB_APP_INSTALLATION_ID")


@dataclass(frozen=True)
class ServiceConfig:
    """Data class for Service Config."""
    github_token: str = ""
    hmac_key: str = ""
    port: int = DEFAULT_PORT
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    comment_history_limit: int = MAX_COMMENT_HISTORY
    minimize_classifier: str = OUTDATED
    github_app_id: int | None = None
    # PEM bytes, already base64-decoded.
    github_app_private_key: bytes = b""
    github_app_installation_id: int | None = None

    @property
    def github_auth(self) -> str:
        """Which GitHub credential the service uses: token or app."""
        return "token" if self.github_token else "app"

    def __repr__(self) -> str:
        return (
            f"ServiceConfig(github_auth={self.github_auth!r}, port={self.port}, "
            f"timeout_seconds={self.timeout_seconds}, "
            f"comment_history_limit={self.comment_history_limit}, "
            f"minimize_classifier={self.minimize_classifier!r})"
        )


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected mapping")
    return value


def _require_positive_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected integer")
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def _optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    return s or None


def _parse_positive_int(value: Any, ctx: str) -> int:
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigError(f"{ctx}: expected integer") from None
    return _require_positive_int(value, ctx)


def _parse_port(value: Any, ctx: str) -> int:
    port = _parse_positive_int(value, ctx)
    if port > 65535:
        raise ConfigError(f"{ctx}: must be <= 65535")
    return port


def _decode_private_key(value: str) -> bytes:
    try:
        pem = base64.b64decode(value, validate=True)
    except ValueError:
        raise ConfigError("GITHUB_APP_PRIVATE_KEY: expected base64") from None
    if b"PRIVATE KEY" not in pem:
        raise ConfigError("GITHUB_APP_PRIVATE_KEY: expected a base64-encoded PEM private key")
    return pem


def _load_github_app(env: Mapping[str, str]) -> dict[str, Any] | None:
    """GitHub App settings, or None unless all three variables are set."""
    values = [_optional_str(env.get(name), name) for name in GITHUB_APP_ENV]
    if any(value is None for value in values):
        return None
    app_id, private_key, installation_id = values
    return {
        "github_app_id": _parse_positive_int(app_id, "GITHUB_APP_ID"),
        "github_app_private_key": _decode_private_key(private_key),
        "github_app_installation_id": _parse_positive_int(installation_id, "GITHUB_APP_INSTALLATION_ID"),
    }


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def _load_file_settings(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    raw = _load_yaml(path)
    if raw is None:
        return {}
    return _require_mapping(raw, "config")


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> ServiceConfig:
    """Load config from YAML (optional) and the environment."""
    env = os.environ if environ is None else environ
    if path is None and env.get(CONFIG_PATH_ENV):
        path = Path(env[CONFIG_PATH_ENV])
    cfg = _load_file_settings(path)

    # A personal token wins over GitHub App credentials when both are set.
    token = _optional_str(env.get("GITHUB_OAUTH_TOKEN"), "GITHUB_OAUTH_TOKEN")
    github_app = None if token else _load_github_app(env)
    if token is None and github_app is None:
        raise ConfigError(
            "Missing an authentication config for GitHub: set GITHUB_OAUTH_TOKEN, "
            "or GITHUB_APP_ID, GITHUB_APP_PRIVATE_KEY and GITHUB_APP_INSTALLATION_ID"
        )

    port = DEFAULT_PORT
    if cfg.get("port") is not None:
        port = _parse_port(cfg["port"], "config.port")
    if env.get("PORT"):
        port = _parse_port(env["PORT"], "PORT")

    timeout_seconds = DEFAULT_TIMEOUT_SECONDS
    if cfg.get("timeoutSeconds") is not None:
        timeout_seconds = _require_positive_int(cfg["timeoutSeconds"], "config.timeoutSeconds")

    history_limit = MAX_COMMENT_HISTORY
    if cfg.get("commentHistoryLimit") is not None:
        history_limit = _require_positive_int(cfg["commentHistoryLimit"], "config.commentHistoryLimit")
        if history_limit > MAX_COMMENT_HISTORY:
            raise ConfigError(f"config.commentHistoryLimit: must be <= {MAX_COMMENT_HISTORY}")

    classifier = _optional_str(cfg.get("minimizeClassifier"), "config.minimizeClassifier") or OUTDATED

    return ServiceConfig(
        github_token=token or "",
        hmac_key=env.get("TFC_RUN_TASK_HMAC_KEY", ""),
        port=port,
        timeout_seconds=timeout_seconds,
        comment_history_limit=history_limit,
        minimize_classifier=classifier.upper(),
        **(github_app or {}),
    )
