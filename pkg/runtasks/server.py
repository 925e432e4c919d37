#!/usr/bin/env python3
"""Serve the Terraform Cloud/Enterprise run task that comments plans on GitHub PRs."""

from __future__ import annotations

import argparse
from http.server import ThreadingHTTPServer
from pathlib import Path

from . import log
from .config import load_config
from .errors import ConfigError
from .handler import make_handler
from .service import RunTaskService


def main(argv: list[str] | None = None) -> int:
    """Main."""
    parser = argparse.ArgumentParser(description="Run task server posting Terraform plans to GitHub PRs.")
    parser.add_argument("--config", type=Path, default=None, help="Path to YAML config")
    parser.add_argument("--host", default="", help="Bind address (default: all interfaces)")
    args = parser.parse_args(argv)

    log.info("Starting Terraform Cloud/Enterprise GitHub PR comments Run Tasks...")
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        log.error(str(exc))
        return 2

    log.info(f"Authenticating to GitHub with: {config.github_auth}")
    service = RunTaskService(config)
    server = ThreadingHTTPServer((args.host, config.port), make_handler(service, config.hmac_key))
    log.info(f"Listening on HTTP port: {config.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
