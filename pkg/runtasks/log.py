"""stderr logging helpers."""

from __future__ import annotations

import sys

PREFIX = "runtasks"


def info(message: str) -> None:
    print(f"{PREFIX}: {message}", file=sys.stderr)


def warn(message: str) -> None:
    """Log a failure that does not abort the run task."""
    print(f"{PREFIX}: warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"{PREFIX}: error: {message}", file=sys.stderr)
