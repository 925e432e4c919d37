"""Human-readable delta between two JSON value trees."""

from __future__ import annotations

import difflib
import json
from typing import Any


def _canonical_lines(value: Any) -> list[str]:
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False).splitlines()


def structural_diff(before: Any, after: Any) -> str:
    """Render a unified, full-context diff of ``before`` against ``after``.

    Returns an empty string when the trees are equal. File headers and hunk
    markers are dropped; every line keeps its ``-``/``+``/`` `` prefix.
    """
    if before == after:
        return ""
    old = _canonical_lines(before)
    new = _canonical_lines(after)
    context = max(len(old), len(new))
    lines = [
        line
        for line in difflib.unified_diff(old, new, n=context, lineterm="")
        if not line.startswith(("---", "+++", "@@"))
    ]
    return "\n".join(lines)
