#!/usr/bin/env python3

"""Render a Terraform JSON plan as a run task PR comment."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pkg.runtasks.render import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
