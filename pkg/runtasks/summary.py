from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass
class ChangeSummary:
    """Per-render tally of planned resource changes."""
    add: int = 0
    change: int = 0
    remove: int = 0
    import_: int = 0

    def record_import(self) -> None:
        self.import_ += 1

    def record(self, actions: Sequence[str]) -> None:
        """Count each keyword of an action tuple; replaces count as add and remove."""
        for keyword in actions:
            if keyword == "create":
                self.add += 1
            elif keyword == "update":
                self.change += 1
            elif keyword == "delete":
                self.remove += 1

    def __str__(self) -> str:
        counts = f"+ {self.add} to add, ~ {self.change} to change, - {self.remove} to destroy."
        if self.import_ > 0:
            return f"& {self.import_} to import, {counts}"
        return counts
