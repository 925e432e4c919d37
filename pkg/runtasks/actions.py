"""Classify plan action tuples into display symbols."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from .errors import ActionContractError


class Action(Enum):
    NO_OP = "no-op"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    CREATE_THEN_DELETE = "create-then-delete"
    DELETE_THEN_CREATE = "delete-then-create"

    @property
    def symbol(self) -> str:
        return symbol_for(self)


_SINGLE_ACTIONS = {
    "create": Action.CREATE,
    "delete": Action.DELETE,
    "update": Action.UPDATE,
    "read": Action.READ,
    "no-op": Action.NO_OP,
}

_REPLACE_ACTIONS = {
    ("create", "delete"): Action.CREATE_THEN_DELETE,
    ("delete", "create"): Action.DELETE_THEN_CREATE,
}

_SYMBOLS = {
    Action.NO_OP: "   ",
    Action.CREATE: "+",
    Action.DELETE: "-",
    Action.READ: "<=",
    Action.UPDATE: "~",
    Action.CREATE_THEN_DELETE: "+/-",
    Action.DELETE_THEN_CREATE: "-/+",
}

UNKNOWN_SYMBOL = "  ?"


def classify_actions(actions: Sequence[str]) -> Action:
    """Map a plan action tuple to an Action.

    The plan format only emits the seven shapes handled here, so anything
    else raises ActionContractError instead of guessing.
    """
    keywords = tuple(actions)
    if len(keywords) == 2 and keywords in _REPLACE_ACTIONS:
        return _REPLACE_ACTIONS[keywords]
    if len(keywords) == 1 and keywords[0] in _SINGLE_ACTIONS:
        return _SINGLE_ACTIONS[keywords[0]]
    raise ActionContractError(f"unrecognized action tuple: {list(keywords)!r}")


def symbol_for(action: object) -> str:
    """Display glyph for an action."""
    if not isinstance(action, Action):
        return UNKNOWN_SYMBOL
    return _SYMBOLS.get(action, UNKNOWN_SYMBOL)
