"""Terraform Cloud/Enterprise run task that comments plans on GitHub pull requests."""

from .actions import Action, classify_actions, symbol_for
from .errors import (
    ActionContractError,
    ConfigError,
    DependencyError,
    PlanValidationError,
    RunTaskError,
    UnsupportedGitURLError,
)
from .lifecycle import CommentLifecycle, find_latest_report
from .masking import MASKED_VALUE, mask_sensitive_values
from .plan import Plan, parse_plan
from .render import COMMENT_MARKER, render_plan_comment
from .summary import ChangeSummary

__all__ = [
    "Action",
    "ActionContractError",
    "COMMENT_MARKER",
    "ChangeSummary",
    "CommentLifecycle",
    "ConfigError",
    "DependencyError",
    "MASKED_VALUE",
    "Plan",
    "PlanValidationError",
    "RunTaskError",
    "UnsupportedGitURLError",
    "classify_actions",
    "find_latest_report",
    "mask_sensitive_values",
    "parse_plan",
    "render_plan_comment",
    "symbol_for",
]
