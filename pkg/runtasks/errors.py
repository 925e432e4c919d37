"""Exception hierarchy for the run task service."""

from __future__ import annotations


class RunTaskError(Exception):
    """Recoverable failure that aborts the current run task invocation."""


class ConfigError(RunTaskError):
    """Invalid or missing service configuration."""


class PlanValidationError(RunTaskError):
    """Plan document does not have the expected JSON plan shape."""


class UnsupportedGitURLError(RunTaskError):
    """Pull request URL has an unsupported host or shape."""


class DependencyError(RunTaskError):
    """An HTTP dependency (plan fetch, callback) failed or returned non-2xx."""


class ActionContractError(AssertionError):
    """Plan contained an action tuple outside the plan format's contract.

    Not a RunTaskError: callers must not treat it as a recoverable failure.
    """
