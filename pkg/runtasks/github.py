"""GitHub PR comment client.

Wraps the gh CLI: REST for creating issue comments, GraphQL for reading
recent comments and minimizing outdated ones. Calls are bounded by the
configured timeout and never retried.
"""
from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Callable

from .errors import RunTaskError
from .giturl import PullRequestRef

MAX_COMMENT_HISTORY = 100

GhRunner = Callable[..., "subprocess.CompletedProcess[str]"]

COMMENTS_QUERY = """
query($owner: String!, $name: String!, $number: Int!, $last: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      comments(last: $last) {
        nodes { id author { login } body isMinimized }
      }
    }
  }
}
"""

MINIMIZE_MUTATION = """
mutation($id: ID!, $classifier: ReportedContentClassifiers!) {
  minimizeComment(input: {subjectId: $id, classifier: $classifier}) {
    minimizedComment { isMinimized }
  }
}
"""


class GitHubError(RunTaskError):
    """gh CLI call failed."""


class CommentPermissionError(GitHubError):
    """Token lacks pull-requests: write permission."""


class MinimizeError(GitHubError):
    """GitHub did not confirm the comment was minimized."""


@dataclass(frozen=True)
class IssueComment:
    """One pull request comment as returned by the GraphQL comments query."""
    id: str
    author: str
    body: str
    is_minimized: bool

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "IssueComment":
        author = node.get("author") or {}
        return cls(
            id=str(node.get("id") or ""),
            author=str(author.get("login") or "") if isinstance(author, dict) else "",
            body=str(node.get("body") or ""),
            is_minimized=node.get("isMinimized") is True,
        )


def _default_runner(
    cmd: list[str],
    *,
    input: str | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        cmd, input=input, env=env, timeout=timeout, capture_output=True, text=True, check=False
    )


def _is_permission_error(stderr: str) -> bool:
    lower_stderr = stderr.lower()
    return any(s in lower_stderr for s in ("403", "resource not accessible", "insufficient"))


@dataclass
class GitHubClient:
    """Data class for GitHub Client."""
    token: str = ""
    timeout_seconds: float = 10
    runner: GhRunner | None = None
    # When set, called before every gh invocation instead of using `token`.
    token_source: Callable[[], str] | None = None

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["GH_TOKEN"] = self.token_source() if self.token_source else self.token
        env["GH_PROMPT_DISABLED"] = "1"
        return env

    def _run_gh(self, args: list[str], *, input: str | None = None) -> subprocess.CompletedProcess[str]:
        """Run a gh CLI command once.

        Raises:
            CommentPermissionError: Token lacks pull-requests: write permission
            GitHubError: Any other gh CLI failure or timeout
        """
        runner = self.runner or _default_runner
        env = self._env()
        try:
            result = runner(["gh", *args], input=input, env=env, timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired as exc:
            raise GitHubError(f"gh {args[0]} timed out after {self.timeout_seconds}s") from exc
        except OSError as exc:
            raise GitHubError(f"unable to run gh: {exc}") from exc

        if result.returncode == 0:
            return result

        stderr = result.stderr or ""
        if _is_permission_error(stderr):
            raise CommentPermissionError(
                "Unable to post PR comment: token lacks pull-requests: write permission."
            )
        raise GitHubError(f"gh {' '.join(args[:2])} failed: {stderr.strip()}")

    def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        args = ["api", "graphql", "-f", f"query={query}"]
        for key, value in variables.items():
            flag = "-F" if isinstance(value, int) else "-f"
            args.extend([flag, f"{key}={value}"])
        result = self._run_gh(args)
        try:
            payload = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise GitHubError(f"invalid GraphQL response: {exc}") from exc
        if not isinstance(payload, dict):
            raise GitHubError("invalid GraphQL response: expected object")
        if payload.get("errors"):
            raise GitHubError(f"GraphQL errors: {payload['errors']}")
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    def create_issue_comment(self, pr: PullRequestRef, body: str) -> None:
        """Post ``body`` as a new comment on the pull request."""
        # Bodies run up to 64k characters, so send them on stdin rather than argv.
        self._run_gh(
            ["api", f"repos/{pr.repo_slug}/issues/{pr.number}/comments", "--input", "-"],
            input=json.dumps({"body": body}),
        )

    def fetch_recent_comments(self, pr: PullRequestRef, *, last: int = MAX_COMMENT_HISTORY) -> list[IssueComment]:
        """Fetch the most recent ``last`` comments, oldest first."""
        last = max(1, min(last, MAX_COMMENT_HISTORY))
        data = self._graphql(
            COMMENTS_QUERY,
            {"owner": pr.owner, "name": pr.repository, "number": pr.number, "last": last},
        )
        try:
            nodes = data["repository"]["pullRequest"]["comments"]["nodes"]
        except (KeyError, TypeError) as exc:
            raise GitHubError(f"pull request not found: {pr.repo_slug}#{pr.number}") from exc
        if not isinstance(nodes, list):
            return []
        return [IssueComment.from_node(node) for node in nodes if isinstance(node, dict)]

    def minimize_comment(self, comment_id: str, classifier: str) -> None:
        """Minimize a comment; raises MinimizeError unless GitHub confirms it."""
        data = self._graphql(MINIMIZE_MUTATION, {"id": comment_id, "classifier": classifier})
        minimized = ((data.get("minimizeComment") or {}).get("minimizedComment") or {}).get("isMinimized")
        if minimized is not True:
            raise MinimizeError(f"cannot minimize comment. id: {comment_id}, classifier: {classifier}")
