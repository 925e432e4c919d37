"""Keep one canonical plan comment per pull request.

Every run posts a fresh comment; the previous report (found by its marker
tag) is then minimized as OUTDATED. Concurrent runs on the same pull
request are not coordinated: each may minimize the same prior report, and
a later run cleans up any report left visible.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from . import log
from .github import GitHubClient, GitHubError, IssueComment, MAX_COMMENT_HISTORY
from .giturl import PullRequestRef
from .render import COMMENT_MARKER

OUTDATED = "OUTDATED"


def find_latest_report(comments: Sequence[IssueComment], marker: str = COMMENT_MARKER) -> IssueComment | None:
    """Most recent comment whose body starts with ``marker``.

    ``comments`` is ordered oldest first. Minimized state is ignored.
    """
    for comment in reversed(comments):
        if comment.body.startswith(marker):
            return comment
    return None


@dataclass
class CommentLifecycle:
    """Find, create and supersede plan comments on one pull request."""
    client: GitHubClient
    pr: PullRequestRef
    history_limit: int = MAX_COMMENT_HISTORY
    classifier: str = OUTDATED

    def find_latest(self) -> IssueComment | None:
        comments = self.client.fetch_recent_comments(self.pr, last=self.history_limit)
        return find_latest_report(comments)

    def create(self, body: str) -> None:
        self.client.create_issue_comment(self.pr, body)

    def supersede(self, prior: IssueComment | None) -> bool:
        """Minimize ``prior`` if it is still visible.

        Returns True when a comment was minimized. Failures are logged and
        swallowed since the new report is already posted.
        """
        if prior is None or prior.is_minimized:
            return False
        try:
            self.client.minimize_comment(prior.id, self.classifier)
        except GitHubError as exc:
            log.warn(f"failed to minimize comment {prior.id} on {self.pr.repo_slug}#{self.pr.number}: {exc}")
            return False
        return True
