"""Parse VCS pull request URLs into owner/repository/number.

Each supported host registers one parser in ``_PARSERS``; unknown hosts
raise UnsupportedGitURLError instead of falling back to a guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from urllib.parse import ParseResult, urlparse

from .errors import UnsupportedGitURLError

GITHUB_HOST = "github.com"


@dataclass(frozen=True)
class PullRequestRef:
    host: str
    owner: str
    repository: str
    number: int

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repository}"


def _parse_github(url: ParseResult) -> PullRequestRef:
    # /{owner}/{repo}/pull/{number}[/files|/commits|...]
    parts = [p for p in url.path.split("/") if p]
    if len(parts) < 4 or parts[2] != "pull":
        raise UnsupportedGitURLError(f"not a GitHub pull request URL: {url.geturl()}")
    try:
        number = int(parts[3])
    except ValueError as exc:
        raise UnsupportedGitURLError(f"invalid pull request number: {parts[3]!r}") from exc
    if number < 1:
        raise UnsupportedGitURLError(f"invalid pull request number: {parts[3]!r}")
    return PullRequestRef(host=GITHUB_HOST, owner=parts[0], repository=parts[1], number=number)


_PARSERS: dict[str, Callable[[ParseResult], PullRequestRef]] = {
    GITHUB_HOST: _parse_github,
}


def parse_pull_request_url(value: str) -> PullRequestRef:
    """Parse a pull request web URL."""
    url = urlparse((value or "").strip())
    host = (url.hostname or "").lower()
    parser = _PARSERS.get(host)
    if parser is None:
        # TODO: GitHub Enterprise hosts need a configurable host list.
        raise UnsupportedGitURLError(f"unsupported host: {host or '<none>'}")
    return parser(url)
