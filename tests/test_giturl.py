import pytest

from pkg.runtasks.errors import UnsupportedGitURLError
from pkg.runtasks.giturl import parse_pull_request_url


def test_parses_pull_request_url():
    ref = parse_pull_request_url("https://github.com/hashicorp/terraform/pull/42")
    assert ref.host == "github.com"
    assert ref.owner == "hashicorp"
    assert ref.repository == "terraform"
    assert ref.number == 42
    assert ref.repo_slug == "hashicorp/terraform"


def test_ignores_trailing_path_and_query():
    ref = parse_pull_request_url("https://github.com/org/repo/pull/7/files?diff=split#top")
    assert (ref.owner, ref.repository, ref.number) == ("org", "repo", 7)


def test_unsupported_host():
    with pytest.raises(UnsupportedGitURLError, match="unsupported host: gitlab.com"):
        parse_pull_request_url("https://gitlab.com/org/repo/-/merge_requests/1")


def test_empty_url():
    with pytest.raises(UnsupportedGitURLError, match="unsupported host"):
        parse_pull_request_url("")


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/org/repo",
        "https://github.com/org/repo/issues/3",
        "https://github.com/org/repo/pull/abc",
        "https://github.com/org/repo/pull/0",
    ],
)
def test_rejects_non_pull_request_shapes(url):
    with pytest.raises(UnsupportedGitURLError):
        parse_pull_request_url(url)
