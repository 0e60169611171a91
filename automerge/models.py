"""Data models for pull request readiness tracking."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, NamedTuple, Optional

PR_URL_PATTERN = re.compile(r'^(https?://.+)/repos/([^/]+)/([^/]+)/pulls/(\d+)$')


class CheckOutcome(Enum):
    """Normalized result of a commit status or check run."""
    PENDING = 'pending'
    SUCCESS = 'success'
    FAILURE = 'failure'


class MergeState(Enum):
    """Position of a pull request in the merge state machine."""
    PENDING = 'pending'
    MERGING = 'merging'
    MERGED = 'merged'
    DELETING = 'deleting'
    DELETED = 'deleted'


class PullRequestRef(NamedTuple):
    """Components of a pull request API URL."""
    api_base: str
    owner: str
    repo: str
    number: int


def parse_pull_request_url(url: str) -> PullRequestRef:
    """Split a pull request API URL into its components.

    Args:
        url: URL such as https://api.github.com/repos/owner/repo/pulls/5

    Returns:
        PullRequestRef for the URL

    Raises:
        ValueError: If the URL is not a pull request API URL
    """
    match = PR_URL_PATTERN.match(url or '')
    if not match:
        raise ValueError(f"Not a pull request API URL: {url!r}")
    return PullRequestRef(match.group(1), match.group(2), match.group(3), int(match.group(4)))


@dataclass
class PullRequestRecord:
    """Aggregated readiness evidence for the current head commit of a PR."""
    pr_id: str
    head_commit: str
    branch_ref: Optional[str] = None
    checks: Dict[str, CheckOutcome] = field(default_factory=dict)
    reviews: Dict[str, bool] = field(default_factory=dict)  # review id -> approved
    mergeable: Optional[bool] = None  # None until the platform has computed it
    merge_state: MergeState = MergeState.PENDING

    @property
    def done(self) -> bool:
        """Whether a merge has been dispatched and not rolled back."""
        return self.merge_state is not MergeState.PENDING

    def reset(self, head_commit: str):
        """Drop all evidence collected for a superseded head commit."""
        self.head_commit = head_commit
        self.checks = {}
        self.reviews = {}
        self.mergeable = None
        self.merge_state = MergeState.PENDING


@dataclass(frozen=True)
class ReviewEvent:
    """A pull request review was submitted, edited or dismissed."""
    pr_id: str
    head_commit: str
    submission_id: str
    review_state: str
    branch: Optional[str] = None

    @property
    def approved(self) -> bool:
        return (self.review_state or '').lower() == 'approved'


@dataclass(frozen=True)
class PullRequestEvent:
    """A pull request was opened, synchronized or otherwise updated."""
    pr_id: str
    head_commit: str
    branch: Optional[str] = None
    action: str = ''


@dataclass(frozen=True)
class PullRequestClosedEvent:
    """A pull request was closed, merged or not."""
    pr_id: str
    merged: bool = False


@dataclass(frozen=True)
class CheckEvent:
    """An external system reported a status or check run for a commit.

    ``pr_id`` is only set when the payload itself names the pull request whose
    head is ``commit_id``; otherwise the commit has to be resolved.
    """
    commit_id: str
    context: str
    state: str
    owner: Optional[str] = None
    repo: Optional[str] = None
    pr_id: Optional[str] = None
