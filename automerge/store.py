"""In-memory state for pull requests awaiting an automatic merge."""

import logging
from typing import Dict, Optional

from .models import PullRequestRecord


class PRStateStore:
    """Holds one readiness record per tracked PR plus the commit index.

    The commit index maps a head commit SHA to the PR it belongs to, so that
    status events carrying only a SHA can be routed. Entries for superseded
    commits may linger; callers compare against ``head_commit`` before trusting
    them.
    """

    def __init__(self):
        self.prs: Dict[str, PullRequestRecord] = {}
        self.commits: Dict[str, str] = {}

    def get(self, pr_id: str) -> Optional[PullRequestRecord]:
        """Get the record for a PR, or None if it is not tracked."""
        return self.prs.get(pr_id)

    def upsert(self, pr_id: str, head_commit: str) -> PullRequestRecord:
        """Create the record for a PR or move it to a new head commit.

        Args:
            pr_id: Pull request API URL
            head_commit: SHA currently at the tip of the PR branch

        Returns:
            The record, with evidence cleared if the head commit changed
        """
        record = self.prs.get(pr_id)
        if record is None:
            record = PullRequestRecord(pr_id=pr_id, head_commit=head_commit)
            self.prs[pr_id] = record
            logging.debug(f"Tracking {pr_id} at {head_commit}")
        elif record.head_commit != head_commit:
            logging.info(f"{pr_id} moved from {record.head_commit} to {head_commit}, resetting evidence")
            record.reset(head_commit)

        self.commits[head_commit] = pr_id
        return record

    def resolve_by_commit(self, commit_id: str) -> Optional[str]:
        """Get the PR a commit was last registered for."""
        return self.commits.get(commit_id)

    def register_commit(self, commit_id: str, pr_id: str):
        self.commits[commit_id] = pr_id

    def remove(self, pr_id: str, forget_commits: bool = False) -> Optional[PullRequestRecord]:
        """Stop tracking a PR.

        Args:
            pr_id: Pull request API URL
            forget_commits: Also drop every commit index entry pointing at the PR

        Returns:
            The removed record, if there was one
        """
        record = self.prs.pop(pr_id, None)
        if forget_commits:
            stale = [sha for sha, owner in self.commits.items() if owner == pr_id]
            for sha in stale:
                del self.commits[sha]
        return record

    def __contains__(self, pr_id: str) -> bool:
        return pr_id in self.prs

    def __len__(self) -> int:
        return len(self.prs)
