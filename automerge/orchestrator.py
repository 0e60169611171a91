"""Merge state machine for pull requests that became ready."""

import logging
from typing import Optional

import requests

from .models import MergeState
from .readiness import evaluate
from .store import PRStateStore


class MergeOrchestrator:
    """Merges ready pull requests exactly once and optionally deletes their branch.

    A record moves PENDING -> MERGING -> MERGED [-> DELETING -> DELETED]. A
    failed merge puts it back to PENDING so that the next event can retry.
    Callers must serialize calls for the same store.
    """

    def __init__(self, store: PRStateStore, api_client, delete_after_merge: bool = False):
        """Initialize the orchestrator.

        Args:
            store: PR state store shared with event ingestion
            api_client: GitHubAPIClient (or compatible) used for merge and delete
            delete_after_merge: Whether to delete the source branch after merging
        """
        self.store = store
        self.api_client = api_client
        self.delete_after_merge = delete_after_merge

    def merge_if_ready(self, pr_id: str) -> Optional[MergeState]:
        """Merge the PR if its record says it is ready.

        Args:
            pr_id: Pull request API URL

        Returns:
            Merge state after this call, or None if the PR is not tracked
        """
        record = self.store.get(pr_id)
        if record is None:
            return None

        verdict = evaluate(record)
        if not verdict.ready:
            logging.debug(f"{pr_id} not ready: {verdict.reason}")
            return record.merge_state

        # Marked before the call so that nothing re-triggers while it is out
        record.merge_state = MergeState.MERGING
        sha = record.head_commit
        logging.info(f"APPROVED ({pr_id}) at {sha}, merging")

        try:
            self.api_client.merge_pull_request(pr_id, sha)
        except requests.exceptions.RequestException as e:
            logging.error(f"Could not merge {pr_id}: {e}")
            record.merge_state = MergeState.PENDING
            return record.merge_state

        record.merge_state = MergeState.MERGED
        logging.info(f"MERGED ({pr_id})")

        if self.delete_after_merge:
            self._delete_branch(record)

        self.store.remove(pr_id)
        return record.merge_state

    def _delete_branch(self, record):
        if not record.branch_ref:
            logging.warning(f"No branch known for {record.pr_id}, skipping deletion")
            return

        record.merge_state = MergeState.DELETING
        try:
            self.api_client.delete_branch(record.pr_id, record.branch_ref)
        except (requests.exceptions.RequestException, ValueError) as e:
            logging.error(f"Could not delete branch {record.branch_ref} of {record.pr_id}: {e}")
            record.merge_state = MergeState.MERGED
            return

        record.merge_state = MergeState.DELETED
        logging.info(f"DELETED branch {record.branch_ref} ({record.pr_id})")
