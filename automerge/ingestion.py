"""Event handlers that turn webhook notifications into readiness evidence."""

import logging
from threading import Lock
from typing import Optional

import requests

from .models import (
    CheckEvent,
    CheckOutcome,
    MergeState,
    PullRequestClosedEvent,
    PullRequestEvent,
    PullRequestRecord,
    ReviewEvent,
)
from .orchestrator import MergeOrchestrator
from .store import PRStateStore

SUCCESS_STATES = {'success', 'neutral', 'skipped'}
PENDING_STATES = {'pending', 'queued', 'in_progress', 'requested', 'waiting'}
FAILURE_STATES = {'failure', 'error', 'cancelled', 'timed_out', 'action_required', 'stale'}


def parse_check_state(state: str) -> CheckOutcome:
    """Normalize a status or check run state.

    Args:
        state: State string reported by GitHub

    Returns:
        CheckOutcome; unknown states count as failures
    """
    normalized = (state or '').lower()
    if normalized in SUCCESS_STATES:
        return CheckOutcome.SUCCESS
    if normalized in PENDING_STATES:
        return CheckOutcome.PENDING
    if normalized not in FAILURE_STATES:
        logging.warning(f"Unknown check state '{state}', treating as failure")
    return CheckOutcome.FAILURE


class EventIngestion:
    """Applies review, pull request and check events to the state store.

    Every handler ends with a readiness evaluation. All handlers and the
    delayed mergeability probe share one lock, so events are applied one at a
    time even though probes fire on timer threads.
    """

    def __init__(
        self,
        store: PRStateStore,
        api_client,
        orchestrator: MergeOrchestrator,
        scheduler,
        mergeable_delay: float = 10.0,
        sync_reviews: bool = True
    ):
        """Initialize event ingestion.

        Args:
            store: PR state store
            api_client: GitHubAPIClient (or compatible)
            orchestrator: Merge orchestrator consulted after every event
            scheduler: Object with schedule(delay, callback)
            mergeable_delay: Seconds to wait before reading the mergeable flag
            sync_reviews: Whether to fetch the full review list on PR activity
        """
        self.store = store
        self.api_client = api_client
        self.orchestrator = orchestrator
        self.scheduler = scheduler
        self.mergeable_delay = mergeable_delay
        self.sync_reviews = sync_reviews
        self._lock = Lock()

    def on_review(self, event: ReviewEvent) -> Optional[MergeState]:
        """Record a submitted review."""
        with self._lock:
            logging.info(f"{event.pr_id} -> pull_request_review ({event.review_state})")
            record = self.store.upsert(event.pr_id, event.head_commit)
            record.reviews[event.submission_id] = event.approved
            if event.branch:
                record.branch_ref = event.branch
            self._sync_reviews(record)
            self._schedule_mergeable_refresh(record)
            return self.orchestrator.merge_if_ready(event.pr_id)

    def on_pull_request(self, event: PullRequestEvent) -> Optional[MergeState]:
        """Track a PR that was opened or received new commits."""
        with self._lock:
            logging.info(f"{event.pr_id} -> pull_request ({event.action or 'updated'})")
            record = self.store.upsert(event.pr_id, event.head_commit)
            if event.branch:
                record.branch_ref = event.branch
            self._sync_reviews(record)
            self._schedule_mergeable_refresh(record)
            return self.orchestrator.merge_if_ready(event.pr_id)

    def on_pull_request_closed(self, event: PullRequestClosedEvent):
        """Forget a PR that was closed outside of this bot."""
        with self._lock:
            record = self.store.remove(event.pr_id, forget_commits=True)
            if record is not None:
                logging.info(f"{event.pr_id} closed (merged={event.merged}), no longer tracked")

    def on_check(self, event: CheckEvent) -> Optional[MergeState]:
        """Record a status or check run against the PR whose head it reports on."""
        with self._lock:
            outcome = parse_check_state(event.state)
            logging.info(f"{event.commit_id} -> status {event.context}={outcome.value}")

            pr_id = event.pr_id
            if pr_id is not None:
                record = self.store.get(pr_id)
                if record is not None and record.head_commit != event.commit_id:
                    # The payload may predate a push; only GitHub's current head decides
                    pr_id = None
            else:
                pr_id = self.store.resolve_by_commit(event.commit_id)
                record = self.store.get(pr_id) if pr_id else None
                if record is None:
                    # Left behind by a merged PR; only an open PR may claim the commit
                    pr_id = None
                elif record.head_commit != event.commit_id:
                    logging.info(f"Ignoring status for superseded commit {event.commit_id} of {pr_id}")
                    return None
            if pr_id is None:
                pr_id = self._lookup_pull_request(event)
                if pr_id is None:
                    return None

            created = pr_id not in self.store
            record = self.store.upsert(pr_id, event.commit_id)
            record.checks[event.context] = outcome
            if created:
                self._sync_reviews(record)
                self._schedule_mergeable_refresh(record)
            return self.orchestrator.merge_if_ready(pr_id)

    def refresh_mergeable(self, pr_id: str, head_commit: str) -> Optional[MergeState]:
        """Read the mergeable flag computed for ``head_commit`` and re-evaluate.

        The result is discarded if the PR has moved to another commit, either
        locally or according to GitHub, since the probe was scheduled.
        """
        with self._lock:
            if not self._is_current(pr_id, head_commit):
                logging.info(f"Discarding mergeable probe for {pr_id}: {head_commit} is no longer the head")
                return None

            try:
                pr = self.api_client.get_pull_request(pr_id)
            except (requests.exceptions.RequestException, ValueError) as e:
                logging.error(f"Could not fetch mergeable state of {pr_id}: {e}")
                return None

            remote_head = (pr.get('head') or {}).get('sha', head_commit)
            if remote_head != head_commit or not self._is_current(pr_id, head_commit):
                logging.info(f"Discarding mergeable probe for {pr_id}: head moved to {remote_head}")
                return None

            record = self.store.get(pr_id)
            record.mergeable = pr.get('mergeable')
            logging.info(f"{pr_id} mergeable={record.mergeable}")
            return self.orchestrator.merge_if_ready(pr_id)

    def _is_current(self, pr_id: str, head_commit: str) -> bool:
        record = self.store.get(pr_id)
        return record is not None and record.head_commit == head_commit

    def _schedule_mergeable_refresh(self, record: PullRequestRecord):
        # GitHub computes mergeability asynchronously after a push
        pr_id, head_commit = record.pr_id, record.head_commit
        self.scheduler.schedule(
            self.mergeable_delay,
            lambda: self.refresh_mergeable(pr_id, head_commit)
        )

    def _sync_reviews(self, record: PullRequestRecord):
        """Merge the reviews GitHub knows for the current head into the record."""
        if not self.sync_reviews:
            return

        try:
            reviews = self.api_client.list_reviews(record.pr_id)
        except (requests.exceptions.RequestException, ValueError) as e:
            logging.warning(f"Could not fetch reviews of {record.pr_id}: {e}")
            return

        for review in reviews:
            commit_id = review.get('commit_id')
            if commit_id and commit_id != record.head_commit:
                continue
            if review.get('id') is None:
                continue
            record.reviews[str(review['id'])] = (review.get('state') or '').lower() == 'approved'

    def _lookup_pull_request(self, event: CheckEvent) -> Optional[str]:
        """Find the open PR for a commit that is not in the commit index."""
        if not event.owner or not event.repo:
            logging.warning(f"Can't find PR for sha {event.commit_id}: no repository in event")
            return None

        try:
            pr_id = self.api_client.find_pull_request_by_head(event.owner, event.repo, event.commit_id)
        except requests.exceptions.RequestException as e:
            logging.error(f"Can't find PR for sha {event.commit_id}: {e}")
            return None

        if pr_id is None:
            logging.info(f"PR not found: ({event.owner}, {event.repo}, {event.commit_id})")
            return None

        self.store.register_commit(event.commit_id, pr_id)
        return pr_id
