"""Auto-merge bot wiring the store, ingestion and merge orchestration together."""

import logging
from typing import Dict, Optional

from .api_client import GitHubAPIClient
from .config import BotConfig
from .ingestion import EventIngestion
from .models import (
    CheckEvent,
    MergeState,
    PullRequestClosedEvent,
    PullRequestEvent,
    ReviewEvent,
)
from .orchestrator import MergeOrchestrator
from .scheduler import DelayedProbeScheduler
from .store import PRStateStore
from .webhooks import parse_event


class AutoMergeBot:
    """Merges pull requests once reviews, checks and mergeability all agree."""

    def __init__(self, config: BotConfig = None, api_client=None, scheduler=None):
        """Initialize the bot.

        Args:
            config: Bot configuration, defaults if omitted
            api_client: REST client, built from the config if omitted
            scheduler: Delayed callback scheduler, timer threads if omitted
        """
        self.config = config or BotConfig()
        self.api_client = api_client or GitHubAPIClient(self.config.github_token, self.config.api_url)
        self.scheduler = scheduler or DelayedProbeScheduler()
        self.store = PRStateStore()
        self.orchestrator = MergeOrchestrator(
            self.store,
            self.api_client,
            delete_after_merge=self.config.delete_after_merge
        )
        self.ingestion = EventIngestion(
            self.store,
            self.api_client,
            self.orchestrator,
            self.scheduler,
            mergeable_delay=self.config.mergeable_delay,
            sync_reviews=self.config.sync_reviews
        )

        logging.info(
            f"Initialized auto-merge bot (delete_after_merge={self.config.delete_after_merge}, "
            f"mergeable_delay={self.config.mergeable_delay}s)"
        )

    def dispatch(self, event_name: str, payload: Dict) -> Optional[MergeState]:
        """Handle one webhook delivery.

        Args:
            event_name: Value of the X-GitHub-Event header
            payload: Decoded JSON body

        Returns:
            Merge state of the affected PR after handling, if it is tracked
        """
        event = parse_event(event_name, payload)
        if event is None:
            return None

        if isinstance(event, ReviewEvent):
            return self.ingestion.on_review(event)
        if isinstance(event, PullRequestEvent):
            return self.ingestion.on_pull_request(event)
        if isinstance(event, PullRequestClosedEvent):
            self.ingestion.on_pull_request_closed(event)
            return None
        if isinstance(event, CheckEvent):
            return self.ingestion.on_check(event)
        return None

    def shutdown(self, wait: bool = True):
        """Stop the bot, letting outstanding mergeability probes finish if ``wait``."""
        if wait:
            self.scheduler.join()
        else:
            self.scheduler.cancel_all()
