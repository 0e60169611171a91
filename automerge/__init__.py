"""GitHub Auto Merger - merges pull requests once reviews, checks and mergeability agree."""

from .models import (
    CheckEvent,
    CheckOutcome,
    MergeState,
    PullRequestClosedEvent,
    PullRequestEvent,
    PullRequestRecord,
    ReviewEvent,
)
from .api_client import GitHubAPIClient
from .store import PRStateStore
from .readiness import Verdict, evaluate
from .orchestrator import MergeOrchestrator
from .ingestion import EventIngestion, parse_check_state
from .scheduler import DelayedProbeScheduler
from .webhooks import parse_event
from .config import BotConfig
from .bot import AutoMergeBot

__all__ = [
    'CheckEvent',
    'CheckOutcome',
    'MergeState',
    'PullRequestClosedEvent',
    'PullRequestEvent',
    'PullRequestRecord',
    'ReviewEvent',
    'GitHubAPIClient',
    'PRStateStore',
    'Verdict',
    'evaluate',
    'MergeOrchestrator',
    'EventIngestion',
    'parse_check_state',
    'DelayedProbeScheduler',
    'parse_event',
    'BotConfig',
    'AutoMergeBot',
]
