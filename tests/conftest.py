"""
Shared fixtures for auto-merge tests
"""

import pytest
from unittest.mock import Mock

PR_URL = 'https://api.github.com/repos/octo/widgets/pulls/5'
OTHER_PR_URL = 'https://api.github.com/repos/octo/widgets/pulls/6'


class ManualScheduler:
    """Collects delayed callbacks and runs them when told to."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, delay, callback):
        self.scheduled.append((delay, callback))

    def run_pending(self):
        callbacks = [callback for _, callback in self.scheduled]
        self.scheduled = []
        return [callback() for callback in callbacks]

    def join(self, timeout=None):
        self.run_pending()

    def cancel_all(self):
        self.scheduled = []


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def api_client():
    """REST client double that knows no reviews and reports nothing mergeable yet."""
    client = Mock()
    client.list_reviews.return_value = []
    client.find_pull_request_by_head.return_value = None
    client.merge_pull_request.return_value = None
    client.delete_branch.return_value = None
    return client


def pr_payload(sha='sha1', mergeable=True, url=PR_URL):
    """Pull request JSON as returned by GET /pulls/:number."""
    return {'url': url, 'head': {'sha': sha, 'ref': 'feature'}, 'mergeable': mergeable}
