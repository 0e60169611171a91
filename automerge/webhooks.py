"""Normalization of GitHub webhook payloads into bot events.

Payloads are expected to be signature-verified and JSON-decoded already.
Events the bot does not act on, and payloads missing required fields, are
reported as None.
"""

import logging
from typing import Dict, Optional, Union

from .models import CheckEvent, PullRequestClosedEvent, PullRequestEvent, ReviewEvent

Event = Union[ReviewEvent, PullRequestEvent, PullRequestClosedEvent, CheckEvent]

# https://docs.github.com/en/webhooks/webhook-events-and-payloads#pull_request
PULL_REQUEST_ACTIONS = {'opened', 'reopened', 'synchronize', 'edited', 'ready_for_review'}


def _parse_review(payload: Dict) -> ReviewEvent:
    pr = payload['pull_request']
    review = payload['review']
    return ReviewEvent(
        pr_id=pr['url'],
        head_commit=pr['head']['sha'],
        submission_id=str(review['id']),
        review_state=review.get('state') or '',
        branch=pr['head'].get('ref'),
    )


def _parse_pull_request(payload: Dict) -> Optional[Union[PullRequestEvent, PullRequestClosedEvent]]:
    pr = payload['pull_request']
    action = payload.get('action', '')
    if action == 'closed':
        return PullRequestClosedEvent(pr_id=pr['url'], merged=bool(pr.get('merged')))
    if action and action not in PULL_REQUEST_ACTIONS:
        return None
    return PullRequestEvent(
        pr_id=pr['url'],
        head_commit=pr['head']['sha'],
        branch=pr['head'].get('ref'),
        action=action,
    )


def _parse_status(payload: Dict) -> CheckEvent:
    repository = payload.get('repository') or {}
    return CheckEvent(
        commit_id=payload['sha'],
        context=payload['context'],
        state=payload.get('state') or '',
        owner=(repository.get('owner') or {}).get('login'),
        repo=repository.get('name'),
    )


def _parse_check_run(payload: Dict) -> CheckEvent:
    run = payload['check_run']
    sha = run['head_sha']
    if run.get('status') == 'completed':
        state = run.get('conclusion') or ''
    else:
        state = 'pending'

    pr_id = None
    for pr in run.get('pull_requests') or []:
        if (pr.get('head') or {}).get('sha') == sha and pr.get('url'):
            pr_id = pr['url']
            break

    repository = payload.get('repository') or {}
    return CheckEvent(
        commit_id=sha,
        context=run['name'],
        state=state,
        owner=(repository.get('owner') or {}).get('login'),
        repo=repository.get('name'),
        pr_id=pr_id,
    )


PARSERS = {
    'pull_request_review': _parse_review,
    'pull_request': _parse_pull_request,
    'status': _parse_status,
    'check_run': _parse_check_run,
}


def parse_event(event_name: str, payload: Dict) -> Optional[Event]:
    """Turn a webhook delivery into a bot event.

    Args:
        event_name: Value of the X-GitHub-Event header
        payload: Decoded JSON body

    Returns:
        The event, or None if the delivery is irrelevant or malformed
    """
    parser = PARSERS.get(event_name)
    if parser is None:
        logging.debug(f"Ignoring '{event_name}' event")
        return None

    try:
        return parser(payload)
    except (KeyError, TypeError, AttributeError) as e:
        logging.warning(f"Malformed '{event_name}' payload: {e!r}")
        return None
