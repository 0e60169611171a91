"""Readiness verdicts for pull requests.

A PR is ready only when every category of evidence is present and favorable
for its current head commit. Missing evidence blocks the merge: a PR without
any recorded review or check is never considered ready.
"""

from dataclasses import dataclass

from .models import CheckOutcome, PullRequestRecord


@dataclass(frozen=True)
class Verdict:
    """Outcome of evaluating a PR record."""
    ready: bool
    reason: str


def is_mergeable(record: PullRequestRecord) -> bool:
    return record.mergeable is True


def is_approved(record: PullRequestRecord) -> bool:
    """At least one review exists and every review approves."""
    return bool(record.reviews) and all(record.reviews.values())


def checks_passed(record: PullRequestRecord) -> bool:
    """At least one check exists and every check succeeded."""
    if not record.checks:
        return False
    return all(outcome is CheckOutcome.SUCCESS for outcome in record.checks.values())


def evaluate(record: PullRequestRecord) -> Verdict:
    """Decide whether a PR should be merged now.

    Args:
        record: Aggregated evidence for the PR

    Returns:
        Verdict naming the first blocking reason, or "ready"
    """
    if record.done:
        return Verdict(False, f"already {record.merge_state.value}")

    if record.mergeable is None:
        return Verdict(False, "mergeability unknown")
    if not is_mergeable(record):
        return Verdict(False, "not mergeable")

    if not record.reviews:
        return Verdict(False, "no reviews")
    if not is_approved(record):
        pending = sorted(rid for rid, approved in record.reviews.items() if not approved)
        return Verdict(False, f"reviews not approved: {', '.join(pending)}")

    if not record.checks:
        return Verdict(False, "no checks")
    if not checks_passed(record):
        failing = sorted(
            f"{context}={outcome.value}"
            for context, outcome in record.checks.items()
            if outcome is not CheckOutcome.SUCCESS
        )
        return Verdict(False, f"checks not passing: {', '.join(failing)}")

    return Verdict(True, "ready")
