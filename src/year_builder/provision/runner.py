"""Generic probe → create loop shared by every phase."""

import logging
from typing import Any, Callable, Optional, Sequence, TypeVar

from year_builder.models.results import ItemOutcome, Outcome, PhaseResult, Reporter

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_phase(
    result: PhaseResult,
    items: Sequence[T],
    probe: Callable[[T], Any],
    create: Callable[[T], Any],
    label: Callable[[T], str] = str,
    reporter: Optional[Reporter] = None,
) -> PhaseResult:
    """Process a phase's items one at a time.

    For each item, ``probe`` decides whether it already exists (a truthy
    return means skip); otherwise ``create`` is called. An exception from
    either is counted as an error for that item only and the loop moves on.

    Args:
        result: Result to accumulate counts into
        items: Items in processing order
        probe: Existence check
        create: Creation action
        label: Display label of an item
        reporter: Progress receiver

    Returns:
        The updated result
    """
    reporter = reporter or Reporter()
    total = len(items)

    for index, item in enumerate(items, start=1):
        name = label(item)
        try:
            if probe(item):
                result.skipped += 1
                outcome = ItemOutcome(index, total, name, Outcome.SKIPPED, "already exists")
            else:
                create(item)
                result.created += 1
                outcome = ItemOutcome(index, total, name, Outcome.CREATED)
        except Exception as e:
            result.errors += 1
            logger.error(f"Phase {result.phase} [{index}/{total}] {name}: {e}")
            outcome = ItemOutcome(index, total, name, Outcome.ERROR, str(e))
        reporter.item(outcome)

    return result
