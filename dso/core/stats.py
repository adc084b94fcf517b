"""Run statistics derived from the item collection."""

from collections.abc import Iterable
from dataclasses import dataclass

from dso.core.state import ItemStatus, WorkItem


@dataclass(frozen=True)
class RunStatistics:
    """Aggregate counts for progress display.

    Attributes:
        total: Number of items
        processed: Completed + Failed
        successful: Completed items
        failed: Failed items
        idle: Items waiting to be dispatched
        processing: Items currently in flight
        elapsed_seconds: Time since the current run started (None outside a run)
        estimated_seconds_remaining: Projection from this run's settle rate
            (None until an item settles in the run)
    """

    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    idle: int = 0
    processing: int = 0
    elapsed_seconds: float | None = None
    estimated_seconds_remaining: float | None = None

    @property
    def progress(self) -> float:
        """Fraction of items settled, 0 when there are no items."""
        return self.processed / self.total if self.total > 0 else 0.0

    @property
    def success_rate(self) -> float:
        """Percentage of settled items that succeeded."""
        return (self.successful / self.processed) * 100 if self.processed > 0 else 0.0


def compute_statistics(
    items: Iterable[WorkItem],
    elapsed_seconds: float | None = None,
    processed_at_start: int = 0,
) -> RunStatistics:
    """Count items by state.

    Args:
        items: Current item collection
        elapsed_seconds: Seconds since the run started, if one is active
        processed_at_start: Items already settled when the run started;
            only items settled during the run feed the time estimate
    """
    counts = {status: 0 for status in ItemStatus}
    total = 0
    for item in items:
        counts[item.status] += 1
        total += 1

    successful = counts[ItemStatus.COMPLETED]
    failed = counts[ItemStatus.FAILED]
    processed = successful + failed

    estimate = None
    settled_in_run = processed - processed_at_start
    if elapsed_seconds is not None and settled_in_run > 0:
        estimate = elapsed_seconds / settled_in_run * (total - processed)

    return RunStatistics(
        total=total,
        processed=processed,
        successful=successful,
        failed=failed,
        idle=counts[ItemStatus.IDLE],
        processing=counts[ItemStatus.PROCESSING],
        elapsed_seconds=elapsed_seconds,
        estimated_seconds_remaining=estimate,
    )
