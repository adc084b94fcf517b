"""Tests for run statistics."""

import pytest

from dso.core.state import ItemStatus, WorkItem
from dso.core.stats import RunStatistics, compute_statistics


def _items(*statuses: ItemStatus) -> list[WorkItem]:
    return [WorkItem(id=str(i), original_text="x", status=s) for i, s in enumerate(statuses)]


class TestComputeStatistics:
    """Tests for compute_statistics."""

    def test_empty(self):
        """No items gives zero counts and zero progress."""
        stats = compute_statistics([])

        assert stats == RunStatistics()
        assert stats.progress == 0.0
        assert stats.success_rate == 0.0

    def test_counts(self):
        """Counts by state; processed is completed + failed."""
        stats = compute_statistics(
            _items(
                ItemStatus.COMPLETED,
                ItemStatus.COMPLETED,
                ItemStatus.FAILED,
                ItemStatus.IDLE,
                ItemStatus.PROCESSING,
            )
        )

        assert stats.total == 5
        assert stats.successful == 2
        assert stats.failed == 1
        assert stats.processed == 3
        assert stats.idle == 1
        assert stats.processing == 1
        assert stats.progress == pytest.approx(0.6)
        assert stats.success_rate == pytest.approx(200 / 3)

    def test_no_estimate_outside_run(self):
        """Without elapsed time there is no estimate."""
        stats = compute_statistics(_items(ItemStatus.COMPLETED, ItemStatus.IDLE))

        assert stats.elapsed_seconds is None
        assert stats.estimated_seconds_remaining is None

    def test_estimate_from_items_settled_in_run(self):
        """Estimate extrapolates from items settled during this run only."""
        items = _items(
            ItemStatus.COMPLETED,  # settled before the run
            ItemStatus.COMPLETED,
            ItemStatus.FAILED,
            ItemStatus.IDLE,
            ItemStatus.IDLE,
        )
        stats = compute_statistics(items, elapsed_seconds=10.0, processed_at_start=1)

        # 2 settled in 10s, 2 remaining
        assert stats.estimated_seconds_remaining == pytest.approx(10.0)

    def test_no_estimate_before_first_settle(self):
        """Nothing settled in the run yet means no estimate."""
        stats = compute_statistics(
            _items(ItemStatus.COMPLETED, ItemStatus.IDLE),
            elapsed_seconds=3.0,
            processed_at_start=1,
        )

        assert stats.elapsed_seconds == 3.0
        assert stats.estimated_seconds_remaining is None
