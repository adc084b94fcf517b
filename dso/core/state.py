"""In-memory state of the work items in a run."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from dso.exceptions import PipelineStateError
from dso.utils.logging import get_logger

log = get_logger(__name__)


class ItemStatus(str, Enum):
    """Lifecycle state of a work item."""

    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    # Reserved: no transition into it exists
    PAUSED = "PAUSED"


@dataclass(frozen=True)
class WorkItem:
    """One unit of work.

    Frozen: every update swaps in a new instance, so a snapshot handed to an
    observer never changes underneath it.
    """

    id: str
    original_text: str
    status: ItemStatus = ItemStatus.IDLE
    rewritten_text: str | None = None
    reasoning_text: str | None = None
    error_message: str | None = None
    retry_count: int = 0
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the export shape (internal-only fields omitted)."""
        timestamp = None
        if self.completed_at is not None:
            timestamp = int(self.completed_at.timestamp() * 1000)
        return {
            "id": self.id,
            "original": self.original_text,
            "rewritten": self.rewritten_text,
            "reasoning": self.reasoning_text,
            "status": self.status.value,
            "error": self.error_message,
            "retryCount": self.retry_count,
            "timestamp": timestamp,
        }


ItemPredicate = Callable[[WorkItem], bool]


def has_status(*statuses: ItemStatus) -> ItemPredicate:
    """Build a predicate matching items in any of the given states."""
    wanted = frozenset(statuses)
    return lambda item: item.status in wanted


class ItemStore:
    """Ordered collection of work items with targeted per-item updates.

    Every mutation replaces exactly one list slot (found through an id index),
    never the whole collection, so concurrent readers always see each item in
    a well-defined state.
    """

    def __init__(self, items: Iterable[WorkItem] = ()) -> None:
        self._items: list[WorkItem] = []
        self._index: dict[str, int] = {}
        self.load(items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self, items: Iterable[WorkItem]) -> None:
        """Replace the entire collection.

        Raises:
            PipelineStateError: If two items share an id
        """
        new_items = list(items)
        index: dict[str, int] = {}
        for position, item in enumerate(new_items):
            if item.id in index:
                raise PipelineStateError(f"Duplicate item id: {item.id}")
            index[item.id] = position

        self._items = new_items
        self._index = index
        log.debug("Item store loaded", total=len(new_items))

    def get(self, item_id: str) -> WorkItem | None:
        """Get one item by id."""
        position = self._index.get(item_id)
        return None if position is None else self._items[position]

    def filter(self, predicate: ItemPredicate) -> list[WorkItem]:
        """Return matching items in collection order without mutating."""
        return [item for item in self._items if predicate(item)]

    def snapshot(self) -> tuple[WorkItem, ...]:
        """Point-in-time, read-only view of the whole collection."""
        return tuple(self._items)

    def update_by_id(self, item_id: str, **changes: Any) -> WorkItem | None:
        """Apply a partial update to exactly one item.

        Returns:
            The updated item, or None (no-op) if the id is absent
        """
        position = self._index.get(item_id)
        if position is None:
            log.debug("Update for unknown item ignored", item_id=item_id)
            return None

        updated = replace(self._items[position], **changes)
        self._items[position] = updated
        return updated

    def requeue_failed(self, max_retries: int | None = None) -> list[WorkItem]:
        """Move Failed items back to Idle and clear their error.

        ``retry_count`` is kept. With ``max_retries`` set, items that already
        failed that many times stay Failed.

        Returns:
            The requeued items
        """
        requeued: list[WorkItem] = []
        exhausted = 0
        for item in self.filter(has_status(ItemStatus.FAILED)):
            if max_retries is not None and item.retry_count >= max_retries:
                exhausted += 1
                continue
            updated = self.update_by_id(item.id, status=ItemStatus.IDLE, error_message=None)
            if updated is not None:
                requeued.append(updated)

        if exhausted:
            log.warning(
                "Items left failed after reaching the retry limit",
                count=exhausted,
                max_retries=max_retries,
            )
        log.info("Failed items requeued", count=len(requeued))
        return requeued

    def reset_processing(self) -> int:
        """Move every Processing item back to Idle; returns how many moved."""
        processing = self.filter(has_status(ItemStatus.PROCESSING))
        for item in processing:
            self.update_by_id(item.id, status=ItemStatus.IDLE)
        return len(processing)
