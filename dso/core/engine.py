"""Batch pipeline engine.

One control coroutine drives the run: it selects up to ``concurrency`` Idle
items, marks them Processing, dispatches one task per item and waits for
the whole batch to settle before selecting the next. All store updates
happen on the event loop between awaits, so reconciliations never
interleave and the store needs no lock.

Phases::

    STOPPED -> VALIDATING -> RUNNING -> (DRAINING ->) STOPPED
"""

import asyncio
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum

from dso.config.settings import PipelineConfig
from dso.core.state import ItemStatus, ItemStore, WorkItem, has_status
from dso.core.stats import RunStatistics, compute_statistics
from dso.exceptions import ConfigurationError, NotInitializedError, PipelineStateError
from dso.llm.base import BaseProvider
from dso.llm.parser import TransformResult
from dso.utils.logging import get_logger

log = get_logger(__name__)

UpdateCallback = Callable[[RunStatistics], None]


class EnginePhase(str, Enum):
    """Phase of the engine's control loop."""

    STOPPED = "stopped"
    VALIDATING = "validating"
    RUNNING = "running"
    DRAINING = "draining"


class CancellationToken:
    """Run-scoped stop flag shared by the control loop and its tasks.

    Only the engine cancels it; tasks just read it.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class PipelineEngine:
    """Runs work items through a provider in bounded, non-overlapping batches.

    Usage:
        engine = PipelineEngine(provider, PipelineConfig(concurrency=4))
        engine.load(build_items(records))
        stats = await engine.start()

    ``stop()`` and ``requeue_failed()`` may be called from other coroutines
    while ``start()`` is running; ``snapshot()`` and ``statistics()`` are
    safe to call at any time.
    """

    def __init__(
        self,
        provider: BaseProvider,
        config: PipelineConfig | None = None,
        items: Iterable[WorkItem] = (),
        on_update: UpdateCallback | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            provider: Inference provider implementing the transform contract
            config: Run configuration (defaults apply when omitted)
            items: Initial work items
            on_update: Called with fresh statistics after every batch
                selection and every reconciliation
        """
        self.provider = provider
        self.config = config or PipelineConfig()
        self.store = ItemStore(items)
        self.on_update = on_update

        self._phase = EnginePhase.STOPPED
        self._token: CancellationToken | None = None
        self._connection_valid = False
        self._run_started: float | None = None
        self._processed_at_start = 0
        self._last_run_cancelled = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def phase(self) -> EnginePhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._phase is not EnginePhase.STOPPED

    @property
    def last_run_cancelled(self) -> bool:
        """Whether the most recent run ended through stop()."""
        return self._last_run_cancelled

    def snapshot(self) -> tuple[WorkItem, ...]:
        """Point-in-time copy of all work items."""
        return self.store.snapshot()

    def statistics(self) -> RunStatistics:
        """Derive run statistics from the current item states."""
        elapsed = None
        if self._run_started is not None:
            elapsed = time.monotonic() - self._run_started
        return compute_statistics(
            self.store.snapshot(),
            elapsed_seconds=elapsed,
            processed_at_start=self._processed_at_start,
        )

    # ------------------------------------------------------------------
    # Setup between runs
    # ------------------------------------------------------------------

    def load(self, items: Iterable[WorkItem]) -> None:
        """Replace the work items (e.g. on dataset import)."""
        self._require_stopped("load items")
        self.store.load(items)
        self._notify()

    def replace_config(self, config: PipelineConfig) -> None:
        """Use a new configuration for the next run."""
        self._require_stopped("replace the configuration")
        self.config = config

    def replace_provider(self, provider: BaseProvider) -> None:
        """Swap the provider; the connection will be validated again."""
        self._require_stopped("replace the provider")
        self.provider = provider
        self._connection_valid = False

    def _require_stopped(self, action: str) -> None:
        if self.is_running:
            raise PipelineStateError(f"Cannot {action} while the pipeline is {self._phase.value}")

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    async def start(self) -> RunStatistics:
        """Run until no Idle items remain or ``stop()`` is called.

        Returns:
            Statistics after the loop has stopped

        Raises:
            PipelineStateError: The engine is already running
            NotInitializedError: The provider has no credentials
            ConfigurationError: Connection validation failed
        """
        self._require_stopped("start")

        if not self.provider.is_initialized:
            raise NotInitializedError()

        if len(self.store) == 0:
            log.warning("Nothing to process: no items loaded")
            return self.statistics()

        if all(item.status is ItemStatus.COMPLETED for item in self.store.snapshot()):
            log.info("Job complete: all items have been processed")
            return self.statistics()

        # The token exists before validation so stop() is honored while validating
        token = CancellationToken()
        config = self.config
        self._token = token

        try:
            if not self._connection_valid:
                self._set_phase(EnginePhase.VALIDATING)
                valid = await self.provider.validate(self.provider.model)
                if not valid:
                    raise ConfigurationError(
                        f"Could not validate credentials with model {self.provider.model}. "
                        "Please check your API key and model name."
                    )
                self._connection_valid = True

            if token.cancelled:
                log.info("Stopped before any item was dispatched")
                return self.statistics()

            self._run_started = time.monotonic()
            self._processed_at_start = self.statistics().processed
            self._set_phase(EnginePhase.RUNNING)

            log.info(
                "Pipeline started",
                provider=self.provider.name,
                model=self.provider.model,
                total=len(self.store),
                concurrency=config.concurrency,
                delay_ms=config.delay_ms,
            )

            await self._run_loop(token, config)
        finally:
            self._token = None
            self._last_run_cancelled = token.cancelled
            self._set_phase(EnginePhase.STOPPED)

        stats = self.statistics()
        self._run_started = None
        log.info(
            "Pipeline stopped",
            cancelled=token.cancelled,
            total=stats.total,
            successful=stats.successful,
            failed=stats.failed,
            elapsed_seconds=round(stats.elapsed_seconds or 0.0, 2),
        )
        return stats

    def stop(self) -> None:
        """Cancel the run cooperatively.

        In-flight requests are not interrupted; their results are still
        reconciled while the engine drains. Items currently Processing go
        back to Idle so the next run retries them.
        """
        if self._token is None or self._token.cancelled:
            return

        self._token.cancel()
        reset = self.store.reset_processing()
        self._set_phase(EnginePhase.DRAINING)
        log.info("Stop requested, draining in-flight batch", reset_to_idle=reset)
        self._notify()

    def requeue_failed(self) -> list[WorkItem]:
        """Move Failed items back to Idle, honoring ``config.max_retries``."""
        requeued = self.store.requeue_failed(max_retries=self.config.max_retries)
        self._notify()
        return requeued

    # ------------------------------------------------------------------
    # Processing loop
    # ------------------------------------------------------------------

    async def _run_loop(self, token: CancellationToken, config: PipelineConfig) -> None:
        while not token.cancelled:
            idle = self.store.filter(has_status(ItemStatus.IDLE))
            if not idle:
                log.info("Queue exhausted")
                return

            batch = idle[: config.concurrency]
            for item in batch:
                self.store.update_by_id(item.id, status=ItemStatus.PROCESSING)

            log.debug("Batch dispatched", size=len(batch), remaining_idle=len(idle) - len(batch))
            self._notify()

            # Barrier: batch N+1 never starts before batch N has settled
            await asyncio.gather(*(self._process_item(item, config, token) for item in batch))

    async def _process_item(
        self, item: WorkItem, config: PipelineConfig, token: CancellationToken
    ) -> None:
        if token.cancelled:
            return

        if config.delay_ms > 0:
            await asyncio.sleep(config.delay_ms / 1000)
            if token.cancelled:
                # stop() already moved the item back to Idle
                return

        try:
            result = await self.provider.transform(item.original_text, config)
        except Exception as e:
            self._reconcile_failure(item.id, e)
        else:
            self._reconcile_success(item.id, result)

    def _reconcile_success(self, item_id: str, result: TransformResult) -> None:
        self.store.update_by_id(
            item_id,
            status=ItemStatus.COMPLETED,
            rewritten_text=result.output,
            reasoning_text=result.reasoning,
            error_message=None,
            completed_at=datetime.now(),
        )
        log.debug("Item completed", item_id=item_id)
        self._notify()

    def _reconcile_failure(self, item_id: str, error: Exception) -> None:
        current = self.store.get(item_id)
        if current is None:
            return

        message = str(error) or "Unknown Provider Error"
        self.store.update_by_id(
            item_id,
            status=ItemStatus.FAILED,
            rewritten_text=None,
            reasoning_text=None,
            error_message=message,
            retry_count=current.retry_count + 1,
        )
        log.warning(
            "Item failed",
            item_id=item_id,
            error=message,
            error_type=type(error).__name__,
            retry_count=current.retry_count + 1,
        )
        self._notify()

    # ------------------------------------------------------------------

    def _set_phase(self, phase: EnginePhase) -> None:
        if phase is not self._phase:
            log.debug("Engine phase changed", previous=self._phase.value, phase=phase.value)
            self._phase = phase

    def _notify(self) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(self.statistics())
        except Exception:
            # A failing observer must not leave items stuck in Processing
            log.exception("Update callback failed")
