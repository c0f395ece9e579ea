import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .config import Config
from .connector import TXS_FINISHED, TXS_SUBMITTED
from .models import RoundDescriptor
from .rate_control import create_rate_controller
from .statistics import TransactionStatisticsCollector
from .utils import maybe_await, now
from .workload import load_workload_module

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[int], Any]


def share_of(total: int, worker_index: int, total_workers: int) -> int:
    """Split ``total`` transactions across workers, earlier workers take the remainder."""
    base, remainder = divmod(total, total_workers)
    return base + (1 if worker_index < remainder else 0)


class Worker:
    """Runs the submission loop of every round for one worker index.

    Owns its connector for the whole benchmark and a fresh statistics
    collector and rate controller per round.
    """

    def __init__(
        self,
        worker_index: int,
        connector_factory: ConnectorFactory,
        worker_arguments: Any = None,
        config: Config | None = None,
    ) -> None:
        self.worker_index = worker_index
        self.connector_factory = connector_factory
        self.worker_arguments = worker_arguments if worker_arguments is not None else {}
        self.config = config or Config()
        self.connector = None
        self._stop_requested = False
        self._in_flight: set[asyncio.Task] = set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def stop(self) -> None:
        if not self._stop_requested:
            logger.info(f"[W{self.worker_index}] Stop requested")
        self._stop_requested = True

    async def prepare(self) -> None:
        self.connector = await maybe_await(self.connector_factory(self.worker_index))
        await self.connector.init(True)
        logger.debug(f"[W{self.worker_index}] Connector {self.connector.get_type()} ready")

    # ────────────────────────────────
    # Round execution
    # ────────────────────────────────

    async def execute_round(self, descriptor: RoundDescriptor) -> TransactionStatisticsCollector:
        if self.connector is None:
            await self.prepare()
        connector = self.connector

        stats = TransactionStatisticsCollector(
            self.worker_index, descriptor.round_index, descriptor.label
        )
        connector.on(TXS_SUBMITTED, stats.tx_submitted)
        connector.on(TXS_FINISHED, stats.tx_finished)
        try:
            context = await connector.get_context(descriptor.round_index, self.worker_arguments)
            try:
                workload = load_workload_module(descriptor.workload.module)
                await workload.initialize_workload_module(
                    self.worker_index,
                    descriptor.total_workers,
                    descriptor.round_index,
                    dict(descriptor.workload.arguments),
                    connector,
                    context,
                )
                try:
                    rate_controller = create_rate_controller(
                        descriptor, stats, self.worker_index, self.config
                    )
                    stats.activate()
                    try:
                        await self._submission_loop(descriptor, workload, rate_controller)
                    finally:
                        stats.deactivate()
                        await rate_controller.end()
                finally:
                    await workload.cleanup_workload_module()
            finally:
                await connector.release_context()
        finally:
            connector.off(TXS_SUBMITTED, stats.tx_submitted)
            connector.off(TXS_FINISHED, stats.tx_finished)

        logger.info(
            f"[W{self.worker_index}] Round {descriptor.round_index} ({descriptor.label}) done: "
            f"submitted={stats.get_total_submitted_tx()}, "
            f"succeeded={stats.get_total_successful_tx()}, failed={stats.get_total_failed_tx()}"
        )
        return stats

    async def _submission_loop(self, descriptor: RoundDescriptor, workload, rate_controller) -> None:
        if descriptor.tx_number is not None:
            target = share_of(descriptor.tx_number, self.worker_index, descriptor.total_workers)
        else:
            target = None
        start = now()
        issued = 0

        def keep_going() -> bool:
            if self._stop_requested:
                return False
            if target is not None:
                return issued < target
            return now() - start < descriptor.tx_duration

        while keep_going():
            await rate_controller.apply_rate_control()
            # Rate control may have slept past the end of the round
            if not keep_going():
                break
            task = asyncio.create_task(workload.submit_transaction())
            self._in_flight.add(task)
            task.add_done_callback(self._on_submission_done)
            issued += 1
            # Let the submission start so its telemetry reaches the collector
            await asyncio.sleep(0)

        if self._in_flight:
            logger.debug(
                f"[W{self.worker_index}] Waiting for {len(self._in_flight)} in-flight submissions"
            )
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _on_submission_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, NotImplementedError):
            logger.error(f"[W{self.worker_index}] Workload is incomplete: {error}")
        elif error is not None:
            logger.debug(f"[W{self.worker_index}] Submission failed: {error}")
