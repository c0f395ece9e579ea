import asyncio
import logging
from typing import Any

from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import Config, Keys
from .models import RoundDescriptor, Stats
from .statistics import summarize
from .worker import ConnectorFactory, Worker

logger = logging.getLogger(__name__)


class RoundOrchestrator:
    """Runs the benchmark's rounds with one in-process worker per configured worker.

    Every worker gets its own connector from ``connector_factory`` and runs
    as an asyncio task; rounds run one after another with all workers taking
    part in each.
    """

    def __init__(
        self,
        benchmark_config: dict[str, Any],
        network_config: dict[str, Any],
        worker_arguments: list[Any] | None,
        connector_factory: ConnectorFactory,
        config: Config | None = None,
    ) -> None:
        self.benchmark_config = benchmark_config
        self.network_config = network_config
        self.connector_factory = connector_factory
        self.config = config or Config()

        test = benchmark_config.get("test") or {}
        self.number_of_workers = int((test.get("workers") or {}).get("number", 1))
        if self.number_of_workers < 1:
            raise ValueError("The benchmark needs at least one worker")

        self.rounds = [
            RoundDescriptor.from_round_config(round_config, index, self.number_of_workers)
            for index, round_config in enumerate(test.get("rounds") or [])
        ]

        args = list(worker_arguments or [])
        args.extend({} for _ in range(self.number_of_workers - len(args)))
        self.worker_arguments = args[: self.number_of_workers]

        self.workers: list[Worker] = []
        self.round_results: list[Stats] = []
        self._stop_requested = False
        self.use_progress_bar = self.config.get_bool(Keys.PROGRESS_BAR, False)

    def stop(self) -> None:
        self._stop_requested = True
        for worker in self.workers:
            worker.stop()

    async def _gather_workers(self, coros) -> list[Any]:
        # Let every worker settle before surfacing the first failure
        outcomes = await asyncio.gather(*coros, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes

    async def run(self) -> list[Stats]:
        if not self.rounds:
            logger.warning("No rounds configured, nothing to test")
            return []

        self.workers = [
            Worker(i, self.connector_factory, self.worker_arguments[i], self.config)
            for i in range(self.number_of_workers)
        ]
        if self._stop_requested:
            for worker in self.workers:
                worker.stop()

        await self._gather_workers(w.prepare() for w in self.workers)
        logger.info(
            f"Starting {len(self.rounds)} rounds with {self.number_of_workers} workers"
        )

        progress = None
        task_id = None
        if self.use_progress_bar:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
            )
            progress.start()
            task_id = progress.add_task("[cyan]Benchmarking...", total=len(self.rounds))

        try:
            for descriptor in self.rounds:
                if self._stop_requested:
                    logger.info("Stop requested, skipping the remaining rounds")
                    break
                logger.info(
                    f"Round {descriptor.round_index} ({descriptor.label}): "
                    f"{descriptor.rate_control.type}, "
                    + (
                        f"{descriptor.tx_number} transactions"
                        if descriptor.tx_number is not None
                        else f"{descriptor.tx_duration}s"
                    )
                )
                collectors = await self._gather_workers(
                    w.execute_round(descriptor) for w in self.workers
                )
                stats = summarize(collectors)
                self.round_results.append(stats)
                logger.info(
                    f"Round {descriptor.round_index} ({descriptor.label}) finished: "
                    f"{stats.success} succeeded, {stats.errors} failed | "
                    f"Error rate: {stats.error_rate * 100:.1f}% | "
                    f"Throughput: {stats.throughput or 0:.1f} TPS"
                )
                if progress and task_id is not None:
                    progress.advance(task_id)
        finally:
            if progress:
                progress.stop()

        return self.round_results
