import logging
from collections import defaultdict
from collections.abc import Iterable

from .metrics import compute_stats
from .models import Stats
from .tx_status import TxStatus
from .utils import now_ms

logger = logging.getLogger(__name__)


class TransactionStatisticsCollector:
    """Counters for one worker in one round.

    ``tx_submitted`` and ``tx_finished`` are wired to the connector's
    telemetry by the worker; rate controllers only use the getters. Events
    arriving while the collector is inactive are ignored.
    """

    def __init__(self, worker_index: int, round_index: int, round_label: str) -> None:
        self.worker_index = worker_index
        self.round_index = round_index
        self.round_label = round_label

        self.active = False
        self.round_start_time = 0
        self.round_finish_time = 0

        self.total_submitted = 0
        self.total_finished = 0
        self.total_successful = 0
        self.total_failed = 0

        self.first_submit_time = 0
        self.last_submit_time = 0
        self.first_finish_time = 0
        self.last_finish_time = 0

        self.latencies_ms: list[int] = []
        self.status_counts: dict[str, int] = defaultdict(int)

    # ────────────────────────────────
    # Lifecycle
    # ────────────────────────────────

    def activate(self) -> None:
        self.round_start_time = now_ms()
        self.active = True
        logger.debug(
            f"[W{self.worker_index}] Collecting stats for round {self.round_index} ({self.round_label})"
        )

    def deactivate(self) -> None:
        self.round_finish_time = now_ms()
        self.active = False

    # ────────────────────────────────
    # Telemetry handlers
    # ────────────────────────────────

    def tx_submitted(self, count: int) -> None:
        if not self.active:
            return
        t = now_ms()
        if self.total_submitted == 0:
            self.first_submit_time = t
        self.last_submit_time = t
        self.total_submitted += count

    def tx_finished(self, results: TxStatus | Iterable[TxStatus]) -> None:
        if not self.active:
            return
        if isinstance(results, TxStatus):
            results = [results]
        for result in results:
            self._record(result)

    def _record(self, result: TxStatus) -> None:
        t = now_ms()
        if self.total_finished == 0:
            self.first_finish_time = t
        self.last_finish_time = t
        self.total_finished += 1
        self.status_counts[result.get_status()] += 1

        if result.is_committed():
            self.total_successful += 1
            latency = result.get_latency_ms()
            if latency is not None:
                self.latencies_ms.append(latency)
        else:
            self.total_failed += 1

    # ────────────────────────────────
    # Getters
    # ────────────────────────────────

    def get_worker_index(self) -> int:
        return self.worker_index

    def get_round_index(self) -> int:
        return self.round_index

    def get_round_label(self) -> str:
        return self.round_label

    def get_round_start_time(self) -> int:
        return self.round_start_time

    def get_round_finish_time(self) -> int:
        return self.round_finish_time

    def get_total_submitted_tx(self) -> int:
        return self.total_submitted

    def get_total_finished_tx(self) -> int:
        return self.total_finished

    def get_total_successful_tx(self) -> int:
        return self.total_successful

    def get_total_failed_tx(self) -> int:
        return self.total_failed

    def get_average_latency_ms(self) -> float | None:
        if not self.latencies_ms:
            return None
        return sum(self.latencies_ms) / len(self.latencies_ms)

    # ────────────────────────────────
    # Summaries
    # ────────────────────────────────

    def summary(self) -> Stats:
        return summarize([self])


def summarize(collectors: list[TransactionStatisticsCollector]) -> Stats:
    """Merge several collectors (e.g. every worker of a round) into one Stats."""
    latencies: list[float] = []
    status_counts: dict[str, int] = defaultdict(int)
    success = failed = 0
    starts, finishes = [], []
    for c in collectors:
        latencies.extend(ms / 1000.0 for ms in c.latencies_ms)
        success += c.total_successful
        failed += c.total_failed
        for status, count in c.status_counts.items():
            status_counts[status] += count
        if c.round_start_time:
            starts.append(c.round_start_time)
        if c.round_finish_time:
            finishes.append(c.round_finish_time)

    duration_s = None
    if starts and finishes:
        duration_s = (max(finishes) - min(starts)) / 1000.0
    return compute_stats(latencies, success, failed, dict(status_counts), duration_s)
