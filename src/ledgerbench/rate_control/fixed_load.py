import logging

from ..errors import RateControlConfigError
from ..utils import sleep_ms
from .base import RateController, register_rate_controller

logger = logging.getLogger(__name__)

DEFAULT_POLL_MS = 10


@register_rate_controller("fixed-load")
class FixedLoadController(RateController):
    """Keeps a constant number of unfinished transactions in flight."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        load = self._number_option("transactionLoad", 10)
        if load <= 0:
            raise RateControlConfigError("fixed-load needs a positive transactionLoad")
        self.target_load = max(1.0, load / self.number_of_workers)
        self.poll_ms = self._number_option("pollInterval", DEFAULT_POLL_MS)

    def _backlog(self) -> int:
        return self.stats.get_total_submitted_tx() - self.stats.get_total_finished_tx()

    async def apply_rate_control(self) -> None:
        while self._backlog() >= self.target_load:
            # Wait roughly one average transaction before checking again
            avg = self.stats.get_average_latency_ms()
            await sleep_ms(max(self.poll_ms, (avg or 0) / self.target_load))
