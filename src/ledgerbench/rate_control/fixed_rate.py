import logging

from ..utils import now_ms, sleep_ms
from .base import RateController, register_rate_controller

logger = logging.getLogger(__name__)


@register_rate_controller("fixed-rate")
class FixedRateController(RateController):
    """Constant TPS. ``opts.tps`` is the aggregate rate, split across workers."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        tps = self._number_option("tps", 10)
        self.tps_per_worker = tps / self.number_of_workers
        self.sleep_time_ms = 1000.0 / self.tps_per_worker if self.tps_per_worker > 0 else 0.0
        logger.debug(
            f"[W{self.worker_index}] Fixed rate: {self.tps_per_worker:.2f} TPS per worker"
        )

    async def apply_rate_control(self) -> None:
        if self.sleep_time_ms == 0:
            return
        submitted = self.stats.get_total_submitted_tx()
        elapsed = now_ms() - self.stats.get_round_start_time()
        await sleep_ms(self.sleep_time_ms * submitted - elapsed)
