import logging

from ..errors import RateControlConfigError
from ..utils import now_ms, sleep_ms
from .base import RateController, register_rate_controller

logger = logging.getLogger(__name__)

# Sleeps shorter than this are not worth a context switch
MIN_SLEEP_MS = 5


@register_rate_controller("linear-rate")
class LinearRateController(RateController):
    """Ramps the sending rate from ``startingTps`` to ``finishingTps``.

    The interval between submissions is interpolated by elapsed time for
    duration-based rounds and by submitted count for count-based rounds.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        starting = self._number_option("startingTps", 20) / self.number_of_workers
        finishing = self._number_option("finishingTps", 80) / self.number_of_workers
        if starting <= 0 or finishing <= 0:
            raise RateControlConfigError("linear-rate needs positive startingTps and finishingTps")

        self.starting_sleep_ms = 1000.0 / starting
        self.finishing_sleep_ms = 1000.0 / finishing
        delta = self.finishing_sleep_ms - self.starting_sleep_ms

        if self.round.tx_number is not None:
            per_worker = max(1.0, self.round.tx_number / self.number_of_workers)
            self.gradient = delta / per_worker
            self._by_count = True
        else:
            self.gradient = delta / (self.round.tx_duration * 1000.0)
            self._by_count = False

    def _interval_ms(self) -> float:
        if self._by_count:
            progress = self.stats.get_total_submitted_tx()
        else:
            progress = now_ms() - self.stats.get_round_start_time()
        return self.starting_sleep_ms + progress * self.gradient

    async def apply_rate_control(self) -> None:
        interval = self._interval_ms()
        if interval > MIN_SLEEP_MS:
            await sleep_ms(interval)
