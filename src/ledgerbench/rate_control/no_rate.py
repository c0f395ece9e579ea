from ..utils import now_ms, sleep_ms
from .base import RateController, register_rate_controller


@register_rate_controller("no-rate")
class NoRateController(RateController):
    """Idles a worker for the rest of a duration-based round.

    Count-based rounds are left unpaced.
    """

    async def apply_rate_control(self) -> None:
        if self.round.tx_duration is None:
            return
        deadline = self.stats.get_round_start_time() + self.round.tx_duration * 1000.0
        await sleep_ms(deadline - now_ms())
