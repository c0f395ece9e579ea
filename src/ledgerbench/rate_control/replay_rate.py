import logging
import os

from ..errors import RateControlConfigError, TraceFileNotFoundError
from ..utils import now_ms, sleep_ms
from . import trace
from .base import RateController, register_rate_controller

logger = logging.getLogger(__name__)


@register_rate_controller("replay-rate")
class ReplayRateController(RateController):
    """Reproduces the cadence of a recorded trace.

    Submission N is released at round start + ``records[N]``. Past the end
    of the trace the last recorded interval is repeated.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        template = self.options.get("pathTemplate")
        if not template:
            raise RateControlConfigError("replay-rate requires a 'pathTemplate' option")

        self.path = trace.trace_path(template, self.worker_index, self.round_index, self.workspace)
        if not os.path.exists(self.path):
            raise TraceFileNotFoundError(self.path)

        self.input_format = trace.check_format(self.options.get("inputFormat", trace.TEXT))
        self.log_warnings = bool(self.options.get("logWarnings", False))
        self.records = trace.read_trace(self.path, self.input_format)
        if not self.records:
            raise RateControlConfigError(f"Trace file {self.path} holds no records")

        if len(self.records) > 1:
            self.last_interval = self.records[-1] - self.records[-2]
        else:
            self.last_interval = self.records[-1]
        self._overflow_reported = False
        logger.debug(
            f"[W{self.worker_index}] Loaded {len(self.records)} trace records from {self.path}"
        )

    def target_offset(self, index: int) -> int:
        if index < len(self.records):
            return self.records[index]
        if not self._overflow_reported:
            self._overflow_reported = True
            if self.log_warnings:
                logger.warning(
                    f"[W{self.worker_index}] Trace {self.path} exhausted after "
                    f"{len(self.records)} records, repeating the last interval ({self.last_interval} ms)"
                )
        overflow = index - len(self.records) + 1
        return self.records[-1] + overflow * self.last_interval

    async def apply_rate_control(self) -> None:
        index = self.stats.get_total_submitted_tx()
        target = self.stats.get_round_start_time() + self.target_offset(index)
        await sleep_ms(target - now_ms())
