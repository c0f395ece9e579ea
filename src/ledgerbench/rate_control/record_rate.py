import logging
import os

from ..errors import RateControlConfigError
from ..models import RateControlSpec
from ..utils import now_ms
from . import trace
from .base import RateController, create_rate_controller, register_rate_controller

logger = logging.getLogger(__name__)


@register_rate_controller("record-rate")
class RecordRateController(RateController):
    """Wraps another controller and records when each submission went out.

    The trace is written on ``end()`` in a format replay-rate can read back.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        inner = self.options.get("rateController")
        if not isinstance(inner, dict) or "type" not in inner:
            raise RateControlConfigError("record-rate requires a 'rateController' with a 'type'")
        if inner["type"] == "record-rate":
            raise RateControlConfigError("record-rate cannot wrap another record-rate controller")

        template = self.options.get("pathTemplate")
        if not template:
            raise RateControlConfigError("record-rate requires a 'pathTemplate' option")
        self.path = trace.trace_path(template, self.worker_index, self.round_index, self.workspace)
        self.output_format = trace.check_format(self.options.get("outputFormat", trace.TEXT))
        self.log_end = bool(self.options.get("logEnd", False))

        inner_round = self.round.model_copy(
            update={"rate_control": RateControlSpec(type=inner["type"], opts=inner.get("opts") or {})}
        )
        self.inner = create_rate_controller(inner_round, self.stats, self.worker_index, self.config)
        self.records: list[int] = []

    async def apply_rate_control(self) -> None:
        await self.inner.apply_rate_control()
        self.records.append(max(0, now_ms() - self.stats.get_round_start_time()))

    async def end(self) -> None:
        await self.inner.end()
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        trace.write_trace(self.path, self.records, self.output_format)
        if self.log_end:
            logger.info(
                f"[W{self.worker_index}] Recorded {len(self.records)} submission times to {self.path}"
            )
