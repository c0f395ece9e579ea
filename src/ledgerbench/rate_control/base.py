import logging
from collections.abc import Callable
from typing import Any

from ..config import Config, Keys
from ..errors import RateControlConfigError
from ..models import RoundDescriptor
from ..statistics import TransactionStatisticsCollector

logger = logging.getLogger(__name__)


class RateController:
    """Paces one worker's submissions for one round.

    Controllers read the worker's statistics collector and never write to it.
    """

    def __init__(
        self,
        round_descriptor: RoundDescriptor,
        stats: TransactionStatisticsCollector,
        worker_index: int,
        config: Config | None = None,
    ) -> None:
        self.round = round_descriptor
        self.stats = stats
        self.worker_index = worker_index
        self.config = config or Config()
        self.options: dict[str, Any] = dict(round_descriptor.rate_control.opts)
        self.round_index = round_descriptor.round_index
        self.round_label = round_descriptor.label
        self.number_of_workers = round_descriptor.total_workers

    @property
    def workspace(self) -> str:
        return self.config.get(Keys.WORKSPACE)

    def _number_option(self, name: str, default: float) -> float:
        value = self.options.get(name, default)
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise RateControlConfigError(
                f"Option '{name}' of {self.round.rate_control.type} must be a number, got {value!r}"
            ) from e

    async def apply_rate_control(self) -> None:
        raise NotImplementedError

    async def end(self) -> None:
        pass


RateControllerFactory = Callable[..., RateController]

RATE_CONTROLLERS: dict[str, RateControllerFactory] = {}


def register_rate_controller(type_name: str):
    def decorator(factory: RateControllerFactory) -> RateControllerFactory:
        if type_name in RATE_CONTROLLERS:
            logger.warning(f"Overriding rate controller registered as '{type_name}'")
        RATE_CONTROLLERS[type_name] = factory
        return factory

    return decorator


def create_rate_controller(
    round_descriptor: RoundDescriptor,
    stats: TransactionStatisticsCollector,
    worker_index: int,
    config: Config | None = None,
) -> RateController:
    type_name = round_descriptor.rate_control.type
    factory = RATE_CONTROLLERS.get(type_name)
    if factory is None:
        known = ", ".join(sorted(RATE_CONTROLLERS))
        raise RateControlConfigError(
            f"Unknown rate control type '{type_name}' (known: {known})"
        )
    controller = factory(round_descriptor, stats, worker_index, config)
    logger.debug(
        f"[W{worker_index}] Created {type_name} controller for round {round_descriptor.round_index}"
    )
    return controller
