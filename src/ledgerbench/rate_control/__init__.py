from .base import (
    RATE_CONTROLLERS,
    RateController,
    create_rate_controller,
    register_rate_controller,
)

# Importing the built-in controllers registers them
from .fixed_rate import FixedRateController
from .fixed_load import FixedLoadController
from .linear_rate import LinearRateController
from .no_rate import NoRateController
from .record_rate import RecordRateController
from .replay_rate import ReplayRateController

__all__ = [
    "RATE_CONTROLLERS",
    "RateController",
    "create_rate_controller",
    "register_rate_controller",
    "FixedRateController",
    "FixedLoadController",
    "LinearRateController",
    "NoRateController",
    "RecordRateController",
    "ReplayRateController",
]
