from dataclasses import dataclass
from typing import Any, Optional
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass
class Stats:
    total: int
    success: int
    errors: int
    mean: float | None
    std: float | None
    p50: float | None
    p90: float | None
    p95: float | None
    p99: float | None
    min: float | None
    max: float | None
    error_rate: float
    status_counts: dict[str, int]
    throughput: float | None = None


# Metrics callback: callable accepting stats dict
MetricsCallback = Callable[[dict[str, Any]], None]


class RateControlSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    opts: dict[str, Any] = Field(default_factory=dict)


class WorkloadSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    # A class, a "package.module:Attr" string or a module path
    module: Any
    arguments: dict[str, Any] = Field(default_factory=dict)


class RoundDescriptor(BaseModel):
    """Everything a worker needs to know to run one round."""

    model_config = ConfigDict(frozen=True)

    label: str
    rate_control: RateControlSpec
    workload: WorkloadSpec
    round_index: int = 0
    tx_duration: Optional[float] = None  # seconds
    tx_number: Optional[int] = None
    total_workers: int = 1

    @model_validator(mode="after")
    def _check_round_length(self) -> "RoundDescriptor":
        if (self.tx_duration is None) == (self.tx_number is None):
            raise ValueError(
                f"Round '{self.label}' must set exactly one of txDuration or txNumber"
            )
        if self.tx_duration is not None and self.tx_duration <= 0:
            raise ValueError(f"Round '{self.label}' needs a positive txDuration")
        if self.tx_number is not None and self.tx_number <= 0:
            raise ValueError(f"Round '{self.label}' needs a positive txNumber")
        if self.total_workers < 1:
            raise ValueError(f"Round '{self.label}' needs at least one worker")
        return self

    @classmethod
    def from_round_config(
        cls, round_config: dict[str, Any], round_index: int, total_workers: int
    ) -> "RoundDescriptor":
        """Build a descriptor from one entry of the benchmark's ``test.rounds`` list."""
        rate_control = round_config.get("rateControl") or {"type": "fixed-rate", "opts": {}}
        return cls(
            label=round_config.get("label", f"round-{round_index}"),
            rate_control=RateControlSpec(
                type=rate_control.get("type", "fixed-rate"),
                opts=rate_control.get("opts") or {},
            ),
            workload=WorkloadSpec(
                module=round_config["workload"]["module"],
                arguments=round_config["workload"].get("arguments") or {},
            ),
            round_index=round_index,
            tx_duration=round_config.get("txDuration"),
            tx_number=round_config.get("txNumber"),
            total_workers=total_workers,
        )
