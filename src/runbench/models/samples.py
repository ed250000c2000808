"""
Sample collection data models.

A SampleSeries is the raw, ordered output of a Sampler or TimingHarness run
for a single metric. SummaryStatistics is the reduced view computed once the
series is finished.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class MetricKind(Enum):
    """The metrics a series can hold."""

    STARTUP_LATENCY_MS = "startup_latency_ms"
    MEMORY_MB = "memory_mb"
    CPU_PERCENT = "cpu_percent"
    RECONNECTION_MS = "reconnection_ms"

    @property
    def unit(self) -> str:
        return {
            MetricKind.STARTUP_LATENCY_MS: "ms",
            MetricKind.MEMORY_MB: "MB",
            MetricKind.CPU_PERCENT: "%",
            MetricKind.RECONNECTION_MS: "ms",
        }[self]


@dataclass
class SampleSeries:
    """
    Ordered readings for exactly one metric.

    Insertion order is temporal order. The series is append-only while it is
    being collected and becomes read-only once frozen (which the statistics
    engine does before reducing it).
    """

    kind: MetricKind
    variant_id: str = ""
    _readings: List[float] = field(default_factory=list, repr=False)
    _frozen: bool = field(default=False, repr=False)

    def append(self, value: float) -> None:
        if self._frozen:
            raise ValueError(
                f"Cannot append to a frozen {self.kind.value} series"
            )
        self._readings.append(float(value))

    def freeze(self) -> "SampleSeries":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self):
        return iter(tuple(self._readings))


@dataclass(frozen=True)
class SummaryStatistics:
    """Reduced view of a finished, non-empty series."""

    count: int
    avg: float
    min: float
    max: float
    median: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "median": self.median,
        }


@dataclass(frozen=True)
class IterationFailure:
    """A skipped iteration or reading, kept for the run log instead of the series."""

    variant_id: str
    metric: MetricKind
    iteration: Optional[int]
    reason: str
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant_id": self.variant_id,
            "metric": self.metric.value,
            "iteration": self.iteration,
            "reason": self.reason,
            "message": self.message,
        }
