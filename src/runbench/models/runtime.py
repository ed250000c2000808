"""
Runtime data models.

RunContext is created per harness invocation and passed explicitly through
the components, so repeated runs in one interpreter never share results.
"""

import platform
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .samples import IterationFailure, MetricKind, SampleSeries


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# Series key: (variant_id, metric, phase). Phase separates e.g. cold and warm
# startup series of the same variant; it is "" for ordinary series.
SeriesKey = Tuple[str, MetricKind, str]


@dataclass
class RunContext:
    """
    Per-run accumulation of raw series and skipped iterations.
    """

    mode: str
    timestamp: str = field(default_factory=_utc_timestamp)
    platform: str = field(default_factory=lambda: platform.system().lower())
    series: Dict[SeriesKey, SampleSeries] = field(default_factory=dict)
    failures: List[IterationFailure] = field(default_factory=list)

    def record_failure(
        self,
        variant_id: str,
        metric: MetricKind,
        reason: str,
        message: str = "",
        iteration: Optional[int] = None,
    ) -> IterationFailure:
        failure = IterationFailure(
            variant_id=variant_id,
            metric=metric,
            iteration=iteration,
            reason=reason,
            message=message,
        )
        self.failures.append(failure)
        return failure

    def add_series(self, series: SampleSeries, phase: str = "") -> None:
        self.series[(series.variant_id, series.kind, phase)] = series

    def get_series(
        self, variant_id: str, metric: MetricKind, phase: str = ""
    ) -> Optional[SampleSeries]:
        return self.series.get((variant_id, metric, phase))

    def failures_for(self, variant_id: str) -> List[IterationFailure]:
        return [f for f in self.failures if f.variant_id == variant_id]
