"""
Result data models handed to the external serializer and report generator.

This module defines the cross-variant comparison structures, the outage
simulation state, and the ResultRecord, the single boundary artifact a
benchmark run produces. Every model offers `to_dict()` returning plain
JSON-compatible data so serialization stays an external concern.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .samples import IterationFailure, MetricKind, SummaryStatistics


@dataclass(frozen=True)
class Improvement:
    """
    Relative and absolute reduction of the candidate's average.

    `percentage` is kept as a string rounded to one decimal place ("80.0") so
    that the serialized record matches the historical result archive.
    """

    percentage: str
    absolute: float

    @property
    def percentage_value(self) -> float:
        return float(self.percentage)

    def to_dict(self) -> Dict[str, Any]:
        return {"percentage": self.percentage, "absolute": self.absolute}


@dataclass
class ComparisonResult:
    """Per-metric improvements of a candidate variant over a baseline variant."""

    baseline_id: str
    candidate_id: str
    improvements: Dict[MetricKind, Optional[Improvement]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            metric.value: (improvement.to_dict() if improvement else None)
            for metric, improvement in self.improvements.items()
        }


class OutageState(Enum):
    """States of the outage simulation state machine."""

    IDLE = "idle"
    OUTAGE_INJECTED = "outage_injected"
    MONITORING = "monitoring"
    RECONNECTED = "reconnected"
    TIMED_OUT = "timed_out"


# Legal transitions; terminal states map to nothing.
OUTAGE_TRANSITIONS: Dict[OutageState, tuple] = {
    OutageState.IDLE: (OutageState.OUTAGE_INJECTED,),
    OutageState.OUTAGE_INJECTED: (OutageState.MONITORING,),
    OutageState.MONITORING: (OutageState.RECONNECTED, OutageState.TIMED_OUT),
    OutageState.RECONNECTED: (),
    OutageState.TIMED_OUT: (),
}


@dataclass(frozen=True)
class RetryAttempt:
    """One failed probe observed during the retry trial."""

    attempt_index: int
    # Monotonic milliseconds at which the failed probe was observed.
    observed_at: float
    interval_since_last: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_index": self.attempt_index,
            "observed_at": self.observed_at,
            "interval_since_last": self.interval_since_last,
        }


@dataclass
class OutageSimulation:
    """
    State of one outage observation window.

    `started_at` and `reconnected_at` are monotonic milliseconds taken from the
    harness clock; `reconnection_time_ms` is their difference.
    """

    state: OutageState = OutageState.IDLE
    started_at: Optional[float] = None
    reconnected_at: Optional[float] = None
    reconnection_time_ms: Optional[float] = None
    probes: int = 0
    history: List[OutageState] = field(default_factory=lambda: [OutageState.IDLE])
    retry_log: List[RetryAttempt] = field(default_factory=list)

    def transition_to(self, new_state: OutageState) -> None:
        """
        Move to `new_state`.

        Raises:
            ValueError: If the transition is not allowed from the current state
        """
        if new_state not in OUTAGE_TRANSITIONS[self.state]:
            raise ValueError(
                f"Illegal outage transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    @property
    def recovery_success(self) -> bool:
        return self.state is OutageState.RECONNECTED

    @property
    def finished(self) -> bool:
        return not OUTAGE_TRANSITIONS[self.state]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "started_at": self.started_at,
            "reconnected_at": self.reconnected_at,
            "reconnection_time": self.reconnection_time_ms,
            "recovery_success": self.recovery_success,
            "probes": self.probes,
            "history": [s.value for s in self.history],
            "retry_log": [attempt.to_dict() for attempt in self.retry_log],
        }


@dataclass
class RetryTrialResult:
    """Outcome of the bounded retry-tracking loop."""

    retry_attempts: int = 0
    retry_intervals: List[float] = field(default_factory=list)
    successful_retry: bool = False
    attempts: List[RetryAttempt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "retry_attempts": self.retry_attempts,
            "retry_intervals": list(self.retry_intervals),
            "successful_retry": self.successful_retry,
        }


@dataclass
class ResilienceResult:
    """Outage and retry observations for a single variant."""

    variant_id: str
    outage: Optional[OutageSimulation] = None
    retry: Optional[RetryTrialResult] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outage": self.outage.to_dict() if self.outage else None,
            "retry": self.retry.to_dict() if self.retry else None,
            "error": self.error,
        }


VariantSummaries = Dict[MetricKind, Optional[SummaryStatistics]]


@dataclass
class ResultRecord:
    """
    The structured record produced by every benchmark mode.

    Summaries may be None when a series had no valid readings; they are
    serialized as null and rendered as "N/A".
    """

    timestamp: str
    platform: str
    mode: str
    variant_results: Dict[str, VariantSummaries] = field(default_factory=dict)
    comparisons: Dict[MetricKind, Optional[Improvement]] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)
    failures: List[IterationFailure] = field(default_factory=list)
    resilience: Dict[str, ResilienceResult] = field(default_factory=dict)
    resilience_comparison: Dict[str, Any] = field(default_factory=dict)
    # variant_id -> {"cold": stats, "warm": stats} for startup runs.
    startup: Dict[str, Dict[str, Optional[SummaryStatistics]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "platform": self.platform,
            "mode": self.mode,
            "variantResults": {
                variant_id: {
                    metric.value: (stats.to_dict() if stats else None)
                    for metric, stats in summaries.items()
                }
                for variant_id, summaries in self.variant_results.items()
            },
            "comparisons": {
                metric.value: (improvement.to_dict() if improvement else None)
                for metric, improvement in self.comparisons.items()
            },
            "recommendations": list(self.recommendations),
            "failures": [failure.to_dict() for failure in self.failures],
        }
        if self.resilience:
            data["resilience"] = {
                variant_id: result.to_dict()
                for variant_id, result in self.resilience.items()
            }
            data["resilienceComparison"] = dict(self.resilience_comparison)
        if self.startup:
            data["startup"] = {
                variant_id: {
                    f"{phase}Startup": (stats.to_dict() if stats else None)
                    for phase, stats in phases.items()
                }
                for variant_id, phases in self.startup.items()
            }
        return data
