"""
Data models for the benchmark harness.

Configuration Models:
- Application variants and their launch settings
- Harness timing, thresholds, resilience and storage settings

Sample Models:
- Metric kinds, raw sample series and summary statistics
- Skipped-iteration records

Result Models:
- Per-metric improvements and comparison results
- Outage simulation state and retry observations
- The ResultRecord handed to serializers and report generators

Runtime Models:
- The per-run context threaded through every component
"""

from .config import (
    AppConfig,
    AppVariant,
    HarnessConfig,
    ResilienceConfig,
    StorageConfig,
    ThresholdConfig,
)
from .samples import IterationFailure, MetricKind, SampleSeries, SummaryStatistics
from .results import (
    ComparisonResult,
    Improvement,
    OutageSimulation,
    OutageState,
    ResilienceResult,
    ResultRecord,
    RetryAttempt,
    RetryTrialResult,
)
from .runtime import RunContext

__all__ = [
    # Configuration
    "AppConfig",
    "AppVariant",
    "HarnessConfig",
    "ResilienceConfig",
    "StorageConfig",
    "ThresholdConfig",
    # Samples
    "IterationFailure",
    "MetricKind",
    "SampleSeries",
    "SummaryStatistics",
    # Results
    "ComparisonResult",
    "Improvement",
    "OutageSimulation",
    "OutageState",
    "ResilienceResult",
    "ResultRecord",
    "RetryAttempt",
    "RetryTrialResult",
    # Runtime
    "RunContext",
]
