"""
Cross-variant comparison and threshold-based recommendations.

This module turns two variants' summaries into improvement deltas
(baseline minus candidate, so positive numbers mean the candidate is better)
and produces the textual recommendation flags printed with each run.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..models.config import ThresholdConfig
from ..models.results import ComparisonResult, Improvement, ResilienceResult, VariantSummaries
from ..models.samples import MetricKind, SummaryStatistics

logger = logging.getLogger(__name__)

# Decimal places kept for the absolute delta of each metric.
ABSOLUTE_DIGITS: Dict[MetricKind, int] = {
    MetricKind.STARTUP_LATENCY_MS: 0,
    MetricKind.MEMORY_MB: 1,
    MetricKind.CPU_PERCENT: 1,
    MetricKind.RECONNECTION_MS: 0,
}

WITHIN_RANGE = "Performance is within acceptable ranges"
STARTUP_WITHIN_RANGE = "Startup performance is within acceptable ranges"


def _round_half_up(value: float, digits: int) -> Decimal:
    quantum = Decimal(1).scaleb(-digits)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def compare(
    baseline: Optional[SummaryStatistics],
    candidate: Optional[SummaryStatistics],
    absolute_digits: int = 1,
) -> Optional[Improvement]:
    """
    Compute the candidate's improvement over the baseline for one metric.

    `absolute = baseline.avg - candidate.avg` and
    `percentage = absolute / baseline.avg * 100`, rounded half away from zero
    to one decimal place and kept as a string ("80.0").

    Returns:
        None if either summary is missing or the baseline average is zero.
    """
    if baseline is None or candidate is None:
        return None
    if baseline.avg == 0:
        return None

    absolute = baseline.avg - candidate.avg
    percentage = _round_half_up(absolute / baseline.avg * 100, 1)
    if percentage.is_zero():
        percentage = abs(percentage)
    return Improvement(
        percentage=str(percentage),
        absolute=float(_round_half_up(absolute, absolute_digits)),
    )


def compare_variants(
    baseline_id: str,
    baseline: VariantSummaries,
    candidate_id: str,
    candidate: VariantSummaries,
    metrics: Optional[Iterable[MetricKind]] = None,
) -> ComparisonResult:
    """Compare every metric present on either side."""
    if metrics is None:
        metrics = [m for m in MetricKind if m in baseline or m in candidate]

    improvements = {}
    for metric in metrics:
        improvements[metric] = compare(
            baseline.get(metric), candidate.get(metric), ABSOLUTE_DIGITS[metric]
        )
        if improvements[metric] is None:
            logger.info(f"No {metric.value} comparison for {candidate_id} vs {baseline_id}: N/A")
    return ComparisonResult(baseline_id, candidate_id, improvements)


def _format_ms(value: float) -> str:
    if value >= 1000 and value % 1000 == 0:
        return f"{value / 1000:g}s"
    return f"{value:g}ms"


def generate_recommendations(
    summaries: VariantSummaries, thresholds: ThresholdConfig, label: str = "Candidate"
) -> List[str]:
    """
    Flag every metric whose average breaches its threshold.

    A metric without data is flagged as N/A instead of being judged. When
    nothing is flagged, a single "within acceptable ranges" entry is returned.
    """
    checks = [
        (
            MetricKind.STARTUP_LATENCY_MS,
            thresholds.startup_ms,
            f"{label} startup time >{_format_ms(thresholds.startup_ms)}"
            " - optimize initial resource loading",
            "startup time",
        ),
        (
            MetricKind.MEMORY_MB,
            thresholds.memory_mb,
            f"{label} memory usage >{thresholds.memory_mb:g}MB - investigate memory leaks",
            "memory usage",
        ),
        (
            MetricKind.CPU_PERCENT,
            thresholds.cpu_percent,
            f"{label} CPU usage >{thresholds.cpu_percent:g}% - optimize background processes",
            "CPU usage",
        ),
    ]

    recommendations = []
    for metric, limit, message, description in checks:
        if metric not in summaries:
            continue
        stats = summaries[metric]
        if stats is None:
            recommendations.append(f"{label} {description}: N/A - no valid readings")
        elif stats.avg > limit:
            recommendations.append(message)

    if not recommendations:
        recommendations.append(WITHIN_RANGE)
    return recommendations


def generate_startup_recommendations(
    cold: Optional[SummaryStatistics],
    warm: Optional[SummaryStatistics],
    thresholds: ThresholdConfig,
) -> List[str]:
    """Recommendations for a cold versus warm startup run."""
    recommendations = []

    if cold is None:
        recommendations.append("Cold startup time: N/A - no valid readings")
    elif cold.avg > thresholds.startup_ms:
        recommendations.append(
            f"Cold startup time >{_format_ms(thresholds.startup_ms)}"
            " - consider optimizing initial resource loading"
        )

    if warm is None:
        recommendations.append("Warm startup time: N/A - no valid readings")
    elif warm.avg > thresholds.warm_startup_ms:
        recommendations.append(
            f"Warm startup time >{_format_ms(thresholds.warm_startup_ms)}"
            " - investigate caching opportunities"
        )

    if cold is not None and warm is not None and warm.avg > 0:
        if cold.avg / warm.avg > thresholds.cold_warm_ratio:
            recommendations.append(
                "Large gap between cold/warm startup - optimize resource initialization"
            )

    if not recommendations:
        recommendations.append(STARTUP_WITHIN_RANGE)
    return recommendations


def compare_resilience(baseline: ResilienceResult, candidate: ResilienceResult) -> Dict[str, Any]:
    """
    Put two variants' resilience results side by side.

    `improvement` is the baseline reconnection time minus the candidate's, or
    None when either variant never reconnected.
    """
    comparison: Dict[str, Any] = {}

    if baseline.outage is not None and candidate.outage is not None:
        baseline_time = baseline.outage.reconnection_time_ms
        candidate_time = candidate.outage.reconnection_time_ms
        improvement = None
        if baseline_time is not None and candidate_time is not None:
            improvement = baseline_time - candidate_time
        comparison["outageRecovery"] = {
            baseline.variant_id: baseline_time,
            candidate.variant_id: candidate_time,
            "improvement": improvement,
        }

    if baseline.retry is not None and candidate.retry is not None:
        comparison["retryBehavior"] = {
            baseline.variant_id: {
                "attempts": baseline.retry.retry_attempts,
                "successful": baseline.retry.successful_retry,
            },
            candidate.variant_id: {
                "attempts": candidate.retry.retry_attempts,
                "successful": candidate.retry.successful_retry,
            },
        }

    return comparison
