"""
Reduction of a finished series into summary statistics.
"""

import math
from typing import Dict, Optional, Sequence, Union

from ..models.samples import MetricKind, SampleSeries, SummaryStatistics


def summarize(series: Union[SampleSeries, Sequence[float]]) -> Optional[SummaryStatistics]:
    """
    Compute count, average, min, max and median of a series.

    The median is the element at index `len // 2` of the sorted readings, so
    for even-length series the upper of the two middle elements is chosen
    without interpolation. Passing a SampleSeries freezes it.

    Returns:
        SummaryStatistics, or None for an empty series ("no data", never 0).
    """
    if isinstance(series, SampleSeries):
        values = series.freeze().values
    else:
        values = tuple(float(v) for v in series)

    if not values:
        return None

    ordered = sorted(values)
    count = len(ordered)
    # fsum keeps the average inside [min, max]; the clamp covers the last ulp.
    avg = min(max(math.fsum(ordered) / count, ordered[0]), ordered[-1])

    return SummaryStatistics(
        count=count,
        avg=avg,
        min=ordered[0],
        max=ordered[-1],
        median=ordered[count // 2],
    )


def summarize_all(
    series_by_metric: Dict[MetricKind, SampleSeries]
) -> Dict[MetricKind, Optional[SummaryStatistics]]:
    """Summarize each metric's series; empty series map to None."""
    return {metric: summarize(series) for metric, series in series_by_metric.items()}
