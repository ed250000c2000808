"""
Fixed-interval metric sampling.

The Sampler makes sure a variant is running, polls one metric at a fixed
interval for a bounded duration and terminates the variant afterwards. Zero
readings mean "not found this tick" and are dropped rather than recorded.
"""

import logging
from typing import Callable, Optional

from ..models.config import AppVariant
from ..models.runtime import RunContext
from ..models.samples import MetricKind, SampleSeries
from ..validation import DetectionTimeout, EmptySeriesFailure, HarnessError, LaunchFailure
from .clock import Clock, SystemClock
from .controller import ProcessController

logger = logging.getLogger(__name__)


class Sampler:
    """
    Collects a SampleSeries of memory or CPU readings for one variant.

    Args:
        controller: Used to start, find and stop the variant
        clock: Time source for the sampling loop
        start_timeout_ms: How long to wait for a freshly launched variant
    """

    def __init__(
        self,
        controller: ProcessController,
        clock: Optional[Clock] = None,
        start_timeout_ms: int = 5000,
    ):
        self.controller = controller
        self.clock = clock or SystemClock()
        self.start_timeout_ms = start_timeout_ms

    def _reader_for(self, metric: MetricKind) -> Callable[[str], float]:
        inspector = self.controller.inspector
        if metric is MetricKind.MEMORY_MB:
            return inspector.read_memory_mb
        if metric is MetricKind.CPU_PERCENT:
            return inspector.read_cpu_percent
        raise ValueError(f"Sampler cannot collect {metric.value}")

    def _ensure_running(self, variant: AppVariant) -> None:
        if self.controller.is_running(variant):
            logger.debug(f"{variant.id} already running, sampling existing instance")
            return
        self.controller.launch(variant)
        if not self.controller.await_presence(variant, self.start_timeout_ms):
            raise DetectionTimeout(
                f"{variant.id} did not appear within {self.start_timeout_ms} ms", variant.id
            )

    def collect(
        self,
        variant: AppVariant,
        duration_ms: float,
        interval_ms: float,
        metric: MetricKind = MetricKind.MEMORY_MB,
        context: Optional[RunContext] = None,
    ) -> SampleSeries:
        """
        Sample `metric` every `interval_ms` until `duration_ms` has elapsed.

        The loop never ends early: if the process disappears, the remaining
        ticks read 0 and are discarded. Launch and detection failures yield an
        empty series and are recorded in `context`.

        Returns:
            The series of positive readings, in temporal order.
        """
        reader = self._reader_for(metric)
        series = SampleSeries(kind=metric, variant_id=variant.id)

        try:
            self._ensure_running(variant)
            logger.info(
                f"Sampling {metric.value} of {variant.id} for {duration_ms} ms every {interval_ms} ms"
            )
            started = self.clock.monotonic_ms()
            tick = 0
            while self.clock.monotonic_ms() - started < duration_ms:
                self.clock.sleep_ms(interval_ms)
                tick += 1
                value = reader(variant.process_pattern)
                if value > 0:
                    series.append(value)
                    logger.debug(f"[{variant.id}] tick {tick}: {value:.2f} {metric.unit}")
                else:
                    logger.debug(f"[{variant.id}] tick {tick}: no reading")
        except (LaunchFailure, DetectionTimeout) as e:
            logger.warning(f"Sampling {metric.value} of {variant.id} skipped: {e}")
            self._record(context, variant, metric, e)
        finally:
            self.controller.terminate(variant)

        if not series:
            empty = EmptySeriesFailure(
                f"No valid {metric.value} readings for {variant.id}", variant.id
            )
            logger.warning(str(empty))
            self._record(context, variant, metric, empty)
        return series

    @staticmethod
    def _record(
        context: Optional[RunContext], variant: AppVariant, metric: MetricKind, error: HarnessError
    ) -> None:
        if context is not None:
            context.record_failure(variant.id, metric, error.reason, str(error))
