"""
Startup latency measurement.

Each iteration measures the wall-clock time between spawning a variant and
the first moment the process inspector finds it. Iterations run strictly in
order and every launch is terminated before the next one starts.
"""

import logging
from typing import Optional

from ..models.config import AppVariant
from ..models.runtime import RunContext
from ..models.samples import MetricKind, SampleSeries
from ..validation import DetectionTimeout, HarnessError, LaunchFailure
from .clock import Clock, SystemClock
from .controller import ProcessController

logger = logging.getLogger(__name__)


class TimingHarness:
    """
    Repeated startup-latency trials for one variant at a time.

    All delays are in milliseconds.
    """

    def __init__(
        self,
        controller: ProcessController,
        clock: Optional[Clock] = None,
        settle_delay_ms: int = 2000,
        inter_iteration_delay_ms: int = 1000,
        startup_timeout_ms: int = 10000,
        warmup_hold_ms: int = 3000,
        absence_timeout_ms: int = 5000,
    ):
        self.controller = controller
        self.clock = clock or SystemClock()
        self.settle_delay_ms = settle_delay_ms
        self.inter_iteration_delay_ms = inter_iteration_delay_ms
        self.startup_timeout_ms = startup_timeout_ms
        self.warmup_hold_ms = warmup_hold_ms
        self.absence_timeout_ms = absence_timeout_ms

    def measure_startup(
        self,
        variant: AppVariant,
        iterations: int,
        context: Optional[RunContext] = None,
        warm: bool = False,
    ) -> SampleSeries:
        """
        Measure startup latency over `iterations` trials.

        Failed iterations (launch errors, detection timeouts) are recorded in
        `context` and contribute no reading, so the series may be shorter
        than `iterations`.

        Args:
            variant: The variant to launch
            iterations: Number of trials, at least 1
            context: Run context receiving failure records
            warm: Run one warm-up launch/terminate cycle before the trials

        Raises:
            ValueError: If `iterations` is less than 1
        """
        if iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {iterations}")

        series = SampleSeries(kind=MetricKind.STARTUP_LATENCY_MS, variant_id=variant.id)
        label = "warm" if warm else "cold"
        if warm:
            self.warm_up(variant, context)

        for iteration in range(1, iterations + 1):
            logger.info(f"[{variant.id}] {label} startup iteration {iteration}/{iterations}")
            elapsed = self._run_iteration(variant, iteration, context)
            if elapsed is not None:
                series.append(elapsed)
                logger.info(f"[{variant.id}] startup time: {elapsed:.0f} ms")

        logger.info(
            f"[{variant.id}] {label} startup: {len(series)}/{iterations} iterations succeeded"
        )
        return series

    def measure_cold_startup(
        self, variant: AppVariant, iterations: int, context: Optional[RunContext] = None
    ) -> SampleSeries:
        return self.measure_startup(variant, iterations, context, warm=False)

    def measure_warm_startup(
        self, variant: AppVariant, iterations: int, context: Optional[RunContext] = None
    ) -> SampleSeries:
        return self.measure_startup(variant, iterations, context, warm=True)

    def warm_up(self, variant: AppVariant, context: Optional[RunContext] = None) -> bool:
        """Launch the variant, hold it for `warmup_hold_ms`, then terminate it."""
        logger.info(f"[{variant.id}] warm-up launch")
        try:
            self.controller.launch(variant)
            self.clock.sleep_ms(self.warmup_hold_ms)
        except LaunchFailure as e:
            logger.warning(f"[{variant.id}] warm-up failed: {e}")
            self._record(context, variant, 0, e)
            return False
        finally:
            self.controller.terminate(variant)
        self.controller.await_absence(variant, self.absence_timeout_ms)
        self.clock.sleep_ms(self.inter_iteration_delay_ms)
        return True

    def _run_iteration(
        self, variant: AppVariant, iteration: int, context: Optional[RunContext]
    ) -> Optional[float]:
        self.controller.terminate(variant)
        if not self.controller.await_absence(variant, self.absence_timeout_ms):
            error = DetectionTimeout(
                f"Lingering {variant.id} instance did not exit before iteration {iteration}",
                variant.id,
            )
            logger.warning(str(error))
            self._record(context, variant, iteration, error)
            return None
        self.clock.sleep_ms(self.settle_delay_ms)

        started = self.clock.monotonic_ms()
        try:
            self.controller.launch(variant)
            if not self.controller.await_presence(variant, self.startup_timeout_ms):
                raise DetectionTimeout(
                    f"{variant.id} not detected within {self.startup_timeout_ms} ms "
                    f"(iteration {iteration})",
                    variant.id,
                )
            elapsed = self.clock.monotonic_ms() - started
        except (LaunchFailure, DetectionTimeout) as e:
            logger.warning(f"[{variant.id}] iteration {iteration} skipped: {e}")
            self._record(context, variant, iteration, e)
            return None
        finally:
            self.controller.terminate(variant)
            self.clock.sleep_ms(self.inter_iteration_delay_ms)
        return elapsed

    @staticmethod
    def _record(
        context: Optional[RunContext], variant: AppVariant, iteration: int, error: HarnessError
    ) -> None:
        if context is not None:
            context.record_failure(
                variant.id,
                MetricKind.STARTUP_LATENCY_MS,
                error.reason,
                str(error),
                iteration=iteration,
            )
