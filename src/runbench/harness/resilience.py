"""
Network outage and retry observation.

The harness does not cut network links itself. It opens an observation window
around an externally triggered outage and drives the outage state machine
(Idle -> OutageInjected -> Monitoring -> Reconnected | TimedOut) from a
pluggable connectivity probe. A separate bounded retry trial records the
spacing of failed probes.
"""

import logging
from typing import Optional

from ..models.config import AppVariant, ResilienceConfig
from ..models.results import (
    OutageSimulation,
    OutageState,
    ResilienceResult,
    RetryAttempt,
    RetryTrialResult,
)
from ..models.runtime import RunContext
from ..models.samples import MetricKind
from ..validation import DetectionTimeout, HarnessError, LaunchFailure
from .clock import Clock, SystemClock
from .controller import ProcessController
from .probes import Probe

logger = logging.getLogger(__name__)

# The retry trial may run for at most this many retry intervals per allowed retry.
RETRY_BUDGET_FACTOR = 3


class ResilienceSimulator:
    """
    Runs the outage window and retry trial for one variant at a time.

    Args:
        controller: Used to start and stop the variant
        config: Window, interval and retry settings
        probe: Default connectivity predicate
        clock: Time source for every wait
        start_timeout_ms: How long to wait for the variant to appear
    """

    def __init__(
        self,
        controller: ProcessController,
        config: ResilienceConfig,
        probe: Probe,
        clock: Optional[Clock] = None,
        start_timeout_ms: int = 5000,
    ):
        self.controller = controller
        self.config = config
        self.probe = probe
        self.clock = clock or SystemClock()
        self.start_timeout_ms = start_timeout_ms

    def _check(self, probe: Probe) -> bool:
        try:
            return bool(probe())
        except Exception as e:
            logger.debug(f"Connectivity probe raised {type(e).__name__}: {e}; counting as offline")
            return False

    def _start(self, variant: AppVariant) -> None:
        self.controller.launch(variant)
        if not self.controller.await_presence(variant, self.start_timeout_ms):
            raise DetectionTimeout(
                f"{variant.id} did not appear within {self.start_timeout_ms} ms", variant.id
            )

    def simulate_outage(self, variant: AppVariant, probe: Optional[Probe] = None) -> OutageSimulation:
        """
        Observe one outage window on an already running variant.

        If the variant is not running the simulation stays Idle. Otherwise it
        always passes through Monitoring and ends Reconnected on the first
        positive probe, or TimedOut once the window has elapsed.
        """
        probe = probe or self.probe
        simulation = OutageSimulation()
        if not self.controller.is_running(variant):
            logger.warning(f"{variant.id} is not running; outage simulation stays idle")
            return simulation

        simulation.transition_to(OutageState.OUTAGE_INJECTED)
        simulation.started_at = self.clock.monotonic_ms()
        logger.info(f"[{variant.id}] outage window opened ({self.config.outage_window_ms} ms)")
        simulation.transition_to(OutageState.MONITORING)

        last_observed = simulation.started_at
        while True:
            self.clock.sleep_ms(self.config.probe_interval_ms)
            now = self.clock.monotonic_ms()
            if now - simulation.started_at > self.config.outage_window_ms:
                simulation.transition_to(OutageState.TIMED_OUT)
                logger.info(f"[{variant.id}] no reconnection within the outage window")
                break

            simulation.probes += 1
            if self._check(probe):
                simulation.transition_to(OutageState.RECONNECTED)
                simulation.reconnected_at = now
                simulation.reconnection_time_ms = now - simulation.started_at
                logger.info(
                    f"[{variant.id}] reconnected after {simulation.reconnection_time_ms:.0f} ms"
                )
                break

            if len(simulation.retry_log) < self.config.max_retries:
                simulation.retry_log.append(
                    RetryAttempt(
                        attempt_index=len(simulation.retry_log) + 1,
                        observed_at=now,
                        interval_since_last=now - last_observed,
                    )
                )
                last_observed = now
        return simulation

    def run_retry_trial(self, probe: Optional[Probe] = None) -> RetryTrialResult:
        """
        Probe every `retry_interval_ms`, logging failed probes up to `max_retries`.

        Stops early on the first successful probe. Once the retry budget is
        used up, one final probe decides `successful_retry`. The whole trial is
        bounded by `max_retries * 3` retry intervals.
        """
        probe = probe or self.probe
        result = RetryTrialResult()
        max_retries = self.config.max_retries
        interval = self.config.retry_interval_ms
        budget_ms = max_retries * RETRY_BUDGET_FACTOR * interval

        started = self.clock.monotonic_ms()
        last_observed = started
        while True:
            self.clock.sleep_ms(interval)
            now = self.clock.monotonic_ms()
            if now - started > budget_ms:
                logger.info("Retry trial budget elapsed")
                break

            if self._check(probe):
                result.successful_retry = True
                break

            if len(result.attempts) < max_retries:
                result.attempts.append(
                    RetryAttempt(
                        attempt_index=len(result.attempts) + 1,
                        observed_at=now,
                        interval_since_last=now - last_observed,
                    )
                )
                last_observed = now

            if len(result.attempts) >= max_retries:
                result.successful_retry = self._check(probe)
                break

        result.retry_attempts = len(result.attempts)
        result.retry_intervals = [a.interval_since_last for a in result.attempts]
        logger.info(
            f"Retry trial: {result.retry_attempts} failed attempts, "
            f"successful_retry={result.successful_retry}"
        )
        return result

    def run(
        self,
        variant: AppVariant,
        probe: Optional[Probe] = None,
        context: Optional[RunContext] = None,
    ) -> ResilienceResult:
        """
        Run the outage window and then the retry trial, each on a fresh launch.

        Launch and detection failures are reported in `error` and recorded in
        `context`; an outage that could not start stays Idle.
        """
        result = ResilienceResult(variant_id=variant.id)
        errors = []

        try:
            self._start(variant)
            self.clock.sleep_ms(self.config.pre_outage_delay_ms)
            result.outage = self.simulate_outage(variant, probe)
        except (LaunchFailure, DetectionTimeout) as e:
            logger.warning(f"[{variant.id}] outage simulation failed: {e}")
            result.outage = OutageSimulation()
            errors.append(self._describe(e))
            self._record(context, variant, "outage window", e)
        finally:
            self.controller.terminate(variant)
            self.controller.await_absence(variant)

        try:
            self._start(variant)
            result.retry = self.run_retry_trial(probe)
        except (LaunchFailure, DetectionTimeout) as e:
            logger.warning(f"[{variant.id}] retry trial failed: {e}")
            errors.append(self._describe(e))
            self._record(context, variant, "retry trial", e)
        finally:
            self.controller.terminate(variant)
            self.controller.await_absence(variant)

        if errors:
            result.error = "; ".join(errors)
        return result

    @staticmethod
    def _describe(error: HarnessError) -> str:
        return f"{error.reason}: {error}"

    @staticmethod
    def _record(
        context: Optional[RunContext], variant: AppVariant, phase: str, error: HarnessError
    ) -> None:
        if context is not None:
            context.record_failure(
                variant.id, MetricKind.RECONNECTION_MS, error.reason, f"{phase}: {error}"
            )
