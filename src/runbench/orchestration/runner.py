"""
Benchmark orchestration: one entry operation per mode.

The BenchmarkRunner wires the harness components together from an AppConfig
and turns a run into a ResultRecord:

- baseline: startup, memory and CPU of a single variant
- comparison: the same for baseline and candidate, plus improvements
- network-test: outage window and retry trial for each variant
- startup: cold versus warm startup latency

Variants are always benchmarked one after another, never concurrently.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..harness import (
    Clock,
    ProcessController,
    ResilienceSimulator,
    Sampler,
    SystemClock,
    TimingHarness,
    compare_resilience,
    compare_variants,
    create_probe,
    generate_recommendations,
    generate_startup_recommendations,
    summarize,
    summarize_all,
)
from ..harness.probes import Probe
from ..models.config import AppConfig, AppVariant
from ..models.results import ResultRecord, VariantSummaries
from ..models.runtime import RunContext
from ..models.samples import MetricKind
from ..system import ProcessInspector, create_inspector, resolve_executable
from ..validation import ValidationError

logger = logging.getLogger(__name__)

MODES = ("baseline", "comparison", "network-test", "startup")


class BenchmarkRunner:
    """
    Runs benchmark modes against the configured variants.

    Args:
        config: Loaded application configuration
        inspector: Process inspector override; selected from config when None
        clock: Time source shared by every component
        controller: Process controller override
        probe_factory: Builds the connectivity probe for a variant
        kill_existing: Terminate pre-existing variant instances instead of failing

    Raises:
        ValidationError: If the configured inspector is unavailable on this OS
    """

    def __init__(
        self,
        config: AppConfig,
        inspector: Optional[ProcessInspector] = None,
        clock: Optional[Clock] = None,
        controller: Optional[ProcessController] = None,
        probe_factory: Optional[Callable[[AppVariant], Probe]] = None,
        kill_existing: bool = False,
    ):
        self.config = config
        self.clock = clock or SystemClock()
        harness = config.harness

        if controller is None:
            if inspector is None:
                try:
                    inspector = create_inspector(harness.platform_inspector)
                except ValueError as e:
                    raise ValidationError(
                        str(e), field_name="harness.platform_inspector",
                        value=harness.platform_inspector,
                    ) from e
            controller = ProcessController(
                inspector,
                clock=self.clock,
                poll_interval_ms=harness.poll_interval_ms,
                absence_timeout_ms=harness.absence_timeout_ms,
            )
        self.controller = controller
        self.inspector = controller.inspector

        self.timing = TimingHarness(
            self.controller,
            clock=self.clock,
            settle_delay_ms=harness.settle_delay_ms,
            inter_iteration_delay_ms=harness.inter_iteration_delay_ms,
            startup_timeout_ms=harness.startup_timeout_ms,
            warmup_hold_ms=harness.warmup_hold_ms,
            absence_timeout_ms=harness.absence_timeout_ms,
        )
        self.sampler = Sampler(
            self.controller, clock=self.clock, start_timeout_ms=harness.sampler_start_timeout_ms
        )
        self.probe_factory = probe_factory or (
            lambda variant: create_probe(config.resilience, self.inspector, variant)
        )
        self.kill_existing = kill_existing

    # --- variant selection -------------------------------------------------

    def _select(self, variant_id: Optional[str], role: str) -> AppVariant:
        if variant_id:
            try:
                return self.config.get_variant(variant_id)
            except KeyError as e:
                raise ValidationError(str(e), field_name="variant", value=variant_id) from e
        candidates = self.config.variants_by_role(role)
        if not candidates:
            raise ValidationError(
                f"No variant with role '{role}' is configured", field_name="variants.role", value=role
            )
        return candidates[0]

    def variant_pair(self) -> Tuple[AppVariant, AppVariant]:
        """Return the (baseline, candidate) variants."""
        return self._select(None, "baseline"), self._select(None, "candidate")

    def _preflight(self, variants: List[AppVariant]) -> None:
        """Refuse to start while any variant already has a running instance."""
        for variant in variants:
            self.controller.ensure_exclusive(variant, kill_existing=self.kill_existing)

    def _new_record(self, context: RunContext) -> ResultRecord:
        return ResultRecord(
            timestamp=context.timestamp, platform=context.platform, mode=context.mode
        )

    # --- building blocks ---------------------------------------------------

    def benchmark_variant(
        self, variant: AppVariant, context: RunContext, iterations: Optional[int] = None
    ) -> VariantSummaries:
        """
        Measure startup latency, memory and CPU of one variant.

        Returns:
            Summary per metric; None where no valid reading was collected.
        """
        harness = self.config.harness
        iterations = iterations or harness.startup_iterations
        logger.info(f"Benchmarking {variant.name} ({variant.id})")

        startup = self.timing.measure_startup(variant, iterations, context)
        context.add_series(startup)

        series = {MetricKind.STARTUP_LATENCY_MS: startup}
        for metric in (MetricKind.MEMORY_MB, MetricKind.CPU_PERCENT):
            collected = self.sampler.collect(
                variant,
                harness.sample_duration_ms,
                harness.sample_interval_ms,
                metric=metric,
                context=context,
            )
            context.add_series(collected)
            series[metric] = collected

        return summarize_all(series)

    # --- modes -------------------------------------------------------------

    def run_baseline(
        self,
        context: Optional[RunContext] = None,
        variant_id: Optional[str] = None,
        iterations: Optional[int] = None,
    ) -> ResultRecord:
        """Benchmark a single variant (the configured baseline by default)."""
        context = context or RunContext(mode="baseline")
        variant = self._select(variant_id, "baseline")
        self._preflight([variant])

        summaries = self.benchmark_variant(variant, context, iterations)

        record = self._new_record(context)
        record.variant_results[variant.id] = summaries
        record.recommendations = generate_recommendations(
            summaries, self.config.thresholds, variant.name
        )
        record.failures = list(context.failures)
        return record

    def run_comparison(
        self, context: Optional[RunContext] = None, iterations: Optional[int] = None
    ) -> ResultRecord:
        """Benchmark baseline then candidate and compare their summaries."""
        context = context or RunContext(mode="comparison")
        baseline, candidate = self.variant_pair()
        self._preflight([baseline, candidate])

        baseline_summaries = self.benchmark_variant(baseline, context, iterations)
        candidate_summaries = self.benchmark_variant(candidate, context, iterations)
        comparison = compare_variants(
            baseline.id, baseline_summaries, candidate.id, candidate_summaries
        )

        record = self._new_record(context)
        record.variant_results[baseline.id] = baseline_summaries
        record.variant_results[candidate.id] = candidate_summaries
        record.comparisons = dict(comparison.improvements)
        record.recommendations = generate_recommendations(
            candidate_summaries, self.config.thresholds, candidate.name
        )
        record.failures = list(context.failures)
        return record

    def run_network_test(
        self, context: Optional[RunContext] = None, variant_id: Optional[str] = None
    ) -> ResultRecord:
        """Observe outage recovery and retry behavior of each variant."""
        context = context or RunContext(mode="network-test")
        if variant_id:
            variants = [self._select(variant_id, "baseline")]
        else:
            variants = list(self.variant_pair())
        self._preflight(variants)

        record = self._new_record(context)
        for variant in variants:
            logger.info(f"Running network resilience tests for {variant.name}")
            simulator = ResilienceSimulator(
                self.controller,
                self.config.resilience,
                self.probe_factory(variant),
                clock=self.clock,
                start_timeout_ms=self.config.harness.sampler_start_timeout_ms,
            )
            record.resilience[variant.id] = simulator.run(variant, context=context)

        if len(variants) == 2:
            baseline, candidate = variants
            record.resilience_comparison = compare_resilience(
                record.resilience[baseline.id], record.resilience[candidate.id]
            )
        record.failures = list(context.failures)
        return record

    def run_startup(
        self,
        context: Optional[RunContext] = None,
        variant_id: Optional[str] = None,
        iterations: Optional[int] = None,
    ) -> ResultRecord:
        """Measure cold and warm startup of one variant, or of every variant."""
        context = context or RunContext(mode="startup")
        variants = [self._select(variant_id, "baseline")] if variant_id else list(self.config.variants)
        self._preflight(variants)
        iterations = iterations or self.config.harness.startup_iterations

        record = self._new_record(context)
        for variant in variants:
            cold = self.timing.measure_cold_startup(variant, iterations, context)
            context.add_series(cold, phase="cold")
            warm = self.timing.measure_warm_startup(variant, iterations, context)
            context.add_series(warm, phase="warm")

            cold_stats, warm_stats = summarize(cold), summarize(warm)
            record.startup[variant.id] = {"cold": cold_stats, "warm": warm_stats}
            record.variant_results[variant.id] = {MetricKind.STARTUP_LATENCY_MS: cold_stats}

            recommendations = generate_startup_recommendations(
                cold_stats, warm_stats, self.config.thresholds
            )
            if len(variants) > 1:
                recommendations = [f"{variant.name}: {r}" for r in recommendations]
            record.recommendations.extend(recommendations)

        record.failures = list(context.failures)
        return record

    def run(
        self,
        mode: str,
        context: Optional[RunContext] = None,
        variant_id: Optional[str] = None,
        iterations: Optional[int] = None,
    ) -> ResultRecord:
        """
        Dispatch to the entry operation of `mode`.

        Raises:
            ValueError: If `mode` is unknown
        """
        context = context or RunContext(mode=mode)
        if mode == "baseline":
            return self.run_baseline(context, variant_id, iterations)
        if mode == "comparison":
            return self.run_comparison(context, iterations)
        if mode == "network-test":
            return self.run_network_test(context, variant_id)
        if mode == "startup":
            return self.run_startup(context, variant_id, iterations)
        raise ValueError(f"Unknown mode '{mode}'. Expected one of {MODES}")


def verify_variants(variants: List[AppVariant]) -> List[Dict[str, Any]]:
    """
    Check that each variant can be launched.

    Returns:
        One `{description, ok, path}` entry per check.
    """
    checks = []
    for variant in variants:
        resolved = resolve_executable(variant.command, variant.working_dir)
        checks.append(
            {
                "description": f"{variant.name} executable",
                "ok": resolved is not None,
                "path": resolved or variant.command,
            }
        )
        if variant.working_dir is not None:
            checks.append(
                {
                    "description": f"{variant.name} working directory",
                    "ok": Path(variant.working_dir).is_dir(),
                    "path": str(variant.working_dir),
                }
            )
    for check in checks:
        status = "ok" if check["ok"] else "MISSING"
        logger.info(f"{check['description']}: {status} ({check['path']})")
    return checks


def _fmt(value: Optional[float], unit: str, digits: int = 1) -> str:
    if value is None:
        return "N/A"
    return f"{value:.{digits}f}{unit}"


def format_summary(record: ResultRecord) -> str:
    """Render a short plain-text summary of a record, using N/A for missing data."""
    lines = [f"Benchmark results ({record.mode}) - {record.timestamp} [{record.platform}]"]

    for variant_id, summaries in record.variant_results.items():
        lines.append(f"  {variant_id}:")
        for metric, stats in summaries.items():
            if stats is None:
                lines.append(f"    {metric.value}: N/A")
                continue
            lines.append(
                f"    {metric.value}: avg {_fmt(stats.avg, metric.unit)}"
                f" (min {_fmt(stats.min, metric.unit)}, max {_fmt(stats.max, metric.unit)},"
                f" median {_fmt(stats.median, metric.unit)}, n={stats.count})"
            )

    for variant_id, phases in record.startup.items():
        for phase, stats in phases.items():
            avg = _fmt(stats.avg if stats else None, "ms", 0)
            lines.append(f"  {variant_id} {phase} startup: {avg} avg")

    if record.comparisons:
        lines.append("  Improvements:")
        for metric, improvement in record.comparisons.items():
            if improvement is None:
                lines.append(f"    {metric.value}: N/A")
            else:
                lines.append(
                    f"    {metric.value}: {improvement.percentage}%"
                    f" ({improvement.absolute:g}{metric.unit})"
                )

    for variant_id, result in record.resilience.items():
        recovery = result.outage.reconnection_time_ms if result.outage else None
        retry_ok = result.retry.successful_retry if result.retry else None
        lines.append(
            f"  {variant_id}: Outage Recovery: {_fmt(recovery, 'ms', 0)},"
            f" Retry Success: {'N/A' if retry_ok is None else retry_ok}"
        )
        if result.error:
            lines.append(f"    error: {result.error}")
    outage_recovery = record.resilience_comparison.get("outageRecovery")
    if outage_recovery:
        lines.append(
            f"  Recovery Time Improvement: {_fmt(outage_recovery['improvement'], 'ms', 0)}"
        )

    if record.recommendations:
        lines.append("Recommendations:")
        lines.extend(f"- {r}" for r in record.recommendations)
    if record.failures:
        lines.append(f"Skipped iterations/readings: {len(record.failures)}")
    return "\n".join(lines)
