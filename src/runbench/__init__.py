"""
runbench: comparative performance benchmarking of two application runtimes.

The package launches each application variant under controlled conditions,
measures startup latency, memory and CPU usage, observes recovery from
network outages, and reduces the raw readings into comparable summaries.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and the harness error taxonomy
- system: Process matching and platform process inspectors
- harness: Process control, sampling, timing, statistics, comparison, resilience
- orchestration: One entry operation per benchmark mode
- storage: Result record and series persistence
- cli: Command-line interface

Usage:
    From command line:
        runbench --mode comparison [options]

    Programmatically:
        from runbench import BenchmarkRunner, get_config
        runner = BenchmarkRunner(get_config())
        record = runner.run("comparison")
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .orchestration import BenchmarkRunner, format_summary, verify_variants

# Model classes for external use
from .models import (
    AppConfig,
    AppVariant,
    MetricKind,
    ResultRecord,
    RunContext,
    SampleSeries,
    SummaryStatistics,
)

# Harness building blocks
from .harness import (
    ProcessController,
    ResilienceSimulator,
    Sampler,
    TimingHarness,
    compare,
    summarize,
)
from .system import create_inspector

from .validation import HarnessError, ValidationError

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "BenchmarkRunner",
    "format_summary",
    "verify_variants",
    # Models
    "AppConfig",
    "AppVariant",
    "MetricKind",
    "ResultRecord",
    "RunContext",
    "SampleSeries",
    "SummaryStatistics",
    # Harness
    "ProcessController",
    "ResilienceSimulator",
    "Sampler",
    "TimingHarness",
    "compare",
    "summarize",
    "create_inspector",
    # Errors
    "HarnessError",
    "ValidationError",
]
