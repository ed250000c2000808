"""
Configuration data models.

This module contains the configuration structures for the harness timing
parameters, recommendation thresholds, resilience scenario, result storage,
and the application variants under comparison.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional, Tuple


@dataclass(frozen=True)
class AppVariant:
    """
    One application build under comparison, loaded from `variants.toml`.

    Immutable once constructed; the harness never mutates a variant.
    """

    # Unique identifier (e.g., "electron", "tauri").
    id: str
    # Human-readable display name.
    name: str
    # Executable to launch.
    command: str
    # Arguments passed to the executable.
    args: Tuple[str, ...] = ()
    # Working directory for the launch. None means the current directory.
    working_dir: Optional[Path] = None
    # Regex used to find the running instance by process name or command line.
    process_pattern: str = ""
    # "baseline" (legacy runtime) or "candidate" (runtime being migrated to).
    role: str = "baseline"

    @property
    def launch_argv(self) -> List[str]:
        """The full argument vector used to spawn the variant."""
        return [self.command, *self.args]


@dataclass
class HarnessConfig:
    """
    Timing and platform settings for the harness, from the `[harness]` table.

    All durations are in milliseconds.
    """

    platform_inspector: str = "auto"
    poll_interval_ms: int = 100
    startup_timeout_ms: int = 10000
    sampler_start_timeout_ms: int = 5000
    settle_delay_ms: int = 2000
    inter_iteration_delay_ms: int = 1000
    absence_timeout_ms: int = 5000
    startup_iterations: int = 5
    sample_duration_ms: int = 10000
    sample_interval_ms: int = 500
    warmup_hold_ms: int = 3000


@dataclass
class ThresholdConfig:
    """Recommendation thresholds applied to the candidate variant's averages."""

    startup_ms: float = 3000.0
    memory_mb: float = 100.0
    cpu_percent: float = 5.0
    warm_startup_ms: float = 1000.0
    cold_warm_ratio: float = 3.0


@dataclass
class ResilienceConfig:
    """Settings for the network outage and retry scenario."""

    outage_window_ms: int = 10000
    pre_outage_delay_ms: int = 2000
    probe_interval_ms: int = 500
    max_retries: int = 3
    retry_interval_ms: int = 1000
    # "tcp", "http", "process" or "random"
    probe: str = "tcp"
    probe_host: str = "127.0.0.1"
    probe_port: int = 80
    probe_url: str = ""
    probe_timeout_ms: int = 1000
    random_success_rate: float = 0.7
    random_seed: Optional[int] = None


@dataclass
class StorageConfig:
    """Where and how result records are serialized."""

    results_dir: Path = Path("results")
    format: Literal["parquet", "json"] = "parquet"
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    harness: HarnessConfig
    thresholds: ThresholdConfig
    resilience: ResilienceConfig
    storage: StorageConfig
    variants: List[AppVariant] = field(default_factory=list)

    def get_variant(self, variant_id: str) -> AppVariant:
        """Return the variant with `variant_id` or raise KeyError."""
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        raise KeyError(
            f"Variant '{variant_id}' not found. Available: {[v.id for v in self.variants]}"
        )

    def variants_by_role(self, role: str) -> List[AppVariant]:
        return [v for v in self.variants if v.role == role]
