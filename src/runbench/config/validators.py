"""
Configuration validation utilities.

This module turns raw TOML tables into validated configuration dataclasses.
Every error raised here is a ValidationError and aborts the run before any
variant is launched.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import (
    AppVariant,
    HarnessConfig,
    ResilienceConfig,
    StorageConfig,
    ThresholdConfig,
)
from ..validation import (
    ValidationError,
    validate_command,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
    validate_variant_id,
)

logger = logging.getLogger(__name__)

INSPECTOR_CHOICES = ["auto", "psutil", "ps", "tasklist"]
PROBE_CHOICES = ["tcp", "http", "process", "random"]
ROLE_CHOICES = ["baseline", "candidate"]

# Upper bound for any single timing setting (one hour).
_MAX_MS = 3_600_000


def _ms(settings: Dict[str, Any], key: str, default: int, section: str, min_value: int = 1) -> int:
    return validate_positive_integer(
        settings.get(key, default),
        min_value=min_value,
        max_value=_MAX_MS,
        field_name=f"{section}.{key}",
    )


def validate_harness_config(harness_data: Dict[str, Any]) -> HarnessConfig:
    """
    Validate the `[harness]` table.

    Args:
        harness_data: Raw harness configuration from TOML

    Returns:
        Validated HarnessConfig instance

    Raises:
        ValidationError: If validation fails
    """
    defaults = HarnessConfig()
    section = "harness"

    platform_inspector = validate_enum_choice(
        harness_data.get("platform_inspector", defaults.platform_inspector),
        choices=INSPECTOR_CHOICES,
        field_name=f"{section}.platform_inspector",
    )

    config = HarnessConfig(
        platform_inspector=platform_inspector,
        poll_interval_ms=_ms(harness_data, "poll_interval_ms", defaults.poll_interval_ms, section),
        startup_timeout_ms=_ms(harness_data, "startup_timeout_ms", defaults.startup_timeout_ms, section),
        sampler_start_timeout_ms=_ms(
            harness_data, "sampler_start_timeout_ms", defaults.sampler_start_timeout_ms, section
        ),
        settle_delay_ms=_ms(harness_data, "settle_delay_ms", defaults.settle_delay_ms, section, min_value=0),
        inter_iteration_delay_ms=_ms(
            harness_data, "inter_iteration_delay_ms", defaults.inter_iteration_delay_ms, section, min_value=0
        ),
        absence_timeout_ms=_ms(harness_data, "absence_timeout_ms", defaults.absence_timeout_ms, section),
        startup_iterations=validate_positive_integer(
            harness_data.get("startup_iterations", defaults.startup_iterations),
            min_value=1,
            max_value=1000,
            field_name=f"{section}.startup_iterations",
        ),
        sample_duration_ms=_ms(harness_data, "sample_duration_ms", defaults.sample_duration_ms, section),
        sample_interval_ms=_ms(harness_data, "sample_interval_ms", defaults.sample_interval_ms, section),
        warmup_hold_ms=_ms(harness_data, "warmup_hold_ms", defaults.warmup_hold_ms, section, min_value=0),
    )

    if config.sample_interval_ms > config.sample_duration_ms:
        raise ValidationError(
            "harness.sample_interval_ms must not exceed harness.sample_duration_ms",
            field_name="harness.sample_interval_ms",
            value=config.sample_interval_ms,
        )
    if config.poll_interval_ms > config.startup_timeout_ms:
        logger.warning(
            "harness.poll_interval_ms exceeds harness.startup_timeout_ms; "
            "presence checks will run at most once per iteration"
        )

    return config


def validate_thresholds_config(thresholds_data: Dict[str, Any]) -> ThresholdConfig:
    """Validate the `[thresholds]` table."""
    defaults = ThresholdConfig()

    def _threshold(key: str, default: float) -> float:
        return validate_positive_float(
            thresholds_data.get(key, default),
            min_value=0.0,
            field_name=f"thresholds.{key}",
        )

    return ThresholdConfig(
        startup_ms=_threshold("startup_ms", defaults.startup_ms),
        memory_mb=_threshold("memory_mb", defaults.memory_mb),
        cpu_percent=_threshold("cpu_percent", defaults.cpu_percent),
        warm_startup_ms=_threshold("warm_startup_ms", defaults.warm_startup_ms),
        cold_warm_ratio=validate_positive_float(
            thresholds_data.get("cold_warm_ratio", defaults.cold_warm_ratio),
            min_value=1.0,
            field_name="thresholds.cold_warm_ratio",
        ),
    )


def validate_resilience_config(resilience_data: Dict[str, Any]) -> ResilienceConfig:
    """Validate the `[resilience]` table."""
    defaults = ResilienceConfig()
    section = "resilience"

    probe = validate_enum_choice(
        resilience_data.get("probe", defaults.probe),
        choices=PROBE_CHOICES,
        field_name=f"{section}.probe",
    )

    probe_url = resilience_data.get("probe_url", defaults.probe_url)
    if not isinstance(probe_url, str):
        raise ValidationError(f"{section}.probe_url must be a string", field_name=f"{section}.probe_url")
    if probe == "http" and not probe_url.startswith(("http://", "https://")):
        raise ValidationError(
            f"{section}.probe_url must be an http(s) URL when probe = 'http'",
            field_name=f"{section}.probe_url",
            value=probe_url,
        )

    probe_host = resilience_data.get("probe_host", defaults.probe_host)
    if not isinstance(probe_host, str) or not probe_host.strip():
        raise ValidationError(
            f"{section}.probe_host must be a non-empty string",
            field_name=f"{section}.probe_host",
            value=probe_host,
        )

    random_seed: Optional[int] = resilience_data.get("random_seed")
    if random_seed is not None:
        random_seed = validate_positive_integer(random_seed, min_value=0, field_name=f"{section}.random_seed")

    return ResilienceConfig(
        outage_window_ms=_ms(resilience_data, "outage_window_ms", defaults.outage_window_ms, section),
        pre_outage_delay_ms=_ms(
            resilience_data, "pre_outage_delay_ms", defaults.pre_outage_delay_ms, section, min_value=0
        ),
        probe_interval_ms=_ms(resilience_data, "probe_interval_ms", defaults.probe_interval_ms, section),
        max_retries=validate_positive_integer(
            resilience_data.get("max_retries", defaults.max_retries),
            min_value=1,
            max_value=100,
            field_name=f"{section}.max_retries",
        ),
        retry_interval_ms=_ms(resilience_data, "retry_interval_ms", defaults.retry_interval_ms, section),
        probe=probe,
        probe_host=probe_host.strip(),
        probe_port=validate_positive_integer(
            resilience_data.get("probe_port", defaults.probe_port),
            min_value=1,
            max_value=65535,
            field_name=f"{section}.probe_port",
        ),
        probe_url=probe_url,
        probe_timeout_ms=_ms(resilience_data, "probe_timeout_ms", defaults.probe_timeout_ms, section),
        random_success_rate=validate_positive_float(
            resilience_data.get("random_success_rate", defaults.random_success_rate),
            min_value=0.0,
            max_value=1.0,
            field_name=f"{section}.random_success_rate",
        ),
        random_seed=random_seed,
    )


def validate_storage_config(storage_data: Dict[str, Any], config_dir: Optional[Path] = None) -> StorageConfig:
    """Validate the `[storage]` table, resolving `results_dir` against `config_dir`."""
    results_dir = Path(storage_data.get("results_dir", "results"))
    if config_dir is not None and not results_dir.is_absolute():
        results_dir = config_dir / results_dir

    format_type = validate_enum_choice(
        storage_data.get("format", "parquet"),
        choices=["parquet", "json"],
        field_name="storage.format",
    )
    compression = validate_enum_choice(
        storage_data.get("compression", "snappy"),
        choices=["snappy", "gzip", "brotli", "lz4", "zstd"],
        field_name="storage.compression",
    )
    return StorageConfig(results_dir=results_dir, format=format_type, compression=compression)


def validate_variants_config(
    variants_data: List[Dict[str, Any]], config_dir: Optional[Path] = None
) -> List[AppVariant]:
    """
    Validate the `[[variants]]` tables.

    Args:
        variants_data: Raw list of variant tables
        config_dir: Directory used to resolve relative working directories

    Returns:
        List of immutable AppVariant instances, in file order

    Raises:
        ValidationError: On missing fields, duplicate ids or invalid patterns
    """
    if not isinstance(variants_data, list) or not variants_data:
        raise ValidationError("At least one [[variants]] entry is required", field_name="variants")

    variants: List[AppVariant] = []
    seen_ids: List[str] = []

    for index, raw in enumerate(variants_data):
        prefix = f"variants[{index}]"
        if not isinstance(raw, dict):
            raise ValidationError(f"{prefix} must be a table", field_name=prefix, value=raw)

        variant_id = validate_variant_id(raw.get("id"), existing_ids=seen_ids, field_name=f"{prefix}.id")
        seen_ids.append(variant_id)

        working_dir = raw.get("working_dir")
        if working_dir:
            working_dir = Path(working_dir)
            if config_dir is not None and not working_dir.is_absolute():
                working_dir = config_dir / working_dir
        else:
            working_dir = None

        variants.append(
            AppVariant(
                id=variant_id,
                name=str(raw.get("name") or variant_id),
                command=validate_command(raw.get("command"), field_name=f"{prefix}.command"),
                args=tuple(validate_string_list(raw.get("args"), field_name=f"{prefix}.args")),
                working_dir=working_dir,
                process_pattern=validate_regex_pattern(
                    raw.get("process_pattern"), field_name=f"{prefix}.process_pattern"
                ),
                role=validate_enum_choice(
                    raw.get("role", "baseline"), choices=ROLE_CHOICES, field_name=f"{prefix}.role"
                ),
            )
        )

    logger.debug(f"Validated {len(variants)} variants: {seen_ids}")
    return variants
