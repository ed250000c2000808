"""
Unit tests for configuration validation functionality.

Tests the validation of the harness, thresholds, resilience, storage and
variants tables, including bounds checks and error reporting.
"""

from pathlib import Path

import pytest

from runbench.config.validators import (
    validate_harness_config,
    validate_resilience_config,
    validate_storage_config,
    validate_thresholds_config,
    validate_variants_config,
)
from runbench.validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_integer,
    validate_regex_pattern,
    validate_variant_id,
)


@pytest.mark.unit
class TestHarnessConfigValidation:
    """Test cases for the [harness] table."""

    def test_validate_harness_config_success(self, sample_config_data):
        config = validate_harness_config(sample_config_data["harness"])

        assert config.platform_inspector == "auto"
        assert config.startup_iterations == 5
        assert config.sample_interval_ms == 500
        # Unset keys keep their defaults.
        assert config.warmup_hold_ms == 3000

    def test_empty_table_uses_defaults(self):
        config = validate_harness_config({})
        assert config.startup_timeout_ms == 10000
        assert config.settle_delay_ms == 2000

    def test_invalid_inspector(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_harness_config({"platform_inspector": "wmic"})
        assert exc_info.value.field_name == "harness.platform_inspector"

    def test_zero_iterations_rejected(self):
        with pytest.raises(ValidationError):
            validate_harness_config({"startup_iterations": 0})

    def test_zero_settle_delay_allowed(self):
        assert validate_harness_config({"settle_delay_ms": 0}).settle_delay_ms == 0

    def test_interval_longer_than_duration_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_harness_config({"sample_duration_ms": 1000, "sample_interval_ms": 2000})
        assert "sample_interval_ms" in str(exc_info.value)


@pytest.mark.unit
class TestThresholdsAndResilience:
    """Test cases for the [thresholds] and [resilience] tables."""

    def test_thresholds(self, sample_config_data):
        config = validate_thresholds_config(sample_config_data["thresholds"])

        assert config.startup_ms == 3000.0
        assert config.memory_mb == 100.0
        assert config.cold_warm_ratio == 3.0

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            validate_thresholds_config({"memory_mb": -1})

    def test_resilience_tcp(self, sample_config_data):
        config = validate_resilience_config(sample_config_data["resilience"])

        assert config.probe == "tcp"
        assert config.probe_port == 8080
        assert config.max_retries == 3

    def test_http_probe_requires_url(self):
        with pytest.raises(ValidationError):
            validate_resilience_config({"probe": "http"})

        config = validate_resilience_config({"probe": "http", "probe_url": "http://localhost:8080/health"})
        assert config.probe_url == "http://localhost:8080/health"

    def test_success_rate_bounds(self):
        with pytest.raises(ValidationError):
            validate_resilience_config({"probe": "random", "random_success_rate": 1.2})

    def test_port_bounds(self):
        with pytest.raises(ValidationError):
            validate_resilience_config({"probe_port": 70000})


@pytest.mark.unit
class TestStorageAndVariants:
    """Test cases for the [storage] and [[variants]] tables."""

    def test_storage_resolves_relative_dir(self, temp_dir):
        config = validate_storage_config({"results_dir": "out", "format": "json"}, temp_dir)

        assert config.results_dir == temp_dir / "out"
        assert config.format == "json"

    def test_storage_keeps_absolute_dir(self, temp_dir):
        config = validate_storage_config({"results_dir": str(temp_dir)}, Path("/elsewhere"))
        assert config.results_dir == temp_dir

    def test_storage_invalid_format(self):
        with pytest.raises(ValidationError):
            validate_storage_config({"format": "csv"})

    def test_variants_success(self, sample_variants_data, temp_dir):
        variants = validate_variants_config(sample_variants_data, temp_dir)

        assert [v.id for v in variants] == ["electron", "tauri"]
        assert variants[0].args == ("start",)
        assert variants[0].working_dir == temp_dir / "electron-app"
        assert variants[1].working_dir is None
        assert variants[1].launch_argv == ["npm", "run", "tauri", "dev"]

    def test_duplicate_ids_rejected(self, sample_variants_data):
        sample_variants_data[1]["id"] = "electron"

        with pytest.raises(ValidationError) as exc_info:
            validate_variants_config(sample_variants_data)
        assert "unique" in str(exc_info.value)

    def test_missing_command_rejected(self, sample_variants_data):
        del sample_variants_data[0]["command"]

        with pytest.raises(ValidationError) as exc_info:
            validate_variants_config(sample_variants_data)
        assert exc_info.value.field_name == "variants[0].command"

    def test_invalid_pattern_rejected(self, sample_variants_data):
        sample_variants_data[0]["process_pattern"] = "[Ee"
        with pytest.raises(ValidationError):
            validate_variants_config(sample_variants_data)

    def test_empty_variants_rejected(self):
        with pytest.raises(ValidationError):
            validate_variants_config([])

    def test_invalid_role_rejected(self, sample_variants_data):
        sample_variants_data[1]["role"] = "challenger"
        with pytest.raises(ValidationError):
            validate_variants_config(sample_variants_data)


@pytest.mark.unit
class TestValueValidators:
    """Test cases for the generic value validators."""

    def test_positive_integer(self):
        assert validate_positive_integer("5") == 5
        with pytest.raises(ValidationError):
            validate_positive_integer(True)
        with pytest.raises(ValidationError):
            validate_positive_integer("five")
        with pytest.raises(ValidationError):
            validate_positive_integer(11, max_value=10)

    def test_variant_id(self):
        assert validate_variant_id("tauri-v2") == "tauri-v2"
        with pytest.raises(ValidationError):
            validate_variant_id("tauri app")

    def test_enum_choice_case_insensitive(self):
        assert validate_enum_choice("PARQUET", ["parquet", "json"], case_sensitive=False) == "parquet"

    def test_regex_pattern(self):
        assert validate_regex_pattern("[Ee]lectron") == "[Ee]lectron"
        with pytest.raises(ValidationError):
            validate_regex_pattern("")
