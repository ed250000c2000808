"""
Unit tests for configuration loading and the configuration singleton.
"""

import pytest

from runbench.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)
from runbench.validation import ValidationError


@pytest.mark.unit
class TestLoadConfig:
    """Test cases for load_config()."""

    def test_load_config_success(self, config_files):
        config = load_config(config_files["config"])

        assert config.harness.startup_iterations == 5
        assert config.resilience.probe_port == 8080
        assert config.storage.results_dir == config_files["dir"] / "results"
        assert [v.id for v in config.variants] == ["electron", "tauri"]
        assert config.get_variant("electron").working_dir == config_files["dir"] / "electron-app"

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.toml")

    def test_missing_variants_path(self, temp_dir):
        config_file = temp_dir / "config.toml"
        config_file.write_text("[harness]\nstartup_iterations = 3\n")

        with pytest.raises(KeyError):
            load_config(config_file)

    def test_invalid_value_raises_validation_error(self, config_files):
        text = config_files["config"].read_text().replace("startup_iterations = 5", "startup_iterations = 0")
        config_files["config"].write_text(text)

        with pytest.raises(ValidationError):
            load_config(config_files["config"])

    def test_variants_lookup(self, config_files):
        config = load_config(config_files["config"])

        assert [v.id for v in config.variants_by_role("candidate")] == ["tauri"]
        with pytest.raises(KeyError):
            config.get_variant("flutter")


@pytest.mark.unit
class TestConfigSingleton:
    """Test cases for the cached configuration."""

    def test_get_config_caches(self, config_files):
        set_config_path(config_files["config"])
        assert not is_config_loaded()

        first = get_config()
        assert get_config() is first
        assert get_config_info()["variants_count"] == 2

    def test_clear_cache_forces_reload(self, config_files):
        set_config_path(config_files["config"])
        first = get_config()

        clear_config_cache()
        assert not is_config_loaded()
        assert get_config() is not first

    def test_shipped_configuration_loads(self):
        # The autouse fixture restores the default path; nothing is set here.
        config = get_config()
        assert {v.role for v in config.variants} == {"baseline", "candidate"}
