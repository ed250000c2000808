"""
Configuration management for the runbench package.

This module provides a clean interface for loading, validating, and accessing
configuration data from TOML files with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)

from .loader import (
    get_config_paths,
    load_main_config,
    load_toml_file,
    load_variants_config,
)
from .validators import (
    validate_harness_config,
    validate_resilience_config,
    validate_storage_config,
    validate_thresholds_config,
    validate_variants_config,
)

__all__ = [
    # Main interface
    "get_config",
    "load_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "load_variants_config",
    "get_config_paths",
    "validate_harness_config",
    "validate_thresholds_config",
    "validate_resilience_config",
    "validate_storage_config",
    "validate_variants_config",
]
