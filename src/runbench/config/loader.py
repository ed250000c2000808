"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of TOML configuration
files: the main config.toml and the variants.toml it points to.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """Load the main configuration file (config.toml)."""
    return load_toml_file(config_path, "main configuration file")


def load_variants_config(variants_path: Path) -> List[Dict[str, Any]]:
    """
    Load the variants configuration file (variants.toml).

    Returns:
        List of raw `[[variants]]` tables
    """
    variants_data = load_toml_file(variants_path, "variants configuration file")
    return variants_data.get("variants", [])


def get_config_paths(main_config_data: Dict[str, Any], config_dir: Path) -> Dict[str, Path]:
    """
    Resolve the sub-configuration paths named in the `[paths]` table.

    Relative paths are resolved against the directory of config.toml.

    Raises:
        KeyError: If required path keys are missing
    """
    paths_data = main_config_data.get("paths", {})

    variants_file = paths_data.get("variants_config")
    if not variants_file:
        raise KeyError("Missing 'variants_config' path in [paths] section of config.toml")

    return {
        "variants": config_dir / variants_file,
    }
