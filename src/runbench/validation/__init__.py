"""
Validation and error handling for the runbench package.

This module provides input validation for configuration data, the harness
error taxonomy, and consistent error reporting helpers.
"""

from .exceptions import (
    DetectionTimeout,
    EmptySeriesFailure,
    ErrorSeverity,
    HarnessError,
    LaunchFailure,
    ProcessIdentityConflict,
    SampleReadFailure,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_subprocess_error,
)

from .validators import (
    validate_command,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
    validate_variant_id,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ValidationError",
    "HarnessError",
    "LaunchFailure",
    "DetectionTimeout",
    "SampleReadFailure",
    "EmptySeriesFailure",
    "ProcessIdentityConflict",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_subprocess_error",
    "handle_cli_error",
    # Validators
    "validate_command",
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_regex_pattern",
    "validate_string_list",
    "validate_variant_id",
]
