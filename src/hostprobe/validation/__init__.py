"""
Validation and error handling for the hostprobe package.

This module provides the exception vocabulary shared by every component and
the small set of validators used when loading configuration.
"""

from .exceptions import (
    ErrorSeverity,
    ParseError,
    TopologyError,
    ValidationError,
    handle_config_error,
    handle_error,
    handle_file_error,
)
from .validators import (
    validate_bool,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_integer,
)

__all__ = [
    # Exceptions
    "ErrorSeverity",
    "ParseError",
    "TopologyError",
    "ValidationError",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    # Validators
    "validate_bool",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_positive_integer",
]
