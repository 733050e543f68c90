"""
Configuration validation utilities.

Each section of ``config.toml`` has its own validator turning raw TOML data
into the matching dataclass. Missing keys take the dataclass defaults.
"""

import logging
from typing import Any, Dict

from ..models.config import AppConfig, KernelConfig, LoggingConfig, StorageConfig, WssConfig
from ..validation import (
    ValidationError,
    validate_bool,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

STORAGE_FORMATS = ["parquet", "json"]
COMPRESSION_ALGORITHMS = ["snappy", "gzip", "brotli", "lz4", "zstd"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(f"[{name}] must be a table", field_name=name, value=section)
    return section


def validate_wss_config(wss_data: Dict[str, Any]) -> WssConfig:
    """
    Validate the ``[wss]`` section.

    Raises:
        ValidationError: If ``reset_interval`` is not a positive integer or
            ``enabled`` is not a boolean.
    """
    defaults = WssConfig()
    enabled = validate_bool(wss_data.get("enabled", defaults.enabled), field_name="wss.enabled")
    reset_interval = validate_positive_integer(
        wss_data.get("reset_interval", defaults.reset_interval),
        min_value=1,
        field_name="wss.reset_interval",
    )
    return WssConfig(enabled=enabled, reset_interval=reset_interval)


def validate_kernel_config(kernel_data: Dict[str, Any]) -> KernelConfig:
    """Validate the ``[kernel]`` section."""
    defaults = KernelConfig()
    sysfs_root = validate_non_empty_string(
        kernel_data.get("sysfs_root", defaults.sysfs_root), field_name="kernel.sysfs_root"
    )
    procfs_root = validate_non_empty_string(
        kernel_data.get("procfs_root", defaults.procfs_root), field_name="kernel.procfs_root"
    )
    return KernelConfig(sysfs_root=sysfs_root, procfs_root=procfs_root)


def validate_storage_config(storage_data: Dict[str, Any]) -> StorageConfig:
    """Validate the ``[storage]`` section."""
    defaults = StorageConfig()
    format_type = validate_enum_choice(
        storage_data.get("format", defaults.format),
        valid_choices=STORAGE_FORMATS,
        field_name="storage.format",
    )
    compression = validate_enum_choice(
        storage_data.get("compression", defaults.compression),
        valid_choices=COMPRESSION_ALGORITHMS,
        field_name="storage.compression",
    )
    return StorageConfig(format=format_type, compression=compression)


def validate_logging_config(logging_data: Dict[str, Any]) -> LoggingConfig:
    level = validate_enum_choice(
        logging_data.get("level", LoggingConfig().level),
        valid_choices=LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )
    return LoggingConfig(level=level)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate a whole parsed ``config.toml``.

    Args:
        config_data: Parsed TOML data

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If any section fails validation
    """
    app_config = AppConfig(
        wss=validate_wss_config(_section(config_data, "wss")),
        kernel=validate_kernel_config(_section(config_data, "kernel")),
        storage=validate_storage_config(_section(config_data, "storage")),
        logging=validate_logging_config(_section(config_data, "logging")),
    )
    logger.debug(f"Validated configuration: {app_config}")
    return app_config
