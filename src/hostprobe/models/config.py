"""
Configuration data models.

This module contains the configuration structures loaded from ``config.toml``:
working set size sampling, kernel filesystem roots, topology storage and
logging.
"""

from dataclasses import dataclass, field
from typing import Literal


@dataclass
class WssConfig:
    """
    Working set size sampling settings (``[wss]``).
    """

    # When False the manager hands out inert collectors.
    enabled: bool = True
    # Number of sampling ticks between two clear_refs writes.
    reset_interval: int = 3


@dataclass
class KernelConfig:
    """
    Roots of the kernel pseudo-filesystems (``[kernel]``).

    Overriding these is mostly useful for tests and for agents running with
    the host's /sys and /proc mounted elsewhere.
    """

    sysfs_root: str = "/sys"
    procfs_root: str = "/proc"


@dataclass
class StorageConfig:
    """
    Topology export settings (``[storage]``).
    """

    format: Literal["parquet", "json"] = "parquet"
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    wss: WssConfig = field(default_factory=WssConfig)
    kernel: KernelConfig = field(default_factory=KernelConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
