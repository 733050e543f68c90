"""
Data models used throughout the package.

Configuration Models:
- Working set size sampling, kernel roots, storage and logging settings

Machine Models:
- NUMA nodes, cores, caches and hugepages as read from sysfs
- Aggregated machine facts

Stats Models:
- The per-container record collectors write into
"""

from .config import AppConfig, KernelConfig, LoggingConfig, StorageConfig, WssConfig
from .machine import Cache, Core, HugePage, MachineInfo, Node
from .stats import ContainerStats

__all__ = [
    # Configuration
    "AppConfig",
    "KernelConfig",
    "LoggingConfig",
    "StorageConfig",
    "WssConfig",
    # Machine
    "Cache",
    "Core",
    "HugePage",
    "MachineInfo",
    "Node",
    # Stats
    "ContainerStats",
]
