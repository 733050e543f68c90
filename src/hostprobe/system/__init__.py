"""
Kernel-facing machine facts.

- sysfs: the ``SysFs`` port over /sys and /proc, with a live implementation
- fakesysfs: an in-memory ``SysFs`` for tests
- topology: NUMA node / core / cache / hugepage hierarchy
- machine: memory, swap and clock facts plus the aggregated ``MachineInfo``
"""

from .fakesysfs import FakeSysFs
from .machine import (
    MACHINE_ARCH,
    ArchFlags,
    detect_machine_arch,
    get_clock_speed,
    get_machine_info,
    get_machine_info_from_config,
    get_machine_memory_capacity,
    get_machine_swap_capacity,
    get_num_cores,
    get_topology,
)
from .sysfs import CacheInfo, RealSysFs, SysFs
from .topology import get_nodes_info

__all__ = [
    # Kernel port
    "SysFs",
    "RealSysFs",
    "FakeSysFs",
    "CacheInfo",
    # Topology
    "get_nodes_info",
    "get_topology",
    # Machine facts
    "ArchFlags",
    "MACHINE_ARCH",
    "detect_machine_arch",
    "get_clock_speed",
    "get_machine_info",
    "get_machine_info_from_config",
    "get_machine_memory_capacity",
    "get_machine_swap_capacity",
    "get_num_cores",
]
