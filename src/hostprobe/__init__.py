"""
hostprobe: host topology and working set size facts for container monitoring.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Data structures for configuration, machine facts and stats
- validation: Error types and validators
- system: Kernel port, NUMA topology and capacity/clock extraction
- collectors: Per-cgroup stats collectors (working set size)
- storage: Export of machine facts

Usage:
    from hostprobe import get_config, get_machine_info_from_config, new_manager_from_config

    config = get_config()
    info = get_machine_info_from_config(config)
    manager = new_manager_from_config(config)
    collector = manager.get_collector("/sys/fs/cgroup/cpu/docker/<id>")
    collector.update_stats(stats)
"""

from .collectors import (
    NoopCollector,
    NoopManager,
    StatsCollector,
    StatsManager,
    WssCollector,
    WssManager,
    new_manager,
    new_manager_from_config,
)
from .config import clear_config_cache, get_config, set_config_path
from .log_setup import setup_logging
from .models import (
    AppConfig,
    Cache,
    ContainerStats,
    Core,
    HugePage,
    MachineInfo,
    Node,
)
from .system import (
    FakeSysFs,
    RealSysFs,
    SysFs,
    get_clock_speed,
    get_machine_info,
    get_machine_info_from_config,
    get_machine_memory_capacity,
    get_machine_swap_capacity,
    get_topology,
)
from .validation import ParseError, TopologyError, ValidationError

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "setup_logging",
    # Models
    "AppConfig",
    "Cache",
    "ContainerStats",
    "Core",
    "HugePage",
    "MachineInfo",
    "Node",
    # Kernel port and machine facts
    "SysFs",
    "RealSysFs",
    "FakeSysFs",
    "get_clock_speed",
    "get_machine_info",
    "get_machine_info_from_config",
    "get_machine_memory_capacity",
    "get_machine_swap_capacity",
    "get_topology",
    # Collectors
    "StatsCollector",
    "StatsManager",
    "NoopCollector",
    "NoopManager",
    "WssCollector",
    "WssManager",
    "new_manager",
    "new_manager_from_config",
    # Errors
    "ParseError",
    "TopologyError",
    "ValidationError",
]
