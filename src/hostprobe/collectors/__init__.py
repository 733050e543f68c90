"""
Per-cgroup stats collectors.

- Abstract collector and manager contracts
- Inert implementations for cgroups or hosts where a metric is unavailable
- Working set size estimation from the Referenced page flag
"""

from .base import NoopCollector, NoopManager, StatsCollector, StatsManager
from .wss import WssCollector, WssManager, new_manager, new_manager_from_config

__all__ = [
    "StatsCollector",
    "StatsManager",
    "NoopCollector",
    "NoopManager",
    "WssCollector",
    "WssManager",
    "new_manager",
    "new_manager_from_config",
]
