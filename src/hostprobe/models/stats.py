"""
Per-container statistics record filled in by stats collectors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ContainerStats:
    """
    Mutable stats record handed to each collector on every sampling tick.

    Collectors write only the fields they own; everything else is left as
    the pipeline set it.

    Attributes:
        cgroup_path: Path of the cgroup the record belongs to.
        timestamp: Sampling time in seconds since the epoch.
        wss: Working set size estimate in bytes.
        custom_metrics: Extra values keyed by metric name.
    """

    cgroup_path: str = ""
    timestamp: float = 0.0
    wss: int = 0
    custom_metrics: Dict[str, Any] = field(default_factory=dict)
