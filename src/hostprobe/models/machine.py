"""
Machine topology data models.

The hierarchy mirrors what sysfs exposes: a ``Node`` owns its hugepage
inventory, its node-wide caches and its ``Core`` list; each ``Core`` owns
its private caches and the logical cpus (threads) that report the same
core id on that node. Hardware that is not present is represented by an
empty list, never by a zero-filled entry.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Cache:
    """
    A cpu cache as described by ``/sys/devices/system/cpu/cpuN/cache/indexM``.

    Attributes:
        size: Size in bytes.
        type: "Instruction", "Data" or "Unified", as reported by the kernel.
        level: Distance from the cpu in the hierarchy (1 = closest).
        cpus: Number of logical cpus sharing this cache.
    """

    size: int
    type: str
    level: int
    cpus: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HugePage:
    """Reserved hugepages of one size class on one node."""

    page_size: int  # bytes
    num_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Core:
    """
    A physical core on a node.

    ``core_id`` is the kernel "core id", which is only unique within a node.
    ``threads`` holds logical cpu numbers in ascending order.
    """

    core_id: int
    threads: List[int] = field(default_factory=list)
    caches: List[Cache] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Node:
    """A NUMA node with its memory, hugepages, caches and cores."""

    node_id: int
    memory: int = 0  # bytes
    hugepages: List[HugePage] = field(default_factory=list)
    cores: List[Core] = field(default_factory=list)
    caches: List[Cache] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return asdict(self)


@dataclass
class MachineInfo:
    """
    Machine-level facts aggregated from procfs and sysfs.

    Attributes:
        num_cores: Number of logical cpus across all nodes.
        num_physical_cores: Number of distinct (node, core id) pairs.
        cpu_frequency_khz: Maximum cpu frequency in kHz, 0 when the
            architecture has no frequency concept.
        memory_capacity: Total memory in bytes.
        swap_capacity: Total swap in bytes.
        system_uuid: Platform identifier, empty when unavailable.
        topology: NUMA nodes.
    """

    num_cores: int
    num_physical_cores: int
    cpu_frequency_khz: int
    memory_capacity: int
    swap_capacity: int
    system_uuid: str = ""
    topology: List[Node] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return asdict(self)
