"""
Read-only access to the kernel pseudo-files describing the machine.

``SysFs`` is the seam between the topology builder and the kernel: every
method either returns content or raises ``FileNotFoundError`` (the file or
directory does not exist, which callers frequently tolerate), another
``OSError`` (permission or device failure) or ``ParseError`` (the file
exists but its content has an unexpected format).

``RealSysFs`` reads the live files; its roots can be relocated so the same
code runs against a copy of /sys and /proc. ``FakeSysFs`` in
``hostprobe.system.fakesysfs`` serves canned content for tests.
"""

import glob
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from ..validation import ParseError

logger = logging.getLogger(__name__)

_CACHE_SIZE_RE = re.compile(r"^\s*(\d+)\s*([KMG]?)\s*$")
_SIZE_MULTIPLIERS = {"": 1, "K": 1024, "M": 1024 * 1024, "G": 1024 * 1024 * 1024}


@dataclass(frozen=True)
class CacheInfo:
    """Raw description of one cache index as read from sysfs."""

    # size in bytes
    size: int
    # cache type - Instruction, Data, Unified
    type: str
    # distance from cpus in a multi-level hierarchy
    level: int
    # number of cpus that can access this cache
    cpus: int


class SysFs(ABC):
    """Abstracts the lowest level reads of sysfs and procfs."""

    @abstractmethod
    def get_nodes_paths(self) -> List[str]:
        """Return paths of all NUMA node directories (may be empty)."""

    @abstractmethod
    def get_cpus_paths(self, node_path: str) -> List[str]:
        """Return paths of the cpu entries below a node directory (may be empty)."""

    @abstractmethod
    def get_core_id(self, cpu_path: str) -> int:
        """Return the kernel core id of a cpu."""

    @abstractmethod
    def get_mem_info(self, node_path: str) -> str:
        """Return the raw meminfo text of a node."""

    @abstractmethod
    def get_hugepages_info(self, hugepages_dir: str) -> List[str]:
        """Return the hugepage type directory names, e.g. ``hugepages-2048kB``."""

    @abstractmethod
    def get_hugepages_nr(self, hugepages_dir: str, hugepage_name: str) -> str:
        """Return the raw content of one hugepage type's ``nr_hugepages`` file."""

    @abstractmethod
    def get_caches(self, cpu_id: int) -> List[str]:
        """Return the cache index directory names accessible to a cpu."""

    @abstractmethod
    def get_cache_info(self, cpu_id: int, cache_name: str) -> CacheInfo:
        """Return size, type, level and sharing cpu count of one cache index."""

    @abstractmethod
    def get_system_uuid(self) -> str:
        """Return a platform identifier for the machine."""


def _read_file(path: str) -> str:
    with open(path, "r") as f:
        return f.read()


def count_cpus_in_map(cpu_map: str) -> int:
    """
    Count the cpus set in a ``shared_cpu_map`` bitmap.

    The kernel prints the bitmap as comma-separated 32-bit hex words, e.g.
    ``00000000,00000003``.

    Raises:
        ParseError: If a word is not valid hexadecimal.
    """
    count = 0
    for mask in cpu_map.strip().split(","):
        try:
            count += bin(int(mask.strip(), 16)).count("1")
        except ValueError as e:
            raise ParseError(
                f"failed to parse cpu map {cpu_map!r}: {e}", content=cpu_map
            ) from e
    return count


def parse_cache_size(raw: str, source: str = "") -> int:
    """Parse a cache size such as ``32K`` into bytes."""
    match = _CACHE_SIZE_RE.match(raw)
    if not match:
        raise ParseError(f"could not parse cache size {raw!r}", source=source, content=raw)
    return int(match.group(1)) * _SIZE_MULTIPLIERS[match.group(2)]


def _parse_int(raw: str, source: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ParseError(f"could not parse integer from {source}: {raw!r}", source=source, content=raw) from e


class RealSysFs(SysFs):
    """
    ``SysFs`` implementation backed by the live kernel files.

    Args:
        sysfs_root: Mount point of sysfs.
        procfs_root: Mount point of procfs (used for PowerPC device-tree ids).
        etc_root: Directory holding ``machine-id`` (s390x fallback).
    """

    def __init__(self, sysfs_root: str = "/sys", procfs_root: str = "/proc", etc_root: str = "/etc"):
        self.sysfs_root = sysfs_root
        self.procfs_root = procfs_root
        self.etc_root = etc_root
        self.node_dir = os.path.join(sysfs_root, "devices", "system", "node")
        self.cpu_dir = os.path.join(sysfs_root, "devices", "system", "cpu")
        self.dmi_dir = os.path.join(sysfs_root, "class", "dmi")
        self.ppc_dev_tree = os.path.join(procfs_root, "device-tree")

    def get_nodes_paths(self) -> List[str]:
        return sorted(glob.glob(os.path.join(self.node_dir, "node*[0-9]")))

    def get_cpus_paths(self, node_path: str) -> List[str]:
        return sorted(glob.glob(os.path.join(node_path, "cpu*[0-9]")))

    def get_core_id(self, cpu_path: str) -> int:
        core_id_path = os.path.join(cpu_path, "topology", "core_id")
        return _parse_int(_read_file(core_id_path), core_id_path)

    def get_mem_info(self, node_path: str) -> str:
        return _read_file(os.path.join(node_path, "meminfo"))

    def get_hugepages_info(self, hugepages_dir: str) -> List[str]:
        return sorted(os.listdir(hugepages_dir))

    def get_hugepages_nr(self, hugepages_dir: str, hugepage_name: str) -> str:
        return _read_file(os.path.join(hugepages_dir, hugepage_name, "nr_hugepages"))

    def get_caches(self, cpu_id: int) -> List[str]:
        cache_path = os.path.join(self.cpu_dir, f"cpu{cpu_id}", "cache")
        # The cache directory also holds "uevent" and "power" entries.
        return sorted(name for name in os.listdir(cache_path) if name.startswith("index"))

    def get_cache_info(self, cpu_id: int, cache_name: str) -> CacheInfo:
        cache_path = os.path.join(self.cpu_dir, f"cpu{cpu_id}", "cache", cache_name)

        size_path = os.path.join(cache_path, "size")
        size = parse_cache_size(_read_file(size_path), size_path)

        level_path = os.path.join(cache_path, "level")
        level = _parse_int(_read_file(level_path), level_path)

        cache_type = _read_file(os.path.join(cache_path, "type")).strip()
        cpus = count_cpus_in_map(_read_file(os.path.join(cache_path, "shared_cpu_map")))

        return CacheInfo(size=size, type=cache_type, level=level, cpus=cpus)

    def get_system_uuid(self) -> str:
        candidates = [
            os.path.join(self.dmi_dir, "id", "product_uuid"),
            os.path.join(self.ppc_dev_tree, "system-id"),
            os.path.join(self.ppc_dev_tree, "vm,uuid"),
            os.path.join(self.etc_root, "machine-id"),
        ]
        last_error: OSError = FileNotFoundError(f"no system uuid file found in {candidates}")
        for path in candidates:
            try:
                return _read_file(path).strip().rstrip("\x00")
            except OSError as e:
                logger.debug(f"Cannot read system uuid from {path}: {e}")
                last_error = e
        raise last_error
