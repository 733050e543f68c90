"""
Machine-level capacity and clock facts.

Memory and swap capacity come from ``/proc/meminfo``; the cpu clock comes
from cpufreq's ``cpuinfo_max_freq`` when present and from ``/proc/cpuinfo``
otherwise. Architectures without a cpu frequency concept report 0.

The architecture is read once at import time into an ``ArchFlags`` value;
every function accepts an explicit ``arch`` so callers and tests can
override it.
"""

import logging
import os
import platform
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import psutil

from ..models.config import AppConfig
from ..models.machine import MachineInfo, Node
from ..validation import ParseError
from .parsing import MEMORY_CAPACITY_RE, SWAP_CAPACITY_RE, parse_capacity
from .sysfs import RealSysFs, SysFs
from .topology import count_physical_cores, get_nodes_info

logger = logging.getLogger(__name__)

# Power systems print "clock : 3425.000000MHz" instead of "cpu MHz : ...".
CPU_CLOCK_SPEED_MHZ_RE = re.compile(r"(?:cpu MHz|clock)\s*:\s*([0-9]+\.[0-9]+)(?:MHz)?")
MAX_FREQ_RE = re.compile(r"^\s*([0-9]+)")

MAX_FREQ_FILE = "/sys/devices/system/cpu/cpu0/cpufreq/cpuinfo_max_freq"
MEMINFO_FILE = "/proc/meminfo"
CPUINFO_FILE = "/proc/cpuinfo"


@dataclass(frozen=True)
class ArchFlags:
    """Architecture facts derived from the uname machine string."""

    machine: str
    is_arm32: bool = False
    is_aarch64: bool = False
    is_system_z: bool = False
    is_riscv64: bool = False
    is_mips64: bool = False

    @property
    def has_cpu_frequency(self) -> bool:
        return not (
            self.is_mips64 or self.is_system_z or self.is_aarch64
            or self.is_arm32 or self.is_riscv64
        )


def detect_machine_arch(machine: Optional[str] = None) -> ArchFlags:
    """
    Resolve architecture flags from a uname machine string.

    Args:
        machine: e.g. ``x86_64``, ``aarch64``, ``s390x``. Defaults to the
            running machine.
    """
    if machine is None:
        machine = platform.machine()
        if not machine:
            logger.error("Cannot get machine architecture")
    return ArchFlags(
        machine=machine,
        is_arm32="arm" in machine,
        is_aarch64="aarch64" in machine,
        is_system_z="390" in machine,
        is_riscv64="riscv64" in machine,
        is_mips64="mips64" in machine,
    )


MACHINE_ARCH = detect_machine_arch()


def get_clock_speed(
    cpuinfo: str,
    arch: Optional[ArchFlags] = None,
    max_freq_file: str = MAX_FREQ_FILE,
) -> int:
    """
    Return the cpu clock speed in kHz.

    Args:
        cpuinfo: Content of ``/proc/cpuinfo``, used when ``max_freq_file``
            does not exist.
        arch: Architecture flags, defaults to the running machine.
        max_freq_file: cpufreq file holding the max frequency in kHz.

    Raises:
        ParseError: If neither source yields a frequency.
        OSError: If ``max_freq_file`` exists but cannot be read.
    """
    arch = arch or MACHINE_ARCH
    if not arch.has_cpu_frequency:
        return 0

    # First look through sys to find a max supported cpu frequency.
    if os.path.exists(max_freq_file):
        with open(max_freq_file, "r") as f:
            raw = f.read()
        match = MAX_FREQ_RE.match(raw)
        if match is None:
            raise ParseError(f"could not parse frequency {raw!r}", source=max_freq_file, content=raw)
        return int(match.group(1))

    match = CPU_CLOCK_SPEED_MHZ_RE.search(cpuinfo)
    if match is None:
        raise ParseError(
            f"could not detect clock speed from output: {cpuinfo[:200]!r}",
            source=CPUINFO_FILE,
            content=cpuinfo,
        )
    # MHz -> kHz
    return int(float(match.group(1)) * 1000)


def _read_meminfo(meminfo_file: str) -> str:
    with open(meminfo_file, "r") as f:
        return f.read()


def get_machine_memory_capacity(meminfo_file: str = MEMINFO_FILE) -> int:
    """Return the machine's total memory in bytes, from /proc/meminfo."""
    return parse_capacity(_read_meminfo(meminfo_file), MEMORY_CAPACITY_RE, source=meminfo_file)


def get_machine_swap_capacity(meminfo_file: str = MEMINFO_FILE) -> int:
    """Return the machine's total swap in bytes, from /proc/meminfo."""
    return parse_capacity(_read_meminfo(meminfo_file), SWAP_CAPACITY_RE, source=meminfo_file)


def get_num_cores() -> int:
    """Number of logical cpus as seen by the OS."""
    return psutil.cpu_count() or 1


def get_topology(sysfs: SysFs, arch: Optional[ArchFlags] = None) -> Tuple[List[Node], int]:
    """
    Return the NUMA topology and the number of logical cpus.

    s390x does not expose NUMA node directories; there the node list is
    empty and the core count comes from the OS.
    """
    arch = arch or MACHINE_ARCH
    if arch.is_system_z:
        return [], get_num_cores()
    return get_nodes_info(sysfs)


def get_machine_info(
    sysfs: SysFs,
    procfs_root: str = "/proc",
    arch: Optional[ArchFlags] = None,
    max_freq_file: str = MAX_FREQ_FILE,
) -> MachineInfo:
    """
    Collect machine-level facts into a ``MachineInfo``.

    A missing system uuid is not an error; every other failure propagates.
    """
    arch = arch or MACHINE_ARCH
    meminfo_file = os.path.join(procfs_root, "meminfo")
    cpuinfo_file = os.path.join(procfs_root, "cpuinfo")

    with open(cpuinfo_file, "r") as f:
        cpuinfo = f.read()

    nodes, num_cores = get_topology(sysfs, arch)

    try:
        system_uuid = sysfs.get_system_uuid()
    except OSError as e:
        logger.warning(f"Cannot determine system uuid: {e}")
        system_uuid = ""

    info = MachineInfo(
        num_cores=num_cores,
        num_physical_cores=count_physical_cores(nodes),
        cpu_frequency_khz=get_clock_speed(cpuinfo, arch, max_freq_file),
        memory_capacity=get_machine_memory_capacity(meminfo_file),
        swap_capacity=get_machine_swap_capacity(meminfo_file),
        system_uuid=system_uuid,
        topology=nodes,
    )
    logger.info(
        f"Machine info: {info.num_cores} logical cpus on {len(nodes)} nodes, "
        f"{info.memory_capacity} bytes of memory"
    )
    return info


def get_machine_info_from_config(config: AppConfig, arch: Optional[ArchFlags] = None) -> MachineInfo:
    """Collect machine facts below the ``[kernel]`` roots of ``config``."""
    kernel = config.kernel
    sysfs = RealSysFs(sysfs_root=kernel.sysfs_root, procfs_root=kernel.procfs_root)
    max_freq_file = os.path.join(kernel.sysfs_root, os.path.relpath(MAX_FREQ_FILE, "/sys"))
    return get_machine_info(sysfs, kernel.procfs_root, arch, max_freq_file)
