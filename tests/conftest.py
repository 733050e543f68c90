"""
Pytest configuration and shared fixtures for the hostprobe test suite.

This module provides common fixtures for building fake kernel trees (sysfs,
procfs, cgroup directories) on disk and canned ``FakeSysFs`` topologies.
"""

import sys
from pathlib import Path
from typing import Dict, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostprobe.system.fakesysfs import FakeSysFs  # noqa: E402
from hostprobe.system.sysfs import CacheInfo  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# ============================================================================
# Helpers
# ============================================================================


def write_file(path: Path, content: str) -> Path:
    """Write ``content`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


SMAPS_TEMPLATE = """\
55d1c9a4e000-55d1c9a50000 r--p 00000000 fd:01 1835023                    /usr/bin/cat
Size:                  8 kB
Rss:                   8 kB
Pss:                   8 kB
Referenced:          {first} kB
Anonymous:             0 kB
7ffd3c5a1000-7ffd3c5c2000 rw-p 00000000 00:00 0                          [stack]
Size:                132 kB
Rss:                  12 kB
Pss:                  12 kB
Referenced:          {second} kB
Anonymous:            12 kB
"""


# ============================================================================
# Fake topology
# ============================================================================

NODE_ROOT = "/fakeSysfs/devices/system/node"
NODE_MEMINFO = "Node 0 MemTotal:       32817192 kB"


@pytest.fixture
def two_node_sysfs() -> FakeSysFs:
    """
    Two nodes with six cpus each; every node has three cores with two
    threads apiece, 32K L1 caches private to each core and two hugepage
    sizes reserved once per node.
    """
    sysfs = FakeSysFs()
    sysfs.set_cache_info(CacheInfo(size=32 * 1024, type="unified", level=1, cpus=2))

    nodes_paths = [f"{NODE_ROOT}/node0", f"{NODE_ROOT}/node1"]
    sysfs.set_nodes_paths(nodes_paths)

    cpus_paths: Dict[str, List[str]] = {
        f"{NODE_ROOT}/node0": [f"{NODE_ROOT}/node0/cpu{i}" for i in (0, 1, 2, 6, 7, 8)],
        f"{NODE_ROOT}/node1": [f"{NODE_ROOT}/node1/cpu{i}" for i in (3, 4, 5, 9, 10, 11)],
    }
    sysfs.set_cpus_paths(cpus_paths)

    core_threads = {}
    for node_path, cpus in cpus_paths.items():
        for cpu_path in cpus:
            cpu_id = int(cpu_path.rsplit("cpu", 1)[1])
            core_threads[cpu_path] = str(cpu_id % 6)
    sysfs.set_core_threads(core_threads)

    sysfs.set_memory(NODE_MEMINFO)
    sysfs.set_hugepages(["hugepages-2048kB", "hugepages-1048576kB"])
    sysfs.set_hugepages_nr({
        f"{NODE_ROOT}/node{n}/hugepages/{name}/nr_hugepages": "1"
        for n in (0, 1)
        for name in ("hugepages-2048kB", "hugepages-1048576kB")
    })
    return sysfs


# ============================================================================
# On-disk kernel trees
# ============================================================================


@pytest.fixture
def sysfs_tree(tmp_path: Path) -> Path:
    """
    A minimal sysfs below ``tmp_path/sys``.

    node0 has cpu0 (core id 0) and cpu1 (no topology), meminfo and two
    hugepage sizes; node1 has nothing but an empty directory. cpu0 has an
    L1d and an L3 cache.
    """
    root = tmp_path / "sys"
    node0 = root / "devices/system/node/node0"
    write_file(node0 / "cpu0/topology/core_id", "0\n")
    (node0 / "cpu1").mkdir(parents=True)
    write_file(node0 / "meminfo", NODE_MEMINFO)
    write_file(node0 / "hugepages/hugepages-2048kB/nr_hugepages", "1\n")
    write_file(node0 / "hugepages/hugepages-1048576kB/nr_hugepages", "1\n")
    (root / "devices/system/node/node1").mkdir(parents=True)
    # not a node directory
    write_file(root / "devices/system/node/possible", "0-1\n")

    cache = root / "devices/system/cpu/cpu0/cache"
    write_file(cache / "index0/size", "32K\n")
    write_file(cache / "index0/level", "1\n")
    write_file(cache / "index0/type", "Data\n")
    write_file(cache / "index0/shared_cpu_map", "00000000,00000003\n")
    write_file(cache / "index3/size", "16384K\n")
    write_file(cache / "index3/level", "3\n")
    write_file(cache / "index3/type", "Unified\n")
    write_file(cache / "index3/shared_cpu_map", "ff\n")
    write_file(cache / "uevent", "")

    write_file(root / "class/dmi/id/product_uuid", "4C4C4544-0042-3510-8051-B4C04F4E5732\n")
    return root


@pytest.fixture
def cgroup_tree(tmp_path: Path) -> Dict[str, Path]:
    """
    A cgroup with PIDs 4, 6 and 8 and a procfs where each of them has an
    smaps file and a clear_refs file initialised to ``0``.

    Referenced totals: PID 4 -> 4+100, PID 6 -> 12+100, PID 8 -> 100+100,
    416 kB overall.
    """
    cgroup = tmp_path / "cgroup" / "docker" / "abc"
    write_file(cgroup / "cgroup.procs", "4\n6\n8\n")

    proc = tmp_path / "proc"
    referenced = {4: (4, 100), 6: (12, 100), 8: (100, 100)}
    for pid, (first, second) in referenced.items():
        write_file(proc / str(pid) / "smaps", SMAPS_TEMPLATE.format(first=first, second=second))
        write_file(proc / str(pid) / "clear_refs", "0\n")

    return {"cgroup": cgroup, "procs": cgroup / "cgroup.procs", "proc": proc}


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "wss": {"enabled": True, "reset_interval": 5},
        "kernel": {"sysfs_root": "/host/sys", "procfs_root": "/host/proc"},
        "storage": {"format": "parquet", "compression": "zstd"},
        "logging": {"level": "debug"},
    }


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A valid config.toml on disk."""
    return write_file(
        tmp_path / "config.toml",
        """
[wss]
enabled = true
reset_interval = 4

[kernel]
sysfs_root = "/sys"
procfs_root = "/proc"

[storage]
format = "json"
""",
    )
