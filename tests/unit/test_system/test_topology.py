"""
Unit tests for the NUMA topology builder.

Tests core grouping, cache placement, hugepage inventory and the tolerated
and fatal failure modes, using the in-memory FakeSysFs.
"""

import json

import pytest

from hostprobe.models.machine import Cache, Core, HugePage, Node
from hostprobe.system.fakesysfs import FakeSysFs
from hostprobe.system.machine import detect_machine_arch, get_topology
from hostprobe.system.sysfs import CacheInfo
from hostprobe.system.topology import (
    count_physical_cores,
    get_cores_info,
    get_hugepages_info,
    get_nodes_info,
)
from hostprobe.validation import ParseError, TopologyError

X86 = detect_machine_arch("x86_64")
NODE_ROOT = "/fakeSysfs/devices/system/node"


@pytest.mark.unit
class TestGetNodesInfo:
    """Test cases for building the full node list."""

    def test_two_nodes_three_cores_two_threads(self, two_node_sysfs):
        """Test the canonical 2 nodes x 3 cores x 2 threads layout."""
        nodes, num_cores = get_nodes_info(two_node_sysfs)

        assert num_cores == 12
        assert len(nodes) == 2

        cache = Cache(size=32 * 1024, type="unified", level=1, cpus=2)
        expected = []
        for i in range(2):
            node = Node(
                node_id=i,
                memory=33604804608,
                hugepages=[
                    HugePage(page_size=2048 * 1024, num_pages=1),
                    HugePage(page_size=1048576 * 1024, num_pages=1),
                ],
            )
            for j in range(3):
                core_id = i * 3 + j
                node.cores.append(
                    Core(core_id=core_id, threads=[core_id, core_id + 6], caches=[cache])
                )
            expected.append(node)

        assert nodes == expected

    def test_logical_cpus_and_core_pairs(self, two_node_sysfs):
        """Test that every thread is counted once and core pairs are per node."""
        nodes, num_cores = get_nodes_info(two_node_sysfs)

        threads = [t for node in nodes for core in node.cores for t in core.threads]
        assert sorted(threads) == list(range(12))
        assert num_cores == len(threads)
        pairs = {(node.node_id, core.core_id) for node in nodes for core in node.cores}
        assert len(pairs) == count_physical_cores(nodes) == 6

    def test_result_is_stable_across_runs(self, two_node_sysfs):
        """Test that listing order does not change the result."""
        first, _ = get_nodes_info(two_node_sysfs)

        shuffled = {
            node: list(reversed(paths)) for node, paths in two_node_sysfs.cpus_paths.items()
        }
        two_node_sysfs.set_cpus_paths(shuffled)
        two_node_sysfs.set_nodes_paths(list(reversed(two_node_sysfs.nodes_paths)))
        second, _ = get_nodes_info(two_node_sysfs)

        assert first == second

    def test_empty_sysfs_is_an_error(self):
        """Test that no node directory at all is a hard error."""
        with pytest.raises(TopologyError):
            get_nodes_info(FakeSysFs())

    def test_nodes_without_cpus(self):
        """Test memory-only nodes keep memory and hugepages but have no cores."""
        sysfs = FakeSysFs()
        sysfs.set_nodes_paths([f"{NODE_ROOT}/node0", f"{NODE_ROOT}/node1"])
        sysfs.set_memory("MemTotal:       32817192 kB")
        sysfs.set_hugepages(["hugepages-2048kB", "hugepages-1048576kB"])
        sysfs.set_hugepages_nr({
            f"{NODE_ROOT}/node{n}/hugepages/{name}/nr_hugepages": "1"
            for n in (0, 1)
            for name in ("hugepages-2048kB", "hugepages-1048576kB")
        })

        nodes, num_cores = get_nodes_info(sysfs)

        assert num_cores == 0
        assert count_physical_cores(nodes) == 0
        expected_json = [
            {
                "node_id": n,
                "memory": 33604804608,
                "hugepages": [
                    {"page_size": 2048 * 1024, "num_pages": 1},
                    {"page_size": 1048576 * 1024, "num_pages": 1},
                ],
                "cores": [],
                "caches": [],
            }
            for n in (0, 1)
        ]
        assert json.loads(json.dumps([node.to_dict() for node in nodes])) == expected_json

    def test_missing_meminfo_is_an_error(self, two_node_sysfs):
        """Test that a node without meminfo aborts the build."""
        two_node_sysfs.set_memory(None)
        with pytest.raises(FileNotFoundError):
            get_nodes_info(two_node_sysfs)

    def test_unparseable_meminfo_is_an_error(self, two_node_sysfs):
        """Test that meminfo without MemTotal aborts the build."""
        two_node_sysfs.set_memory("Node 0 MemFree: 1 kB")
        with pytest.raises(ParseError):
            get_nodes_info(two_node_sysfs)

    def test_core_id_read_failure_propagates(self, two_node_sysfs):
        """Test that an I/O failure reading a core id is not swallowed."""
        two_node_sysfs.set_core_threads(two_node_sysfs.core_threads, PermissionError("denied"))
        with pytest.raises(PermissionError):
            get_nodes_info(two_node_sysfs)

    def test_missing_cache_info_gives_empty_caches(self, two_node_sysfs):
        """Test that cpus without cache directories yield cores without caches."""
        two_node_sysfs.set_cache_info(None)

        nodes, num_cores = get_nodes_info(two_node_sysfs)

        assert num_cores == 12
        assert all(core.caches == [] for node in nodes for core in node.cores)
        assert all(node.caches == [] for node in nodes)

    def test_shared_l3_is_attached_to_the_node_once(self, two_node_sysfs):
        """Test that a cache shared beyond one core is recorded on the node."""
        l3 = CacheInfo(size=16 * 1024 * 1024, type="Unified", level=3, cpus=6)
        two_node_sysfs.set_cache_info(l3)

        nodes, _ = get_nodes_info(two_node_sysfs)

        for node in nodes:
            assert node.caches == [Cache(size=16 * 1024 * 1024, type="Unified", level=3, cpus=6)]
            assert all(core.caches == [] for core in node.cores)


@pytest.mark.unit
class TestGetCoresInfo:
    """Test cases for grouping cpus into cores."""

    def test_threads_sorted_numerically(self):
        """Test that cpu10 sorts after cpu2."""
        sysfs = FakeSysFs()
        paths = [f"{NODE_ROOT}/node0/cpu10", f"{NODE_ROOT}/node0/cpu2", f"{NODE_ROOT}/node0/cpu1"]
        sysfs.set_core_threads({paths[0]: "1", paths[1]: "1", paths[2]: "0"})

        cores = get_cores_info(sysfs, paths)

        assert cores == [Core(core_id=0, threads=[1]), Core(core_id=1, threads=[2, 10])]

    def test_missing_core_id_propagates(self):
        """Test that a cpu without core id is an error."""
        with pytest.raises(FileNotFoundError):
            get_cores_info(FakeSysFs(), [f"{NODE_ROOT}/node0/cpu0"])


@pytest.mark.unit
class TestGetHugePagesInfo:
    """Test cases for the per-node hugepage inventory."""

    def test_missing_count_file_is_skipped(self):
        """Test that a page size without nr_hugepages is skipped silently."""
        sysfs = FakeSysFs()
        sysfs.set_hugepages(["hugepages-2048kB", "hugepages-1048576kB"])
        sysfs.set_hugepages_nr({"/n/hugepages/hugepages-2048kB/nr_hugepages": "512\n"})

        assert get_hugepages_info(sysfs, "/n/hugepages") == [
            HugePage(page_size=2 * 1024 * 1024, num_pages=512)
        ]

    def test_missing_directory_gives_empty_list(self):
        """Test that a node without hugepages directory has no hugepages."""
        sysfs = FakeSysFs()
        sysfs.set_hugepages([], FileNotFoundError("/n/hugepages"))

        assert get_hugepages_info(sysfs, "/n/hugepages") == []

    def test_malformed_directory_name(self):
        """Test that an unexpected entry name is a parse error."""
        sysfs = FakeSysFs()
        sysfs.set_hugepages(["hugepages-2MB"])

        with pytest.raises(ParseError):
            get_hugepages_info(sysfs, "/n/hugepages")

    def test_malformed_count(self):
        """Test that a non-numeric count is a parse error."""
        sysfs = FakeSysFs()
        sysfs.set_hugepages(["hugepages-2048kB"])
        sysfs.set_hugepages_nr({"/n/hugepages/hugepages-2048kB/nr_hugepages": "many"})

        with pytest.raises(ParseError):
            get_hugepages_info(sysfs, "/n/hugepages")


@pytest.mark.unit
class TestGetTopology:
    """Test cases for the architecture-aware entry point."""

    def test_x86_reads_nodes(self, two_node_sysfs):
        nodes, num_cores = get_topology(two_node_sysfs, X86)
        assert len(nodes) == 2
        assert num_cores == 12

    def test_s390x_skips_numa_nodes(self, mock_psutil_cpu_count):
        """Test that s390x reports the OS cpu count and no nodes."""
        nodes, num_cores = get_topology(FakeSysFs(), detect_machine_arch("s390x"))
        assert nodes == []
        assert num_cores == 8


@pytest.fixture
def mock_psutil_cpu_count():
    from unittest.mock import patch

    with patch("hostprobe.system.machine.psutil.cpu_count", return_value=8) as mock_cpu_count:
        yield mock_cpu_count
