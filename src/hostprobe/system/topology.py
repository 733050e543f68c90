"""
NUMA topology builder.

Walks the node directories exposed through ``SysFs`` and assembles the
Node -> Core -> {Cache, Thread} hierarchy together with each node's memory
and hugepage inventory.

Tolerated gaps:
- a node without cpu entries (memory-only node) gets an empty core list;
- a cpu without a cache directory (e.g. some arm64 guests) contributes no
  caches;
- a missing hugepages directory, or a missing ``nr_hugepages`` for one page
  size, is skipped.

Anything else (missing node meminfo, unreadable core id, malformed content)
aborts the build.
"""

import logging
import os
import re
from collections import defaultdict
from typing import Dict, List, Tuple

from ..models.machine import Cache, Core, HugePage, Node
from ..validation import ParseError, TopologyError
from .parsing import MEMORY_CAPACITY_RE, get_matched_int, parse_capacity
from .sysfs import SysFs

logger = logging.getLogger(__name__)

NODE_DIR_RE = re.compile(r"node([0-9]+)$")
CPU_DIR_RE = re.compile(r"cpu([0-9]+)$")
HUGEPAGE_DIR_RE = re.compile(r"^hugepages-([0-9]+)kB$")

CACHE_LEVEL_2 = 2


def get_nodes_info(sysfs: SysFs) -> Tuple[List[Node], int]:
    """
    Build the node list from sysfs.

    Args:
        sysfs: Kernel port to read from.

    Returns:
        A tuple of (nodes ordered by node id, number of logical cpus found
        across all nodes).

    Raises:
        TopologyError: If sysfs exposes no node directory at all.
        FileNotFoundError: If a node has no meminfo.
        ParseError: If a kernel file has an unexpected format.
        OSError: On any other read failure.
    """
    nodes_paths = sysfs.get_nodes_paths()
    if not nodes_paths:
        raise TopologyError("no path to a NUMA node found")

    nodes: List[Node] = []
    all_logical_cores_count = 0

    for node_path in sorted(nodes_paths, key=lambda p: get_matched_int(NODE_DIR_RE, p)):
        node = Node(node_id=get_matched_int(NODE_DIR_RE, node_path))

        cpus_paths = sysfs.get_cpus_paths(node_path)
        if not cpus_paths:
            logger.warning(f"Found node without any CPU, node path: {node_path}")
        else:
            node.cores = get_cores_info(sysfs, cpus_paths)
            add_cache_info(sysfs, node)
        all_logical_cores_count += len(cpus_paths)

        node.memory = get_node_memory(sysfs, node_path)
        node.hugepages = get_hugepages_info(sysfs, os.path.join(node_path, "hugepages"))

        nodes.append(node)

    logger.debug(
        f"Built topology with {len(nodes)} nodes and {all_logical_cores_count} logical cpus"
    )
    return nodes, all_logical_cores_count


def get_cores_info(sysfs: SysFs, cpus_paths: List[str]) -> List[Core]:
    """
    Group the cpus of one node into cores by their kernel core id.

    Cores are ordered by core id and threads by logical cpu number, so the
    result depends only on the file contents, not on listing order.
    """
    threads_by_core: Dict[int, List[int]] = defaultdict(list)
    for cpu_path in cpus_paths:
        cpu_id = get_matched_int(CPU_DIR_RE, cpu_path)
        core_id = sysfs.get_core_id(cpu_path)
        threads_by_core[core_id].append(cpu_id)

    return [
        Core(core_id=core_id, threads=sorted(threads))
        for core_id, threads in sorted(threads_by_core.items())
    ]


def get_cache_info(sysfs: SysFs, cpu_id: int) -> List[Cache]:
    """Read every cache index accessible to a cpu."""
    caches = []
    for cache_name in sysfs.get_caches(cpu_id):
        info = sysfs.get_cache_info(cpu_id, cache_name)
        caches.append(Cache(size=info.size, type=info.type, level=info.level, cpus=info.cpus))
    return caches


def add_cache_info(sysfs: SysFs, node: Node) -> None:
    """
    Attach caches to the cores of ``node`` and to the node itself.

    Caches are identical for all threads of a core, so one thread per core
    is read. A cache shared by more cpus than the core has threads and above
    level 2 is a node-level cache and is recorded once on the node; every
    other cache belongs to the core.
    """
    for core in node.cores:
        thread_id = core.threads[0]
        try:
            caches = get_cache_info(sysfs, thread_id)
        except FileNotFoundError as e:
            logger.warning(f"Cache information is not available for cpu {thread_id}: {e}")
            continue

        num_threads_per_core = len(core.threads)
        for cache in caches:
            if cache.cpus > num_threads_per_core and cache.level > CACHE_LEVEL_2:
                if cache not in node.caches:
                    node.caches.append(cache)
            else:
                core.caches.append(cache)


def get_node_memory(sysfs: SysFs, node_path: str) -> int:
    """Return the node's MemTotal in bytes."""
    meminfo = sysfs.get_mem_info(node_path)
    return parse_capacity(meminfo, MEMORY_CAPACITY_RE, source=os.path.join(node_path, "meminfo"))


def get_hugepages_info(sysfs: SysFs, hugepages_dir: str) -> List[HugePage]:
    """
    Return the hugepage inventory found in ``hugepages_dir``.

    Page sizes are parsed from directory names such as ``hugepages-2048kB``
    and converted to bytes.
    """
    try:
        names = sysfs.get_hugepages_info(hugepages_dir)
    except FileNotFoundError:
        logger.debug(f"No hugepages directory at {hugepages_dir}")
        return []

    hugepages: List[HugePage] = []
    for name in names:
        match = HUGEPAGE_DIR_RE.match(name)
        if match is None:
            raise ParseError(f"unexpected hugepages entry {name!r} in {hugepages_dir}", source=hugepages_dir)
        page_size = int(match.group(1)) * 1024

        try:
            raw = sysfs.get_hugepages_nr(hugepages_dir, name)
        except FileNotFoundError:
            logger.debug(f"No nr_hugepages for {name} in {hugepages_dir}")
            continue

        try:
            num_pages = int(raw.strip())
        except ValueError as e:
            raise ParseError(
                f"could not parse nr_hugepages for {name}: {raw!r}", source=hugepages_dir, content=raw
            ) from e
        hugepages.append(HugePage(page_size=page_size, num_pages=num_pages))

    return hugepages


def count_physical_cores(nodes: List[Node]) -> int:
    """Number of distinct (node, core id) pairs."""
    return sum(len(node.cores) for node in nodes)
