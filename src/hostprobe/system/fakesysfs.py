"""
In-memory ``SysFs`` serving canned content.

Every setter takes the value to serve and, optionally, an exception to raise
instead, so tests can reproduce both missing files and failing devices.
"""

import os
from typing import Dict, List, Optional

from .sysfs import CacheInfo, SysFs


class FakeSysFs(SysFs):
    """``SysFs`` double backed by dictionaries."""

    def __init__(self) -> None:
        self.nodes_paths: List[str] = []
        self.nodes_error: Optional[Exception] = None

        self.cpus_paths: Dict[str, List[str]] = {}
        self.cpus_error: Optional[Exception] = None

        self.core_threads: Dict[str, str] = {}
        self.core_error: Optional[Exception] = None

        self.memory: Optional[str] = None
        self.memory_error: Optional[Exception] = None

        self.hugepages: List[str] = []
        self.hugepages_error: Optional[Exception] = None

        self.hugepages_nr: Dict[str, str] = {}
        self.hugepages_nr_error: Optional[Exception] = None

        self.cache_info: Optional[CacheInfo] = None
        self.caches_error: Optional[Exception] = None

        self.system_uuid: str = ""
        self.system_uuid_error: Optional[Exception] = None

    # --- setters ---

    def set_nodes_paths(self, paths: List[str], error: Optional[Exception] = None) -> None:
        self.nodes_paths = paths
        self.nodes_error = error

    def set_cpus_paths(self, paths: Dict[str, List[str]], error: Optional[Exception] = None) -> None:
        self.cpus_paths = paths
        self.cpus_error = error

    def set_core_threads(self, core_threads: Dict[str, str], error: Optional[Exception] = None) -> None:
        self.core_threads = core_threads
        self.core_error = error

    def set_memory(self, meminfo: Optional[str], error: Optional[Exception] = None) -> None:
        self.memory = meminfo
        self.memory_error = error

    def set_hugepages(self, names: List[str], error: Optional[Exception] = None) -> None:
        self.hugepages = names
        self.hugepages_error = error

    def set_hugepages_nr(self, values: Dict[str, str], error: Optional[Exception] = None) -> None:
        self.hugepages_nr = values
        self.hugepages_nr_error = error

    def set_cache_info(self, cache: Optional[CacheInfo], error: Optional[Exception] = None) -> None:
        self.cache_info = cache
        self.caches_error = error

    def set_system_uuid(self, uuid: str, error: Optional[Exception] = None) -> None:
        self.system_uuid = uuid
        self.system_uuid_error = error

    # --- SysFs ---

    def get_nodes_paths(self) -> List[str]:
        if self.nodes_error:
            raise self.nodes_error
        return list(self.nodes_paths)

    def get_cpus_paths(self, node_path: str) -> List[str]:
        if self.cpus_error:
            raise self.cpus_error
        return list(self.cpus_paths.get(node_path, []))

    def get_core_id(self, cpu_path: str) -> int:
        if self.core_error:
            raise self.core_error
        if cpu_path not in self.core_threads:
            raise FileNotFoundError(os.path.join(cpu_path, "topology", "core_id"))
        return int(self.core_threads[cpu_path])

    def get_mem_info(self, node_path: str) -> str:
        if self.memory_error:
            raise self.memory_error
        if self.memory is None:
            raise FileNotFoundError(os.path.join(node_path, "meminfo"))
        return self.memory

    def get_hugepages_info(self, hugepages_dir: str) -> List[str]:
        if self.hugepages_error:
            raise self.hugepages_error
        return list(self.hugepages)

    def get_hugepages_nr(self, hugepages_dir: str, hugepage_name: str) -> str:
        if self.hugepages_nr_error:
            raise self.hugepages_nr_error
        path = os.path.join(hugepages_dir, hugepage_name, "nr_hugepages")
        if path not in self.hugepages_nr:
            raise FileNotFoundError(path)
        return self.hugepages_nr[path]

    def get_caches(self, cpu_id: int) -> List[str]:
        if self.caches_error:
            raise self.caches_error
        if self.cache_info is None:
            raise FileNotFoundError(f"cpu{cpu_id}/cache")
        return ["index0"]

    def get_cache_info(self, cpu_id: int, cache_name: str) -> CacheInfo:
        if self.caches_error:
            raise self.caches_error
        if self.cache_info is None:
            raise FileNotFoundError(f"cpu{cpu_id}/cache/{cache_name}")
        return self.cache_info

    def get_system_uuid(self) -> str:
        if self.system_uuid_error:
            raise self.system_uuid_error
        return self.system_uuid
