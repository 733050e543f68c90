"""
Export of machine facts.

``MachineInfo`` is written as JSON; with the parquet format the topology is
additionally flattened into one row per logical cpu so it can be joined
against per-cpu samples.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import polars as pl

from ..models.config import StorageConfig
from ..models.machine import MachineInfo, Node
from ..validation import ErrorSeverity, handle_file_error

logger = logging.getLogger(__name__)

MACHINE_INFO_FILE = "machine_info.json"
TOPOLOGY_FILE = "topology.parquet"

TOPOLOGY_SCHEMA = {
    "node_id": pl.Int64,
    "node_memory": pl.Int64,
    "core_id": pl.Int64,
    "thread_id": pl.Int64,
    "core_cache_bytes": pl.Int64,
}


def topology_to_dataframe(nodes: List[Node]) -> pl.DataFrame:
    """
    Flatten the topology into one row per logical cpu.

    Nodes without cores contribute no rows.
    """
    rows = []
    for node in nodes:
        for core in node.cores:
            core_cache_bytes = sum(cache.size for cache in core.caches)
            for thread_id in core.threads:
                rows.append({
                    "node_id": node.node_id,
                    "node_memory": node.memory,
                    "core_id": core.core_id,
                    "thread_id": thread_id,
                    "core_cache_bytes": core_cache_bytes,
                })
    return pl.DataFrame(rows, schema=TOPOLOGY_SCHEMA)


def _write_json(data: Dict[str, Any], path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.debug(f"Saved machine info to {path}")


def _write_topology(nodes: List[Node], path: str, compression: str) -> None:
    df = topology_to_dataframe(nodes)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.write_parquet(path, compression=compression)
    logger.debug(f"Saved topology table with {len(df)} rows to {path}")


def save_machine_info(info: MachineInfo, directory: str, storage_config: StorageConfig) -> Dict[str, str]:
    """
    Write ``info`` below ``directory``.

    Args:
        info: Facts to write.
        directory: Output directory, created when missing.
        storage_config: ``[storage]`` settings; the topology table is only
            written for the parquet format.

    Returns:
        Mapping of artefact name to the path written.

    Raises:
        OSError: If a file cannot be written.
    """
    written = {}

    try:
        info_path = os.path.join(directory, MACHINE_INFO_FILE)
        _write_json(info.to_dict(), info_path)
        written["machine_info"] = info_path

        if storage_config.format == "parquet":
            topology_path = os.path.join(directory, TOPOLOGY_FILE)
            _write_topology(info.topology, topology_path, storage_config.compression)
            written["topology"] = topology_path
    except OSError as e:
        handle_file_error(
            error=e,
            context=f"writing machine info to {directory}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )

    logger.info(f"Saved machine info to {directory} ({', '.join(sorted(written))})")
    return written
