"""
Export of machine facts.

The nested ``MachineInfo`` is written as JSON; the topology can also be
flattened into a polars table and written as Parquet.
"""

from .export import save_machine_info, topology_to_dataframe

__all__ = [
    "save_machine_info",
    "topology_to_dataframe",
]
