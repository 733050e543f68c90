"""
Defines the stats collector and manager contracts.

This module provides:
- StatsCollector: the per-cgroup object the stats pipeline calls on every tick.
- StatsManager: hands out one collector per cgroup.
- NoopCollector / NoopManager: inert stand-ins used when a metric cannot be
  provided, so the pipeline never has to branch on capability at call time.
"""

import logging
from abc import ABC, abstractmethod

from ..models.stats import ContainerStats

logger = logging.getLogger(__name__)


class StatsCollector(ABC):
    """
    Abstract base class for per-cgroup stats collectors.

    The pipeline issues at most one ``update_stats`` call at a time per
    instance; implementations do no locking of their own.
    """

    @abstractmethod
    def update_stats(self, stats: ContainerStats) -> None:
        """
        Write this collector's metrics into ``stats``.

        Raises:
            Exception: Any failure aborts this tick for this cgroup; the
                caller decides whether to try again on the next tick.
        """
        pass

    def destroy(self) -> None:
        """Release resources held by the collector. No-op by default."""
        pass


class StatsManager(ABC):
    """Abstract base class for collector factories."""

    @abstractmethod
    def get_collector(self, cgroup_path: str) -> StatsCollector:
        """Return the collector to use for ``cgroup_path``."""
        pass

    def destroy(self) -> None:
        pass


class NoopCollector(StatsCollector):
    """Collector that leaves the record untouched and never fails."""

    def update_stats(self, stats: ContainerStats) -> None:
        return None


class NoopManager(StatsManager):
    """Manager that only hands out ``NoopCollector`` instances."""

    def get_collector(self, cgroup_path: str) -> StatsCollector:
        return NoopCollector()
