"""
Working set size collector based on the kernel's Referenced page flag.

Every mapping in ``/proc/<pid>/smaps`` reports how many kB of its pages had
the Referenced flag set since the flag was last cleared. Summing those
values over all processes of a cgroup gives the memory touched in the
current window. Writing ``1`` to ``/proc/<pid>/clear_refs`` clears the
flags and starts a new window, which the collector does every
``reset_interval`` ticks.

See https://github.com/brendangregg/wss#wsspl-referenced-page-flag
"""

import logging
import os
import re
from typing import List

from ..models.config import AppConfig
from ..models.stats import ContainerStats
from ..validation import ParseError, ValidationError, validate_positive_integer
from .base import NoopCollector, NoopManager, StatsCollector, StatsManager

logger = logging.getLogger(__name__)

CGROUP_PROCS_FILE = "cgroup.procs"
SMAPS_FILE = "smaps"
CLEAR_REFS_FILE = "clear_refs"

# smaps mapping lines end in file paths, which need not be valid UTF-8.
REFERENCED_RE = re.compile(rb"Referenced:\s*([0-9]+)\s*kB")


class WssCollector(StatsCollector):
    """
    Estimates the working set size of one cgroup.

    Attributes:
        cgroup_procs_path: Path of the cgroup's ``cgroup.procs`` file.
        reset_interval: Number of ticks between two clear_refs writes.
        procfs_root: Mount point of procfs.
        cycles: Ticks seen so far; incremented at the start of every tick.
        last_wss: Estimate written on the last successful tick, in bytes.
    """

    def __init__(self, cgroup_procs_path: str, reset_interval: int, procfs_root: str = "/proc"):
        """
        Raises:
            ValidationError: If ``reset_interval`` is not a positive integer.
        """
        self.reset_interval = validate_positive_integer(
            reset_interval, min_value=1, field_name="wss.reset_interval"
        )
        self.cgroup_procs_path = cgroup_procs_path
        self.procfs_root = procfs_root
        self.cycles = 0
        self.last_wss = 0

    def update_stats(self, stats: ContainerStats) -> None:
        self.cycles += 1

        pids = self.get_pids()
        referenced_kbytes = self.get_referenced(pids)

        self.clear_referenced(pids)

        self.last_wss = referenced_kbytes * 1024
        stats.wss = self.last_wss

    def get_pids(self) -> List[int]:
        """
        Read the member PIDs of the cgroup.

        An empty file is valid and yields an empty list.

        Raises:
            OSError: If the procs file cannot be read.
            ParseError: If a line is not a PID.
        """
        with open(self.cgroup_procs_path, "r", encoding="utf-8") as f:
            content = f.read()

        pids = []
        for line in content.splitlines():
            line = line.strip()
            if not line:
                continue
            if not (line.isascii() and line.isdigit()):
                raise ParseError(
                    f"invalid PID {line!r} in {self.cgroup_procs_path}",
                    source=self.cgroup_procs_path,
                    content=content,
                )
            pids.append(int(line))

        if not pids:
            logger.debug(f"Not found any PID for {self.cgroup_procs_path}")
        return pids

    def get_referenced(self, pids: List[int]) -> int:
        """
        Sum the Referenced kB of every mapping of every PID.

        A PID whose smaps file is gone (the process exited after the PID
        list was read) is skipped.

        Raises:
            OSError: On any smaps read failure other than a missing file.
        """
        referenced_kbytes = 0
        read_smaps_content = False
        found_match = False

        for pid in pids:
            smaps_path = os.path.join(self.procfs_root, str(pid), SMAPS_FILE)
            try:
                with open(smaps_path, "rb") as f:
                    smaps_content = f.read()
            except FileNotFoundError as e:
                logger.debug(f"Cannot read {smaps_path} file, err: {e}")
                continue
            read_smaps_content = True

            matches = REFERENCED_RE.findall(smaps_content)
            if not matches:
                logger.debug(f"Not found any information about referenced bytes in {smaps_path} file")
                continue

            found_match = True
            referenced_kbytes += sum(int(value) for value in matches)

        if pids:
            if not read_smaps_content:
                logger.warning(f"Cannot read smaps files for any PID from {self.cgroup_procs_path}")
            elif not found_match:
                logger.warning(
                    "Not found any information about referenced bytes in smaps files "
                    f"for any PID from {self.cgroup_procs_path}"
                )
        return referenced_kbytes

    def clear_referenced(self, pids: List[int]) -> None:
        """
        Clear the Referenced flags of every PID when the window is over.

        Only acts when ``cycles`` is a multiple of ``reset_interval``.

        Raises:
            ValidationError: If ``reset_interval`` is not positive.
            OSError: If an existing clear_refs file cannot be written.
        """
        if self.reset_interval <= 0:
            raise ValidationError(
                f"Incorrect reset interval for wss: {self.reset_interval}",
                field_name="wss.reset_interval",
                value=self.reset_interval,
            )

        if self.cycles % self.reset_interval != 0:
            return

        for pid in pids:
            clear_refs_path = os.path.join(self.procfs_root, str(pid), CLEAR_REFS_FILE)
            try:
                fd = os.open(clear_refs_path, os.O_WRONLY)
            except FileNotFoundError:
                logger.debug(f"No {clear_refs_path} file, process has probably exited")
                continue
            with os.fdopen(fd, "w") as f:
                f.write("1\n")


class WssManager(StatsManager):
    """Hands out one ``WssCollector`` per cgroup."""

    def __init__(self, reset_interval: int, procfs_root: str = "/proc"):
        self.reset_interval = validate_positive_integer(
            reset_interval, min_value=1, field_name="wss.reset_interval"
        )
        self.procfs_root = procfs_root

    def get_collector(self, cgroup_path: str) -> StatsCollector:
        """
        Return a collector for ``cgroup_path``.

        When the cgroup has no ``cgroup.procs`` file an inert collector is
        returned instead.
        """
        cgroup_procs_path = os.path.join(cgroup_path, CGROUP_PROCS_FILE)
        try:
            os.stat(cgroup_procs_path)
        except OSError as e:
            logger.warning(f"Working set size metric is not available for {cgroup_path} cgroup, err: {e}")
            return NoopCollector()

        return WssCollector(cgroup_procs_path, self.reset_interval, self.procfs_root)


def new_manager(reset_interval: int, wss_enabled: bool = True, procfs_root: str = "/proc") -> StatsManager:
    """
    Return a working set size manager, or an inert one when the metric is
    disabled or the reset interval is unusable.
    """
    if isinstance(reset_interval, bool) or not isinstance(reset_interval, int) or reset_interval <= 0:
        logger.warning(
            f"Incorrect value of wss reset_interval, currently set to {reset_interval}, "
            "working set size metric cannot be provided"
        )
        return NoopManager()
    if not wss_enabled:
        logger.info("Working set size metric is disabled")
        return NoopManager()
    return WssManager(reset_interval, procfs_root)


def new_manager_from_config(config: AppConfig) -> StatsManager:
    """Build the manager described by the ``[wss]`` and ``[kernel]`` sections."""
    return new_manager(config.wss.reset_interval, config.wss.enabled, config.kernel.procfs_root)
