"""Liveness probing of worker processes through their PID files."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Optional

import psutil

from worker_supervisor.errors import ProbeError
from worker_supervisor.slots import ProcessSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LivenessObservation:
    """Result of probing a slot."""
    running: bool
    pid: Optional[int] = None


NOT_RUNNING = LivenessObservation(running=False)


class PidFileReader(ABC):
    """Capability to read PID files and check process existence."""

    @abstractmethod
    def read_pid(self, pid_file_path: str) -> Optional[int]:
        """Read the PID recorded in a PID file.

        Args:
            pid_file_path: Path to the PID file

        Returns:
            The PID, or None if the file is missing or holds no PID

        Raises:
            ProbeError: If the file exists but cannot be read
        """

    @abstractmethod
    def is_alive(self, pid: int) -> bool:
        """Check whether a process with this PID is currently alive.

        Raises:
            ProbeError: If the check is inconclusive
        """


class PsutilPidFileReader(PidFileReader):
    """PID file reader backed by the filesystem and psutil."""

    def read_pid(self, pid_file_path: str) -> Optional[int]:
        try:
            with open(pid_file_path, 'r', encoding='utf-8') as f:
                raw = f.read().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProbeError(f"Cannot read PID file {pid_file_path}: {e}") from e

        if not raw.isdigit():
            logger.debug("PID file %s holds no PID: %r", pid_file_path, raw)
            return None
        return int(raw)

    def is_alive(self, pid: int) -> bool:
        if pid <= 0:
            return False
        try:
            process = psutil.Process(pid)
            return process.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.Error as e:
            raise ProbeError(f"Cannot inspect process {pid}: {e}") from e


def probe(slot: ProcessSlot, reader: PidFileReader) -> LivenessObservation:
    """Probe whether the slot's recorded process is alive.

    Any failure to read the PID file or inspect the process counts as not
    running, so a missing or stale PID file means a fresh start.

    Args:
        slot: Slot to probe
        reader: PID file reader capability

    Returns:
        Liveness observation for the slot
    """
    try:
        pid = reader.read_pid(slot.pid_file_path)
        if pid is None:
            return NOT_RUNNING
        if not reader.is_alive(pid):
            logger.info(
                "Stale PID file for %s: process %d is gone",
                slot.service_name, pid
            )
            return NOT_RUNNING
    except (ProbeError, OSError, ValueError) as e:
        logger.warning(
            "Liveness probe failed for %s, treating as stopped: %s",
            slot.service_name, e
        )
        return NOT_RUNNING
    return LivenessObservation(running=True, pid=pid)
