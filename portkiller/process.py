"""PID-keyed access to the OS process table, backed by psutil.

Lookups never raise for a missing process: a PID that vanished between the
socket-table read and the lookup resolves to ``None`` / ``False``.
Signal delivery reports a :class:`Delivery` instead of raising, so callers
can turn every race into an explicit outcome.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum

import psutil

logger = logging.getLogger(__name__)


class Delivery(str, Enum):
    """What the OS said when asked to signal a process."""
    DELIVERED = "delivered"
    NO_PROCESS = "no_process"
    DENIED = "denied"
    FAILED = "failed"  # delivery could not be confirmed


@dataclass(frozen=True)
class ProcessDetails:
    """Identifying strings for a running process."""
    name: str
    command: str


class ProcessTable:
    """Process lookups and signal delivery for the local host.

    Args:
        use_taskkill: Request graceful stops through ``taskkill /PID`` (Windows),
            which asks the process to close instead of terminating it outright.
        command_timeout: Seconds to wait for ``taskkill`` before giving up.
    """

    def __init__(self, use_taskkill: bool = False, command_timeout: float = 10.0) -> None:
        self.use_taskkill = use_taskkill
        self.command_timeout = command_timeout

    def lookup(self, pid: int) -> ProcessDetails | None:
        """Resolve a PID to its name and full command line."""
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                name = _read(proc.name, "")
                cmdline = _read(proc.cmdline, [])
        except psutil.NoSuchProcess:
            return None
        except psutil.Error as e:
            logger.debug(f"Lookup of PID {pid} failed: {e}", extra={"pid": pid})
            return None
        return ProcessDetails(name=name or "", command=" ".join(cmdline or []))

    def is_running(self, pid: int) -> bool:
        """Check whether a PID refers to a live (non-zombie) process."""
        try:
            proc = psutil.Process(pid)
            return proc.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            # Exists, but we may not inspect it
            return True

    def request_stop(self, pid: int) -> Delivery:
        """Send the cooperative, catchable termination request."""
        if self.use_taskkill:
            return self._taskkill(pid)
        return self._deliver(pid, "SIGTERM", lambda proc: proc.terminate())

    def force_stop(self, pid: int) -> Delivery:
        """Send the uncatchable kill."""
        return self._deliver(pid, "SIGKILL", lambda proc: proc.kill())

    def _deliver(self, pid: int, label: str, action) -> Delivery:
        logger.debug(f"Sending {label} to PID {pid}", extra={"pid": pid})
        try:
            action(psutil.Process(pid))
        except psutil.NoSuchProcess:
            logger.debug(f"PID {pid} not found", extra={"pid": pid})
            return Delivery.NO_PROCESS
        except psutil.AccessDenied:
            logger.warning(f"Permission denied sending {label} to PID {pid}", extra={"pid": pid})
            return Delivery.DENIED
        except (psutil.Error, OSError) as e:
            logger.warning(f"Could not send {label} to PID {pid}: {e}", extra={"pid": pid})
            return Delivery.FAILED
        return Delivery.DELIVERED

    def _taskkill(self, pid: int) -> Delivery:
        logger.debug(f"Running taskkill for PID {pid}", extra={"pid": pid})
        try:
            result = subprocess.run(
                ["taskkill", "/PID", str(pid)],
                capture_output=True,
                text=True,
                timeout=self.command_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"taskkill for PID {pid} failed: {e}", extra={"pid": pid})
            return Delivery.FAILED
        return parse_taskkill_result(result.returncode, f"{result.stdout} {result.stderr}")


def parse_taskkill_result(returncode: int, output: str) -> Delivery:
    """Map taskkill's exit status and messages to a delivery result."""
    if returncode == 0:
        return Delivery.DELIVERED
    text = output.lower()
    if "already been terminated" in text or "has exited" in text:
        return Delivery.DELIVERED
    if "not found" in text or "could not be found" in text:
        return Delivery.NO_PROCESS
    if "access is denied" in text or "access denied" in text:
        return Delivery.DENIED
    return Delivery.FAILED


def _read(getter, default):
    try:
        return getter()
    except psutil.AccessDenied:
        return default
