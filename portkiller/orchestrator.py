"""Frees a port by terminating every active process listening on it."""

import logging
from collections.abc import Callable

from portkiller.models import (
    PortInfo,
    PortKillResult,
    PortKillStatus,
    TerminationMode,
)
from portkiller.terminator import ProcessTerminator

logger = logging.getLogger(__name__)

DEFAULT_BULK_GRACE_TIMEOUT = 0.3  # seconds


def validate_port(port: int) -> int:
    """Reject values outside the TCP port range."""
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError(f"Port must be an integer, got {port!r}")
    if not 0 <= port <= 65535:
        raise ValueError(f"Port must be between 0 and 65535, got {port}")
    return port


def active_pids(ports: list[PortInfo], port: int) -> list[int]:
    """PIDs actively listening on ``port`` in a snapshot, ascending."""
    return sorted({p.pid for p in ports if p.port == port and p.is_active})


class PortKillOrchestrator:
    """Composes a fresh scan with batched termination.

    Args:
        scan: Returns a fresh snapshot; raises ProbeError when the table is unreadable.
        terminator: Used for the per-PID termination protocol.
        bulk_grace_timeout: Shared wait (seconds) for graceful batches.
    """

    def __init__(
        self,
        scan: Callable[[], list[PortInfo]],
        terminator: ProcessTerminator,
        bulk_grace_timeout: float = DEFAULT_BULK_GRACE_TIMEOUT,
    ) -> None:
        self.scan = scan
        self.terminator = terminator
        self.bulk_grace_timeout = bulk_grace_timeout

    def pids_on_port(self, port: int) -> list[int]:
        """Resolve the active PIDs currently listening on a port."""
        validate_port(port)
        return active_pids(self.scan(), port)

    def kill_port(self, port: int, mode: TerminationMode = TerminationMode.GRACEFUL) -> PortKillResult:
        """Terminate all active listeners on ``port``.

        Succeeds when at least one PID was terminated; a port with no active
        listener yields NO_ACTION. Individual PID failures are recorded in
        the result and never abort the batch.
        """
        pids = self.pids_on_port(port)
        if not pids:
            logger.info(f"No active listener on port {port}", extra={"port": port})
            return PortKillResult(port=port, mode=mode, status=PortKillStatus.NO_ACTION)

        logger.info(f"Terminating {len(pids)} process(es) on port {port} ({mode.value})", extra={"port": port})
        outcomes = self.terminator.terminate_many(pids, mode, self.bulk_grace_timeout)

        status = PortKillStatus.SUCCESS if any(o.success for o in outcomes) else PortKillStatus.FAILED
        if status == PortKillStatus.FAILED:
            logger.warning(f"Could not free port {port}", extra={"port": port})
        return PortKillResult(port=port, mode=mode, status=status, outcomes=outcomes)
