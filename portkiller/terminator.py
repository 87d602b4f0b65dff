"""Graceful-then-forceful process termination.

Graceful protocol, per PID::

    Request (SIGTERM / taskkill) -> Wait (grace interval) -> Verify
        -> gone:  KILLED
        -> alive: Escalate (SIGKILL / TerminateProcess) -> KILLED | PERMISSION_DENIED | STILL_ALIVE

Batches issue every request before a single shared wait, so the cost of
freeing a port is one grace interval regardless of how many PIDs hold it.

A PID may be reused by an unrelated process between Verify and Escalate.
PID-based OS APIs cannot rule this out; a delivered kill is reported as
KILLED either way.
"""

import logging
import time
from collections.abc import Callable, Iterable

from portkiller.models import MAX_PID, PidOutcome, TerminationMode, TerminationOutcome
from portkiller.process import Delivery, ProcessTable

logger = logging.getLogger(__name__)

DEFAULT_GRACEFUL_TIMEOUT = 0.5  # seconds

_FORCE_OUTCOMES = {
    Delivery.DELIVERED: TerminationOutcome.KILLED,
    Delivery.NO_PROCESS: TerminationOutcome.NOT_FOUND,
    Delivery.DENIED: TerminationOutcome.PERMISSION_DENIED,
    Delivery.FAILED: TerminationOutcome.STILL_ALIVE,
}


def validate_pid(pid: int) -> int:
    """Reject values that cannot be a PID."""
    if isinstance(pid, bool) or not isinstance(pid, int):
        raise ValueError(f"PID must be an integer, got {pid!r}")
    if not 0 <= pid <= MAX_PID:
        raise ValueError(f"PID must be between 0 and {MAX_PID}, got {pid}")
    return pid


class ProcessTerminator:
    """Terminates processes by PID and reports one outcome per PID.

    Args:
        table: Process table used for signal delivery and liveness checks.
        graceful_timeout: Grace interval (seconds) for single-PID graceful calls.
        protected_pids: PIDs that are never signalled (e.g. the calling process).
        sleep: Suspension function used for grace intervals.
    """

    def __init__(
        self,
        table: ProcessTable | None = None,
        graceful_timeout: float = DEFAULT_GRACEFUL_TIMEOUT,
        protected_pids: Iterable[int] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.table = table or ProcessTable()
        self.graceful_timeout = graceful_timeout
        self.protected_pids = frozenset(protected_pids)
        self.sleep = sleep

    def terminate(self, pid: int, mode: TerminationMode = TerminationMode.GRACEFUL) -> PidOutcome:
        """Terminate one PID using the single-call grace interval."""
        return self.terminate_many([pid], mode, self.graceful_timeout)[0]

    def force(self, pid: int) -> PidOutcome:
        """Send the uncatchable kill once."""
        return self.terminate(pid, TerminationMode.FORCE)

    def terminate_many(
        self,
        pids: Iterable[int],
        mode: TerminationMode = TerminationMode.GRACEFUL,
        grace: float | None = None,
    ) -> list[PidOutcome]:
        """Terminate several PIDs, sharing one grace interval in graceful mode.

        Returns:
            One outcome per distinct PID, in input order.
        """
        targets = list(dict.fromkeys(validate_pid(pid) for pid in pids))
        grace = self.graceful_timeout if grace is None else grace
        started = time.monotonic()

        outcomes: dict[int, PidOutcome] = {}
        actionable = []
        for pid in targets:
            refused = self._refuse(pid)
            if refused is not None:
                outcomes[pid] = refused
            else:
                actionable.append(pid)

        if mode == TerminationMode.FORCE:
            for pid in actionable:
                outcomes[pid] = self._force(pid)
        else:
            outcomes.update(self._graceful(actionable, grace))

        results = [outcomes[pid] for pid in targets]
        duration_ms = (time.monotonic() - started) * 1000
        for result in results:
            logger.info(
                f"PID {result.pid}: {result.outcome.value}" + (" (escalated)" if result.escalated else ""),
                extra={"pid": result.pid, "outcome": result.outcome.value, "duration_ms": duration_ms},
            )
        return results

    def _graceful(self, pids: list[int], grace: float) -> dict[int, PidOutcome]:
        outcomes: dict[int, PidOutcome] = {}
        pending = []

        # Request: every PID is asked before anyone waits
        for pid in pids:
            delivery = self.table.request_stop(pid)
            if delivery == Delivery.NO_PROCESS:
                outcomes[pid] = PidOutcome(pid, TerminationOutcome.NOT_FOUND)
            elif delivery == Delivery.DENIED:
                outcomes[pid] = PidOutcome(
                    pid, TerminationOutcome.PERMISSION_DENIED, error="termination request refused"
                )
            else:
                if delivery == Delivery.FAILED:
                    logger.warning(f"Termination request for PID {pid} not confirmed", extra={"pid": pid})
                pending.append(pid)

        if not pending:
            return outcomes

        # Wait once for the whole batch
        logger.debug(f"Waiting {grace:.3f}s for {len(pending)} process(es) to exit")
        self.sleep(grace)

        # Verify, then escalate survivors
        for pid in pending:
            if not self.table.is_running(pid):
                outcomes[pid] = PidOutcome(pid, TerminationOutcome.KILLED)
                continue
            logger.debug(f"PID {pid} still running after {grace:.3f}s, escalating", extra={"pid": pid})
            result = self._force(pid)
            result.escalated = True
            if result.outcome == TerminationOutcome.NOT_FOUND:
                # Exited between Verify and Escalate
                result.outcome = TerminationOutcome.KILLED
            outcomes[pid] = result
        return outcomes

    def _force(self, pid: int) -> PidOutcome:
        delivery = self.table.force_stop(pid)
        outcome = _FORCE_OUTCOMES[delivery]
        error = None
        if outcome == TerminationOutcome.PERMISSION_DENIED:
            error = "kill refused"
        elif outcome == TerminationOutcome.STILL_ALIVE:
            error = "kill delivery could not be confirmed"
        return PidOutcome(pid, outcome, error=error)

    def _refuse(self, pid: int) -> PidOutcome | None:
        if pid == 0:
            return PidOutcome(pid, TerminationOutcome.PERMISSION_DENIED, error="refusing to signal PID 0")
        if pid in self.protected_pids:
            return PidOutcome(
                pid, TerminationOutcome.PERMISSION_DENIED, error="refusing to terminate the calling process"
            )
        return None
