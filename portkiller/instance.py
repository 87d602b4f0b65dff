"""PortKiller instance - the operations exposed to CLIs, GUIs and bindings."""

import logging
import os
import time
from collections.abc import Callable

from portkiller.capabilities import Capabilities, get_capabilities
from portkiller.catalog import build_catalog
from portkiller.config import Settings, settings as default_settings
from portkiller.errors import ProbeError
from portkiller.models import (
    PidOutcome,
    PortFilter,
    PortInfo,
    PortKillResult,
    TerminationMode,
    filter_ports,
)
from portkiller.orchestrator import PortKillOrchestrator
from portkiller.probe import PlatformProbe, create_probe
from portkiller.process import ProcessTable
from portkiller.terminator import ProcessTerminator

logger = logging.getLogger(__name__)


class PortKiller:
    """Scan-and-terminate facade.

    Holds only immutable configuration and capability data; every scan is a
    fresh snapshot, so one instance can be shared across threads.

    Usage:
        killer = create_instance()
        for info in killer.scan():
            print(info.port, info.process_name)
        result = killer.kill_all_on_port(3000)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        capabilities: Capabilities | None = None,
        probe: PlatformProbe | None = None,
        table: ProcessTable | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or default_settings
        self.capabilities = capabilities or get_capabilities()
        self.probe = probe or self._select_probe()
        self.table = table or ProcessTable(
            use_taskkill=self.capabilities.use_taskkill,
            command_timeout=self.settings.probe_timeout,
        )
        self.terminator = ProcessTerminator(
            self.table,
            graceful_timeout=self.settings.graceful_timeout,
            protected_pids={os.getpid()},
            sleep=sleep,
        )
        self.orchestrator = PortKillOrchestrator(
            self.scan,
            self.terminator,
            bulk_grace_timeout=self.settings.bulk_grace_timeout,
        )
        logger.debug(f"PortKiller ready (probe={self.probe.name})", extra={"strategy": self.probe.name})

    def _select_probe(self) -> PlatformProbe:
        strategy = self.settings.probe_strategy
        available = self.capabilities.strategies
        if strategy == "auto":
            if not available:
                raise ProbeError("auto", f"no socket table query mechanism available on {self.capabilities.platform}")
            strategy = available[0]
        elif strategy not in available:
            raise ProbeError(strategy, f"not available on {self.capabilities.platform}")
        return create_probe(
            strategy,
            timeout=self.settings.probe_timeout,
            executable=self.capabilities.tool_paths.get(strategy),
        )

    def scan(self) -> list[PortInfo]:
        """Take a fresh snapshot of all listening TCP ports.

        Raises:
            ProbeError: The socket table could not be read.
        """
        started = time.monotonic()
        try:
            records = self.probe.scan_listening_sockets()
        except ProbeError as e:
            logger.error(f"Port scan failed: {e}", extra={"strategy": e.strategy})
            raise
        ports = build_catalog(records, self.table, self.settings.command_max_length)
        logger.debug(
            f"Scanned {len(ports)} listening ports",
            extra={"strategy": self.probe.name, "duration_ms": (time.monotonic() - started) * 1000},
        )
        return ports

    def filter(self, ports: list[PortInfo], port_filter: PortFilter) -> list[PortInfo]:
        """Apply a filter to a snapshot."""
        return filter_ports(ports, port_filter)

    def list_pids_on_port(self, port: int) -> set[int]:
        """Active PIDs currently listening on a port."""
        return set(self.orchestrator.pids_on_port(port))

    def terminate(self, pid: int, mode: TerminationMode = TerminationMode.GRACEFUL) -> PidOutcome:
        """Terminate a PID and return the typed outcome."""
        return self.terminator.terminate(pid, mode)

    def terminate_graceful(self, pid: int) -> bool:
        """SIGTERM, wait the grace interval, SIGKILL if still alive."""
        return self.terminate(pid, TerminationMode.GRACEFUL).success

    def terminate_force(self, pid: int) -> bool:
        """SIGKILL immediately."""
        return self.terminate(pid, TerminationMode.FORCE).success

    def kill_port(self, port: int, mode: TerminationMode = TerminationMode.GRACEFUL) -> PortKillResult:
        """Terminate every active listener on a port."""
        return self.orchestrator.kill_port(port, mode)

    def kill_all_on_port(self, port: int) -> PortKillResult:
        """Gracefully terminate every active listener on a port as one batch."""
        return self.kill_port(port, TerminationMode.GRACEFUL)


def create_instance(settings: Settings | None = None) -> PortKiller:
    """Create a PortKiller for this host.

    Raises:
        ProbeError: No way to read the socket table is available.
    """
    return PortKiller(settings=settings)
