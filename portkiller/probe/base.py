"""Probe interface and helpers shared by the platform strategies."""

import logging
import subprocess
from abc import ABC, abstractmethod

from portkiller.errors import ProbeError
from portkiller.models import RawSocketRecord

logger = logging.getLogger(__name__)

WILDCARD_HOSTS = frozenset({"", "*", "0.0.0.0", "::", "::0"})


class PlatformProbe(ABC):
    """Reads the OS socket table and reports listening TCP sockets."""

    name: str = "base"

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    @abstractmethod
    def scan_listening_sockets(self) -> list[RawSocketRecord]:
        """Return one record per (listening socket, owning process).

        Raises:
            ProbeError: The socket table could not be read at all.
        """

    def run_command(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run an external query command, converting launch failures to ProbeError."""
        logger.debug(f"Running {' '.join(args)}", extra={"strategy": self.name})
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ProbeError(self.name, f"{args[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(self.name, f"{args[0]} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeError(self.name, f"could not run {args[0]}: {e}") from e


def normalize_host(host: str) -> str:
    """Strip the interface scope and map wildcard binds to ``*``."""
    host = host.split("%", 1)[0]
    if host in WILDCARD_HOSTS:
        return "*"
    return host


def parse_address(text: str) -> tuple[str, int] | None:
    """Parse a local ``addr:port`` token.

    Accepts ``127.0.0.1:3000``, ``*:8080``, ``[::1]:3000``, ``:::22`` and
    scoped forms: ``127.0.0.53%lo:53``, ``[fe80::1%lo0]:8080`` (lsof) and
    ``[fe80::1]%eth0:2222`` (ss). Returns ``None`` for anything that does
    not end in a valid port.
    """
    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            return None
        host, rest = text[1:end], text[end + 1:]
        if rest.startswith("%"):
            # ss prints the interface scope after the bracket
            _, sep, port_str = rest.rpartition(":")
            if not sep:
                return None
        elif rest.startswith(":"):
            port_str = rest[1:]
        else:
            return None
    else:
        host, sep, port_str = text.rpartition(":")
        if not sep:
            return None

    if not port_str.isdigit():
        return None
    port = int(port_str)
    if port > 65535:
        return None
    return normalize_host(host), port
