"""netstat-based probe for Windows."""

import logging

from portkiller.errors import ProbeError
from portkiller.models import RawSocketRecord
from portkiller.probe.base import PlatformProbe, parse_address

logger = logging.getLogger(__name__)


def parse_netstat(output: str) -> list[RawSocketRecord]:
    """Parse ``netstat -ano`` output, keeping TCP rows in the listening state.

    Expected format::

          Proto  Local Address          Foreign Address        State           PID
          TCP    0.0.0.0:135            0.0.0.0:0              LISTENING       1020
          TCP    [::]:445               [::]:0                 LISTENING       4

    The state column is localized (``ABHÖREN``, ``ESCUCHANDO``, ...), so a
    row also counts as listening when its foreign address has port 0, which
    only listening sockets report. netstat gives no process names; the
    catalog resolves them by PID.
    """
    records = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 5 or parts[0] != "TCP" or not parts[-1].isdigit():
            continue

        foreign = parse_address(parts[2])
        if parts[3] != "LISTENING" and (foreign is None or foreign[1] != 0):
            continue

        parsed = parse_address(parts[1])
        if parsed is None:
            continue
        address, port = parsed
        records.append(RawSocketRecord(port=port, pid=int(parts[-1]), address=address))
    return records


class NetstatProbe(PlatformProbe):
    """Lists listening sockets with Windows ``netstat``."""

    name = "netstat"

    def __init__(self, timeout: float = 10.0, executable: str = "netstat") -> None:
        super().__init__(timeout)
        self.executable = executable

    def scan_listening_sockets(self) -> list[RawSocketRecord]:
        result = self.run_command([self.executable, "-ano"])
        if result.returncode != 0:
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            raise ProbeError(self.name, reason)

        records = parse_netstat(result.stdout)
        logger.debug(f"netstat found {len(records)} listening sockets", extra={"strategy": self.name})
        return records
