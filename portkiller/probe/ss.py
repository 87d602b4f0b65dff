"""ss-based probe for Linux."""

import logging
import re

from portkiller.errors import ProbeError
from portkiller.models import RawSocketRecord
from portkiller.probe.base import PlatformProbe, parse_address

logger = logging.getLogger(__name__)

# One entry per process sharing the socket: ("name",pid=123,fd=4)
_USER_ENTRY = re.compile(r'\("((?:[^"\\]|\\.)*)",pid=(\d+)')


def parse_ss(output: str) -> list[RawSocketRecord]:
    """Parse ``ss -Htlnp`` output.

    Expected format::

        LISTEN 0 4096 [::ffff:127.0.0.1]:63342 *:* users:(("rustrover",pid=53561,fd=54))

    A socket shared by several processes lists all of them and yields one
    record per process. Rows without process information (sockets owned by
    other users when not running as root) are skipped.
    """
    records = []
    for line in output.strip().splitlines():
        parts = line.split(maxsplit=5)
        if len(parts) < 5 or parts[0] == "State":
            continue

        parsed = parse_address(parts[3])
        if parsed is None:
            continue
        address, port = parsed

        users = _USER_ENTRY.findall(parts[5]) if len(parts) > 5 else []
        if not users:
            logger.debug(f"No owning process visible for port {port}", extra={"port": port})
            continue
        for process, pid in users:
            records.append(
                RawSocketRecord(port=port, pid=int(pid), address=address, process_name=process)
            )
    return records


class SsProbe(PlatformProbe):
    """Lists listening sockets with iproute2's ``ss``."""

    name = "ss"

    def __init__(self, timeout: float = 10.0, executable: str = "ss") -> None:
        super().__init__(timeout)
        self.executable = executable

    def scan_listening_sockets(self) -> list[RawSocketRecord]:
        result = self.run_command([self.executable, "-Htlnp"])
        if result.returncode != 0:
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            raise ProbeError(self.name, reason)

        records = parse_ss(result.stdout)
        logger.debug(f"ss found {len(records)} listening sockets", extra={"strategy": self.name})
        return records
