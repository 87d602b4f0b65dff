"""lsof-based probe for macOS and Linux."""

import logging
import re

from portkiller.errors import ProbeError
from portkiller.models import RawSocketRecord
from portkiller.probe.base import PlatformProbe, parse_address

logger = logging.getLogger(__name__)

_HEX_ESCAPE = re.compile(r"\\x([0-9a-fA-F]{2})")


def decode_lsof_escapes(name: str) -> str:
    r"""Decode lsof's ``\xNN`` escapes (``Code\x20Helper`` -> ``Code Helper``)."""
    return _HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), name)


def parse_lsof(output: str) -> list[RawSocketRecord]:
    """Parse ``lsof -iTCP -sTCP:LISTEN -P -n +c 0`` output.

    Expected format::

        COMMAND    PID  USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME
        node     34805  code   19u  IPv6 0x3d8015e195af1f3f      0t0  TCP [::1]:3000 (LISTEN)
    """
    records = []
    for line in output.strip().splitlines():
        parts = line.split()
        if len(parts) < 9 or parts[0] == "COMMAND":
            continue
        process, pid = parts[0], parts[1]
        if not pid.isdigit():
            continue

        # NAME is near the end, followed by "(LISTEN)"; skip device ids and offsets
        parsed = None
        for token in reversed(parts[8:]):
            if ":" in token and not token.startswith(("0x", "0t")):
                parsed = parse_address(token)
                break
        if parsed is None:
            continue
        address, port = parsed

        records.append(
            RawSocketRecord(
                port=port,
                pid=int(pid),
                address=address,
                process_name=decode_lsof_escapes(process),
            )
        )
    return records


class LsofProbe(PlatformProbe):
    """Lists listening sockets with ``lsof``."""

    name = "lsof"

    def __init__(self, timeout: float = 10.0, executable: str = "lsof") -> None:
        super().__init__(timeout)
        self.executable = executable

    def scan_listening_sockets(self) -> list[RawSocketRecord]:
        result = self.run_command(
            [self.executable, "-iTCP", "-sTCP:LISTEN", "-P", "-n", "+c", "0"]
        )
        # lsof exits 1 when nothing matched or some files could not be inspected
        if result.returncode not in (0, 1):
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            raise ProbeError(self.name, reason)

        records = parse_lsof(result.stdout)
        logger.debug(f"lsof found {len(records)} listening sockets", extra={"strategy": self.name})
        return records
