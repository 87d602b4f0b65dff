"""Native socket-table probe backed by psutil."""

import logging

import psutil

from portkiller.errors import ProbeError
from portkiller.models import RawSocketRecord
from portkiller.probe.base import PlatformProbe, normalize_host

logger = logging.getLogger(__name__)


class PsutilProbe(PlatformProbe):
    """Reads listening TCP sockets through ``psutil.net_connections``.

    On macOS this needs root; capability detection prefers lsof there.
    """

    name = "psutil"

    def scan_listening_sockets(self) -> list[RawSocketRecord]:
        try:
            connections = psutil.net_connections(kind="tcp")
        except psutil.AccessDenied as e:
            raise ProbeError(self.name, "access denied reading the socket table") from e
        except (psutil.Error, OSError) as e:
            raise ProbeError(self.name, str(e)) from e

        records = []
        hidden = 0
        for conn in connections:
            if conn.status != psutil.CONN_LISTEN or not conn.laddr:
                continue
            if conn.pid is None:
                # Owned by a process we are not allowed to see
                hidden += 1
                continue
            records.append(
                RawSocketRecord(
                    port=conn.laddr.port,
                    pid=conn.pid,
                    address=normalize_host(conn.laddr.ip),
                )
            )

        if hidden:
            logger.debug(f"Skipped {hidden} listening sockets without a visible owner", extra={"strategy": self.name})
        logger.debug(f"psutil found {len(records)} listening sockets", extra={"strategy": self.name})
        return records
