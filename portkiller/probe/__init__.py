"""Platform probes - per-OS strategies for reading the socket table."""

from portkiller.errors import ProbeError
from portkiller.probe.base import PlatformProbe, normalize_host, parse_address
from portkiller.probe.lsof import LsofProbe, decode_lsof_escapes, parse_lsof
from portkiller.probe.netstat import NetstatProbe, parse_netstat
from portkiller.probe.psutil_probe import PsutilProbe
from portkiller.probe.ss import SsProbe, parse_ss

PROBES: dict[str, type[PlatformProbe]] = {
    PsutilProbe.name: PsutilProbe,
    LsofProbe.name: LsofProbe,
    SsProbe.name: SsProbe,
    NetstatProbe.name: NetstatProbe,
}


def create_probe(name: str, timeout: float = 10.0, executable: str | None = None) -> PlatformProbe:
    """Instantiate a probe strategy by name.

    Args:
        name: One of the keys of ``PROBES``.
        timeout: Seconds allowed per external command.
        executable: Resolved path of the command-line tool, for tool-based strategies.
    """
    try:
        probe_cls = PROBES[name]
    except KeyError:
        raise ValueError(f"Unknown probe strategy: {name}") from None
    if executable and probe_cls is not PsutilProbe:
        return probe_cls(timeout=timeout, executable=executable)
    return probe_cls(timeout=timeout)


__all__ = [
    "PROBES",
    "LsofProbe",
    "NetstatProbe",
    "PlatformProbe",
    "ProbeError",
    "PsutilProbe",
    "SsProbe",
    "create_probe",
    "decode_lsof_escapes",
    "normalize_host",
    "parse_address",
    "parse_lsof",
    "parse_netstat",
    "parse_ss",
]
