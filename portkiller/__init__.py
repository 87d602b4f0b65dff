"""portkiller - find what is listening on local TCP ports and free them."""

from portkiller.errors import PortKillerError, ProbeError
from portkiller.instance import PortKiller, create_instance
from portkiller.models import (
    PidOutcome,
    PortFilter,
    PortInfo,
    PortKillResult,
    PortKillStatus,
    ProcessType,
    RawSocketRecord,
    TerminationMode,
    TerminationOutcome,
    filter_ports,
)

__version__ = "0.1.0"


def version() -> str:
    """Library version string."""
    return __version__


__all__ = [
    "PidOutcome",
    "PortFilter",
    "PortInfo",
    "PortKillResult",
    "PortKillStatus",
    "PortKiller",
    "PortKillerError",
    "ProbeError",
    "ProcessType",
    "RawSocketRecord",
    "TerminationMode",
    "TerminationOutcome",
    "create_instance",
    "filter_ports",
    "version",
]
