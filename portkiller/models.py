"""Data models for portkiller."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field, field_validator

MAX_PID = 2**32 - 1


class ProcessType(str, Enum):
    """Role of the process owning a listening port."""
    WEB_SERVER = "web_server"
    DATABASE = "database"
    DEVELOPMENT = "development"
    SYSTEM = "system"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ProcessType.WEB_SERVER: "Web Server",
    ProcessType.DATABASE: "Database",
    ProcessType.DEVELOPMENT: "Development",
    ProcessType.SYSTEM: "System",
    ProcessType.OTHER: "Other",
}


class TerminationMode(str, Enum):
    """How a process should be stopped."""
    GRACEFUL = "graceful"
    FORCE = "force"


class TerminationOutcome(str, Enum):
    """Result of a termination attempt against one PID."""
    KILLED = "killed"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    STILL_ALIVE = "still_alive"

    @property
    def succeeded(self) -> bool:
        """A vanished target counts as success for a termination intent."""
        return self in (TerminationOutcome.KILLED, TerminationOutcome.NOT_FOUND)


class PortKillStatus(str, Enum):
    """Aggregated result of freeing a port."""
    NO_ACTION = "no_action"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class RawSocketRecord:
    """A listening socket as reported by a platform probe, before cataloguing."""
    port: int
    pid: int
    address: str
    process_name: str = ""
    command: str = ""


class PortInfo(BaseModel):
    """A listening TCP socket bound to one process at scan time."""
    port: int = Field(ge=0, le=65535)
    pid: int = Field(ge=0, le=MAX_PID)
    process_name: str = ""
    command: str = ""
    address: str = "*"
    process_type: ProcessType = ProcessType.OTHER
    is_active: bool = True


class PortFilter(BaseModel):
    """Filter criteria applied to a scan snapshot."""
    search_text: str | None = None
    process_type: ProcessType | None = None
    port_range: tuple[int, int] | None = None

    @field_validator("port_range")
    @classmethod
    def validate_port_range(cls, v: tuple[int, int] | None) -> tuple[int, int] | None:
        """Validate the range is ordered and inside 0..65535."""
        if v is None:
            return v
        low, high = v
        if not (0 <= low <= high <= 65535):
            raise ValueError("Port range must satisfy 0 <= min <= max <= 65535")
        return v

    def matches(self, info: PortInfo) -> bool:
        """Check whether a port entry passes every configured criterion."""
        if self.search_text:
            text = self.search_text.lower()
            if (
                text not in str(info.port)
                and text not in info.process_name.lower()
                and text not in info.command.lower()
            ):
                return False

        if self.process_type is not None and info.process_type != self.process_type:
            return False

        if self.port_range is not None:
            low, high = self.port_range
            if not low <= info.port <= high:
                return False

        return True


def filter_ports(ports: list[PortInfo], port_filter: PortFilter) -> list[PortInfo]:
    """Return the entries matching a filter, preserving order."""
    return [p for p in ports if port_filter.matches(p)]


@dataclass
class PidOutcome:
    """Outcome of terminating a single PID."""
    pid: int
    outcome: TerminationOutcome
    escalated: bool = False  # force path used after a graceful request
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome.succeeded


@dataclass
class PortKillResult:
    """Aggregated outcome of freeing a port."""
    port: int
    mode: TerminationMode
    status: PortKillStatus
    outcomes: list[PidOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """No action and at-least-one-terminated are both success-shaped."""
        return self.status != PortKillStatus.FAILED

    @property
    def at_least_one_killed(self) -> bool:
        """True only if some PID was confirmed terminated; vanished PIDs do not count."""
        return any(o.outcome == TerminationOutcome.KILLED for o in self.outcomes)

    @property
    def killed_pids(self) -> list[int]:
        return [o.pid for o in self.outcomes if o.success]
