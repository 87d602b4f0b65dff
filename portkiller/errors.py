"""Exceptions raised by portkiller."""


class PortKillerError(Exception):
    """Base class for portkiller errors."""


class ProbeError(PortKillerError):
    """Raised when the OS socket table cannot be read at all."""

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"Port probe '{strategy}' failed: {reason}")
