"""Configuration management for portkiller."""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PROBE_STRATEGIES = ("auto", "psutil", "lsof", "ss", "netstat")


class Settings(BaseSettings):
    """Runtime settings, overridable through PORTKILLER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PORTKILLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    debug: bool = False
    json_logs: bool = False

    # Probing
    probe_strategy: str = "auto"
    probe_timeout: float = 10.0  # seconds per external command
    command_max_length: int = 200

    # Termination (milliseconds)
    graceful_timeout_ms: int = 500  # single PID: SIGTERM -> wait -> SIGKILL
    bulk_grace_timeout_ms: int = 300  # shared wait when freeing a port

    @field_validator("probe_strategy")
    @classmethod
    def validate_probe_strategy(cls, v: str) -> str:
        """Validate the probe strategy name."""
        v = v.strip().lower()
        if v not in PROBE_STRATEGIES:
            raise ValueError(f"Probe strategy must be one of: {', '.join(PROBE_STRATEGIES)}")
        return v

    @field_validator("graceful_timeout_ms", "bulk_grace_timeout_ms")
    @classmethod
    def validate_timeout_ms(cls, v: int) -> int:
        """Grace intervals cannot be negative."""
        if v < 0:
            raise ValueError("Grace interval must be >= 0 ms")
        return v

    @field_validator("probe_timeout")
    @classmethod
    def validate_probe_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Probe timeout must be positive")
        return v

    @field_validator("command_max_length")
    @classmethod
    def validate_command_max_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Command max length must be at least 1")
        return v

    @property
    def graceful_timeout(self) -> float:
        """Single-PID grace interval in seconds."""
        return self.graceful_timeout_ms / 1000

    @property
    def bulk_grace_timeout(self) -> float:
        """Shared batch grace interval in seconds."""
        return self.bulk_grace_timeout_ms / 1000


settings = Settings()


def get_config_dict() -> dict[str, Any]:
    """Get config as dict for display."""
    return {
        "probe_strategy": settings.probe_strategy,
        "probe_timeout": settings.probe_timeout,
        "graceful_timeout_ms": settings.graceful_timeout_ms,
        "bulk_grace_timeout_ms": settings.bulk_grace_timeout_ms,
        "command_max_length": settings.command_max_length,
    }
