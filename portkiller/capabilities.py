"""Host capability detection.

Detection runs once per process (:func:`get_capabilities` is memoized) and
the result is immutable, so it can be shared freely between threads.
"""

import functools
import logging
import os
import shutil
import sys
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Probe strategies in order of preference for each OS family
STRATEGY_PREFERENCES: dict[str, tuple[str, ...]] = {
    "linux": ("psutil", "ss", "lsof"),
    "darwin": ("lsof", "psutil"),  # psutil needs root for the socket table on macOS
    "windows": ("psutil", "netstat"),
    "other": ("psutil", "lsof"),
}

TOOLS = ("lsof", "ss", "netstat", "taskkill")

# sbin directories are often missing from a regular user's PATH
_EXTRA_PATHS = ("/usr/sbin", "/sbin")


@dataclass(frozen=True)
class Capabilities:
    """What this host offers for reading the socket table and stopping processes."""
    platform: str
    tool_paths: dict[str, str] = field(default_factory=dict, hash=False)
    psutil_sockets: bool = True
    strategies: tuple[str, ...] = ()

    @property
    def use_taskkill(self) -> bool:
        return self.platform == "windows" and "taskkill" in self.tool_paths


def platform_family(system: str = sys.platform) -> str:
    """Map ``sys.platform`` to an OS family name."""
    if system.startswith("linux"):
        return "linux"
    if system == "darwin":
        return "darwin"
    if system in ("win32", "cygwin"):
        return "windows"
    return "other"


def find_tools(tools: tuple[str, ...] = TOOLS) -> dict[str, str]:
    """Locate external query tools, including sbin directories."""
    search_path = os.pathsep.join([os.environ.get("PATH", ""), *_EXTRA_PATHS])
    found = {}
    for tool in tools:
        path = shutil.which(tool, path=search_path)
        if path:
            found[tool] = path
    return found


def detect_capabilities(
    platform: str | None = None,
    tool_paths: dict[str, str] | None = None,
    is_root: bool | None = None,
) -> Capabilities:
    """Probe the host and work out which strategies are usable."""
    platform = platform or platform_family()
    tool_paths = find_tools() if tool_paths is None else tool_paths
    if is_root is None:
        is_root = hasattr(os, "geteuid") and os.geteuid() == 0

    psutil_sockets = platform != "darwin" or is_root

    usable = []
    for strategy in STRATEGY_PREFERENCES.get(platform, STRATEGY_PREFERENCES["other"]):
        if strategy == "psutil":
            available = psutil_sockets
        elif strategy == "netstat":
            # Only the Windows output format is understood
            available = platform == "windows" and "netstat" in tool_paths
        else:
            available = strategy in tool_paths
        if available:
            usable.append(strategy)

    capabilities = Capabilities(
        platform=platform,
        tool_paths=dict(tool_paths),
        psutil_sockets=psutil_sockets,
        strategies=tuple(usable),
    )
    logger.debug(f"Detected capabilities: platform={platform}, strategies={list(usable)}")
    return capabilities


@functools.lru_cache(maxsize=1)
def get_capabilities() -> Capabilities:
    """Process-wide capabilities, detected on first use."""
    return detect_capabilities()
