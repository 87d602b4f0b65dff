"""Process type classification.

Rules are checked in order and the first match wins, so more specific
categories come before generic ones. A token matches as a whole word
inside the lowercased process name or command line, optionally followed by
a version suffix: ``python3.11`` matches ``python``, ``redis-server``
matches ``redis``, but ``go`` does not match ``google`` or ``django``.
"""

import re
from dataclasses import dataclass, field

from portkiller.models import ProcessType

# PIDs owned by the kernel / init on every supported OS
RESERVED_PIDS = frozenset({0, 1})


@dataclass(frozen=True)
class ClassificationRule:
    """Maps a set of name tokens (and optionally PIDs) to a process type."""
    process_type: ProcessType
    tokens: tuple[str, ...]
    pids: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        alternation = "|".join(re.escape(t) for t in self.tokens)
        object.__setattr__(self, "_pattern", re.compile(rf"(?<![a-z0-9])(?:{alternation})(?![a-z])"))

    def matches(self, process_name: str, command: str, pid: int | None = None) -> bool:
        if pid is not None and pid in self.pids:
            return True
        return bool(self._pattern.search(process_name) or self._pattern.search(command))


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ProcessType.WEB_SERVER,
        ("nginx", "apache", "httpd", "caddy", "traefik", "lighttpd", "haproxy", "envoy"),
    ),
    ClassificationRule(
        ProcessType.DATABASE,
        (
            "postgres", "mysql", "mysqld", "mariadb", "mariadbd", "redis", "mongo",
            "mongod", "mongos", "sqlite", "cockroach",
            "clickhouse", "cassandra", "elasticsearch", "memcached",
        ),
    ),
    ClassificationRule(
        ProcessType.DEVELOPMENT,
        (
            "node", "nodejs", "npm", "yarn", "pnpm", "bun", "deno", "python", "ruby", "php",
            "java", "javaw", "kotlin", "scala", "go", "cargo", "rustc", "swift", "dotnet",
            "vite", "webpack", "esbuild", "next", "nuxt", "remix", "turbo", "expo",
            "flutter", "uvicorn", "gunicorn",
        ),
    ),
    ClassificationRule(
        ProcessType.SYSTEM,
        (
            # macOS
            "launchd", "rapportd", "sharingd", "airplay", "controlcenter", "kernel",
            "mds", "spotlight", "coreaudio", "coreaudiod", "windowserver",
            # Linux
            "systemd", "sshd", "cupsd",
            # Windows
            "svchost", "system", "lsass", "csrss", "services", "wininit", "smss",
        ),
        pids=RESERVED_PIDS,
    ),
)


def classify(process_name: str, command: str, pid: int | None = None) -> ProcessType:
    """Classify a process from its name, command line and PID."""
    name = process_name.lower()
    cmd = command.lower()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(name, cmd, pid):
            return rule.process_type
    return ProcessType.OTHER
