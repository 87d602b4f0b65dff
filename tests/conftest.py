"""Pytest fixtures for portkiller tests."""

import pytest

from portkiller.capabilities import Capabilities
from portkiller.config import Settings
from portkiller.instance import PortKiller
from portkiller.models import RawSocketRecord
from portkiller.terminator import ProcessTerminator
from tests.fakes import FakeProbe, FakeProcess, FakeProcessTable


@pytest.fixture
def table():
    """Empty in-memory process table."""
    return FakeProcessTable()


@pytest.fixture
def terminator(table):
    """Terminator whose waits are recorded instead of slept."""
    return ProcessTerminator(table, graceful_timeout=0.5, sleep=table.sleep)


@pytest.fixture
def linux_capabilities():
    return Capabilities(platform="linux", tool_paths={}, psutil_sockets=True, strategies=("psutil",))


@pytest.fixture
def scenario_8080():
    """Port 8080 shared by node (1001) and postgres (1002), plus an sshd on 22."""
    table = FakeProcessTable({
        1001: FakeProcess(name="node", command="node server.js"),
        1002: FakeProcess(name="postgres", command="/usr/lib/postgresql/16/bin/postgres -D /var/lib/pg"),
        400: FakeProcess(name="sshd", command="/usr/sbin/sshd -D"),
    })
    probe = FakeProbe([
        RawSocketRecord(port=8080, pid=1001, address="*"),
        RawSocketRecord(port=8080, pid=1001, address="::"),
        RawSocketRecord(port=8080, pid=1002, address="127.0.0.1"),
        RawSocketRecord(port=22, pid=400, address="*"),
    ])
    return table, probe


@pytest.fixture
def make_killer(linux_capabilities):
    """Build a PortKiller wired to fakes."""

    def _make(table: FakeProcessTable, probe: FakeProbe, **settings_overrides) -> PortKiller:
        return PortKiller(
            settings=Settings(**settings_overrides),
            capabilities=linux_capabilities,
            probe=probe,
            table=table,
            sleep=table.sleep,
        )

    return _make
