"""Tests for portkiller data models."""

import pytest
from pydantic import ValidationError

from portkiller.models import (
    MAX_PID,
    PidOutcome,
    PortFilter,
    PortInfo,
    PortKillResult,
    PortKillStatus,
    ProcessType,
    TerminationMode,
    TerminationOutcome,
    filter_ports,
)


@pytest.fixture
def ports():
    return [
        PortInfo(port=22, pid=400, process_name="sshd", command="/usr/sbin/sshd -D", process_type=ProcessType.SYSTEM),
        PortInfo(port=3000, pid=1001, process_name="node", command="node server.js", process_type=ProcessType.DEVELOPMENT),
        PortInfo(port=5432, pid=1002, process_name="postgres", command="postgres -D /data", process_type=ProcessType.DATABASE),
        PortInfo(port=8080, pid=1003, process_name="nginx", command="nginx: master process", process_type=ProcessType.WEB_SERVER),
    ]


class TestPortInfo:
    """Tests for PortInfo validation."""

    def test_defaults(self):
        info = PortInfo(port=80, pid=1)
        assert info.address == "*"
        assert info.process_type == ProcessType.OTHER
        assert info.is_active is True

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            PortInfo(port=port, pid=1)

    def test_pid_range(self):
        PortInfo(port=80, pid=MAX_PID)
        with pytest.raises(ValidationError):
            PortInfo(port=80, pid=MAX_PID + 1)

    def test_json_dump_uses_enum_values(self):
        data = PortInfo(port=80, pid=1, process_type=ProcessType.WEB_SERVER).model_dump(mode="json")
        assert data["process_type"] == "web_server"


class TestProcessType:
    """Tests for ProcessType display names."""

    def test_display_names(self):
        assert ProcessType.WEB_SERVER.display_name == "Web Server"
        assert ProcessType.DATABASE.display_name == "Database"
        assert ProcessType.OTHER.display_name == "Other"

    def test_every_type_has_display_name(self):
        assert all(t.display_name for t in ProcessType)


class TestPortFilter:
    """Tests for PortFilter matching."""

    def test_empty_filter_matches_all(self, ports):
        assert filter_ports(ports, PortFilter()) == ports

    def test_search_by_name(self, ports):
        assert [p.port for p in filter_ports(ports, PortFilter(search_text="NODE"))] == [3000]

    def test_search_by_port(self, ports):
        assert [p.pid for p in filter_ports(ports, PortFilter(search_text="543"))] == [1002]

    def test_search_by_command(self, ports):
        assert [p.pid for p in filter_ports(ports, PortFilter(search_text="master"))] == [1003]

    def test_type_filter(self, ports):
        result = filter_ports(ports, PortFilter(process_type=ProcessType.DATABASE))
        assert [p.process_name for p in result] == ["postgres"]

    def test_port_range_inclusive(self, ports):
        result = filter_ports(ports, PortFilter(port_range=(3000, 5432)))
        assert [p.port for p in result] == [3000, 5432]

    def test_criteria_combined(self, ports):
        port_filter = PortFilter(search_text="o", process_type=ProcessType.DEVELOPMENT, port_range=(1, 4000))
        assert [p.pid for p in filter_ports(ports, port_filter)] == [1001]

    @pytest.mark.parametrize("port_range", [(5000, 4000), (-1, 10), (0, 70000)])
    def test_invalid_range(self, port_range):
        with pytest.raises(ValidationError):
            PortFilter(port_range=port_range)


class TestOutcomes:
    """Tests for termination result types."""

    @pytest.mark.parametrize(
        "outcome,succeeded",
        [
            (TerminationOutcome.KILLED, True),
            (TerminationOutcome.NOT_FOUND, True),
            (TerminationOutcome.PERMISSION_DENIED, False),
            (TerminationOutcome.STILL_ALIVE, False),
        ],
    )
    def test_succeeded(self, outcome, succeeded):
        assert outcome.succeeded is succeeded
        assert PidOutcome(1, outcome).success is succeeded

    def test_port_kill_result(self):
        result = PortKillResult(
            port=8080,
            mode=TerminationMode.GRACEFUL,
            status=PortKillStatus.SUCCESS,
            outcomes=[
                PidOutcome(1001, TerminationOutcome.KILLED),
                PidOutcome(1002, TerminationOutcome.PERMISSION_DENIED, error="kill refused"),
            ],
        )
        assert result.success
        assert result.at_least_one_killed
        assert result.killed_pids == [1001]

    def test_vanished_pids_are_not_kills(self):
        """Test a port whose listeners all exited first is success without a kill."""
        result = PortKillResult(
            port=3000,
            mode=TerminationMode.GRACEFUL,
            status=PortKillStatus.SUCCESS,
            outcomes=[PidOutcome(11, TerminationOutcome.NOT_FOUND), PidOutcome(12, TerminationOutcome.NOT_FOUND)],
        )
        assert result.success
        assert not result.at_least_one_killed
        assert result.killed_pids == [11, 12]

    def test_failed_result(self):
        result = PortKillResult(port=1, mode=TerminationMode.FORCE, status=PortKillStatus.FAILED)
        assert not result.success
        assert not result.at_least_one_killed
