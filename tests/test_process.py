"""Tests for the psutil-backed process table."""

import os
import subprocess
from unittest.mock import MagicMock, patch

import psutil
import pytest

from portkiller.process import Delivery, ProcessTable, parse_taskkill_result

MISSING_PID = 4_194_305


class TestLookup:
    """Tests for PID resolution."""

    def test_lookup_self(self):
        """Test the running interpreter resolves to a name and command."""
        details = ProcessTable().lookup(os.getpid())

        assert details is not None
        assert details.name
        assert details.command

    def test_lookup_missing(self):
        assert ProcessTable().lookup(MISSING_PID) is None

    def test_lookup_access_denied_fields_default(self):
        """Test unreadable fields fall back to empty strings."""
        proc = MagicMock()
        proc.name.return_value = "postgres"
        proc.cmdline.side_effect = psutil.AccessDenied(pid=5)
        with patch("portkiller.process.psutil.Process", return_value=proc):
            details = ProcessTable().lookup(5)

        assert details.name == "postgres"
        assert details.command == ""


class TestIsRunning:
    """Tests for liveness checks."""

    def test_self_is_running(self):
        assert ProcessTable().is_running(os.getpid())

    def test_missing_is_not_running(self):
        assert not ProcessTable().is_running(MISSING_PID)

    def test_zombie_is_not_running(self):
        proc = MagicMock()
        proc.status.return_value = psutil.STATUS_ZOMBIE
        with patch("portkiller.process.psutil.Process", return_value=proc):
            assert not ProcessTable().is_running(9)

    def test_access_denied_counts_as_running(self):
        with patch("portkiller.process.psutil.Process", side_effect=psutil.AccessDenied(pid=1)):
            assert ProcessTable().is_running(1)


class TestDelivery:
    """Tests for signal delivery results."""

    def test_missing_process(self):
        table = ProcessTable()
        assert table.request_stop(MISSING_PID) == Delivery.NO_PROCESS
        assert table.force_stop(MISSING_PID) == Delivery.NO_PROCESS

    def test_access_denied(self):
        proc = MagicMock()
        proc.kill.side_effect = psutil.AccessDenied(pid=1)
        with patch("portkiller.process.psutil.Process", return_value=proc):
            assert ProcessTable().force_stop(1) == Delivery.DENIED

    def test_os_error_is_failed(self):
        proc = MagicMock()
        proc.terminate.side_effect = OSError("boom")
        with patch("portkiller.process.psutil.Process", return_value=proc):
            assert ProcessTable().request_stop(1234) == Delivery.FAILED

    def test_delivered(self):
        proc = MagicMock()
        with patch("portkiller.process.psutil.Process", return_value=proc):
            assert ProcessTable().request_stop(1234) == Delivery.DELIVERED
        proc.terminate.assert_called_once()


class TestTaskkill:
    """Tests for the Windows graceful request path."""

    @pytest.mark.parametrize(
        "returncode,output,expected",
        [
            (0, "SUCCESS: Sent termination signal to the process with PID 1234.", Delivery.DELIVERED),
            (128, 'ERROR: The process "1234" not found.', Delivery.NO_PROCESS),
            (1, "ERROR: The process with PID 4 could not be terminated. Reason: Access is denied.", Delivery.DENIED),
            (1, "ERROR: The process with PID 99 has already been terminated.", Delivery.DELIVERED),
            (1, "ERROR: something unexpected", Delivery.FAILED),
        ],
    )
    def test_parse_result(self, returncode, output, expected):
        assert parse_taskkill_result(returncode, output) == expected

    def test_request_stop_uses_taskkill(self):
        """Test graceful requests go through taskkill when enabled."""
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="SUCCESS", stderr="")
        with patch("portkiller.process.subprocess.run", return_value=completed) as run:
            assert ProcessTable(use_taskkill=True).request_stop(1234) == Delivery.DELIVERED

        assert run.call_args.args[0] == ["taskkill", "/PID", "1234"]

    def test_taskkill_missing(self):
        with patch("portkiller.process.subprocess.run", side_effect=FileNotFoundError()):
            assert ProcessTable(use_taskkill=True).request_stop(1234) == Delivery.FAILED
