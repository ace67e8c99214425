"""
Unit tests for printer repair (cupsenable + cupsaccept).
"""

import pytest
from unittest.mock import MagicMock

from core.commands import CommandResult
from core.exceptions import CommandNotFoundError, CommandTimeoutError
from core.printer_repair import PrinterRepair


def _result(args, returncode=0, stderr=""):
    return CommandResult(args=list(args), returncode=returncode, stderr=stderr)


@pytest.fixture
def ok_runner():
    runner = MagicMock()
    runner.run.side_effect = lambda args, cancel_event=None, timeout=None: _result(args)
    return runner


class TestPrinterRepair:
    """Test enable_printer() step ordering and failure tolerance."""

    def test_runs_enable_then_accept(self, ok_runner):
        PrinterRepair(ok_runner).enable_printer("Phomemo_PM2")

        commands = [call.args[0] for call in ok_runner.run.call_args_list]
        assert commands == [["cupsenable", "Phomemo_PM2"], ["cupsaccept", "Phomemo_PM2"]]

    def test_name_with_spaces_is_single_argument(self, ok_runner):
        """The printer name is never split or shell-quoted."""
        PrinterRepair(ok_runner).enable_printer("Label Printer; rm -rf /")

        for call in ok_runner.run.call_args_list:
            assert call.args[0][1] == "Label Printer; rm -rf /"
            assert len(call.args[0]) == 2

    def test_enable_failure_still_runs_accept(self):
        runner = MagicMock()
        runner.run.side_effect = [
            _result(["cupsenable"], returncode=1, stderr="cupsenable: Forbidden"),
            _result(["cupsaccept"]),
        ]

        PrinterRepair(runner).enable_printer("Phomemo_PM2")

        assert runner.run.call_count == 2

    def test_exceptions_are_swallowed(self):
        """Neither step's exception reaches the caller."""
        runner = MagicMock()
        runner.run.side_effect = [
            CommandNotFoundError(["cupsenable", "Phomemo_PM2"]),
            CommandTimeoutError(["cupsaccept", "Phomemo_PM2"], 30.0),
        ]

        PrinterRepair(runner).enable_printer("Phomemo_PM2")

        assert runner.run.call_count == 2

    def test_repeated_repair_is_harmless(self, ok_runner):
        """Repairing an already-enabled printer twice raises nothing."""
        repair = PrinterRepair(ok_runner)

        repair.enable_printer("Phomemo_PM2")
        repair.enable_printer("Phomemo_PM2")

        assert ok_runner.run.call_count == 4

    def test_passes_cancel_event(self, ok_runner):
        cancel_event = MagicMock()

        PrinterRepair(ok_runner).enable_printer("Phomemo_PM2", cancel_event=cancel_event)

        for call in ok_runner.run.call_args_list:
            assert call.kwargs["cancel_event"] is cancel_event
