"""Batch CLI test suite — argument parsing and exit codes."""

from __future__ import annotations

import json
from datetime import date

import pytest

from jornadas import cli
from jornadas.common.exceptions import ProcessingError, ValidationException
from jornadas.processing.schemas import ProcessingReport, RecordError

DEC_1 = date(2025, 12, 1)


def _stub_run(monkeypatch, outcome):
    async def _run(args):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(cli, "run", _run)


class TestParser:

    def test_regenerate_with_shared_options(self):
        args = cli.build_parser().parse_args([
            "regenerate", "--from", "2025-12-01", "--to", "2025-12-15",
            "--employee", "3", "--employee", "7", "--shard", "1/4", "--dry-run",
        ])

        assert args.command == "regenerate"
        assert (args.date_from, args.date_to) == (DEC_1, date(2025, 12, 15))
        assert args.employee_ids == [3, 7]
        assert args.shard == "1/4"
        assert args.dry_run is True

    def test_half_month_rejects_bad_half(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["half-month", "--year", "2025", "--month", "12", "--half", "3"]
            )

    def test_bad_date(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["day", "--date", "01/12/2025"])


class TestExitCodes:

    def test_success_prints_report(self, monkeypatch, capsys):
        _stub_run(monkeypatch, ProcessingReport(date_from=DEC_1, date_to=DEC_1, completed=True))

        assert cli.main(["day", "--date", "2025-12-01"]) == 0
        assert json.loads(capsys.readouterr().out)["completed"] is True

    def test_employee_errors_exit_1(self, monkeypatch):
        report = ProcessingReport(
            date_from=DEC_1,
            date_to=DEC_1,
            completed=True,
            errors=[RecordError(employee_id=2, error_type="RuntimeError", detail="boom")],
        )
        _stub_run(monkeypatch, report)

        assert cli.main(["day", "--date", "2025-12-01"]) == 1

    def test_persist_failure_exits_1(self, monkeypatch):
        _stub_run(monkeypatch, ProcessingError(None, "Could not persist employees 1–2"))

        assert cli.main(["day", "--date", "2025-12-01"]) == 1

    def test_invalid_arguments_exit_2(self, monkeypatch):
        _stub_run(monkeypatch, ValidationException({"shard": ["Expected 'i/n'"]}))

        assert cli.main(["day", "--date", "2025-12-01", "--shard", "x"]) == 2
