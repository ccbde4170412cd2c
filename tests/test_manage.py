"""Tests for the management CLI commands."""

import argparse
import json
import sys
from pathlib import Path

import pytest

import manage
from stockledger.config import configure_logging, reset_logging


@pytest.fixture(autouse=True)
def cli_logging(capsys):
    """Log to the captured stderr, as main() does."""
    configure_logging(stream=sys.stderr)
    yield
    reset_logging()


def namespace(**kwargs) -> argparse.Namespace:
    defaults = {"db_path": None, "no_backup": True}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestMigrateCommand:
    def test_fresh_database(self, temp_db_path: Path, capsys):
        manage.cmd_migrate(namespace(db_path=str(temp_db_path)))

        out = capsys.readouterr().out
        assert "v001" in out
        assert "ok" in out
        assert temp_db_path.exists()

    def test_second_run_is_up_to_date(self, temp_db_path: Path, capsys):
        manage.cmd_migrate(namespace(db_path=str(temp_db_path)))
        capsys.readouterr()

        manage.cmd_migrate(namespace(db_path=str(temp_db_path)))
        assert "up to date" in capsys.readouterr().out


class TestStatusCommand:
    def test_missing_database(self, temp_db_path: Path, capsys):
        manage.cmd_status(namespace(db_path=str(temp_db_path)))
        assert "does not exist" in capsys.readouterr().out

    def test_after_migrate(self, temp_db_path: Path, capsys):
        manage.cmd_migrate(namespace(db_path=str(temp_db_path)))
        capsys.readouterr()

        manage.cmd_status(namespace(db_path=str(temp_db_path)))
        out = capsys.readouterr().out
        assert "Current version: 001" in out
        assert "Pending: -" in out


class TestVerifyCommand:
    def test_clean_database_passes(self, temp_db_path: Path, capsys):
        manage.cmd_migrate(namespace(db_path=str(temp_db_path)))
        capsys.readouterr()

        manage.cmd_verify(namespace(db_path=str(temp_db_path)))
        out = capsys.readouterr().out
        assert "FAIL" not in out
        assert "required_tables: PASS" in out


class TestReconcileCommand:
    def test_empty_pair_is_consistent(self, capsys):
        manage.cmd_migrate(namespace())
        capsys.readouterr()

        manage.cmd_reconcile(namespace(product=1, warehouse=1))
        captured = capsys.readouterr()
        report = json.loads(captured.out)
        assert "stock_ledger_reconciled" in captured.err
        assert report["ledger_on_hand"] == 0
        assert report["record_on_hand"] == 0
        assert report["is_consistent"] is True

    def test_unknown_command_exits(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["manage.py", "explode"])
        with pytest.raises(SystemExit):
            manage.main()
