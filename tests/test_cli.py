"""Tests for the command-line interface."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from tab_hibernate.cli import main
from tab_hibernate.errors import ChannelUnavailableError


def test_tick_runs_one_firing(tmp_path, monkeypatch):
    monkeypatch.setenv("TAB_HIBERNATE_DB", str(tmp_path / "cli.sqlite3"))
    result = CliRunner().invoke(main, ["tick"])
    assert result.exit_code == 0
    assert "Suspended 0 tab(s)." in result.output


def test_status_prints_remote_status():
    client = MagicMock()
    client.__enter__.return_value = client
    client.send.return_value = {"suspendedToday": 3, "lastRun": None, "eligibleCount": 4}

    with patch("tab_hibernate.cli.HibernateClient", return_value=client):
        result = CliRunner().invoke(main, ["status"])

    assert result.exit_code == 0
    assert "Suspended today: 3" in result.output
    assert "Last run: never" in result.output
    client.send.assert_called_once_with("get-status")


def test_unreachable_service_exits_with_error():
    client = MagicMock()
    client.__enter__.return_value = client
    client.send.side_effect = ChannelUnavailableError("No answer from http://127.0.0.1:8765 after 4 attempts")

    with patch("tab_hibernate.cli.HibernateClient", return_value=client):
        result = CliRunner().invoke(main, ["backup"])

    assert result.exit_code == 1
    assert "No answer" in result.output


def test_import_rejects_bad_json(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{broken", encoding="utf-8")
    result = CliRunner().invoke(main, ["import", str(path)])
    assert result.exit_code == 1
    assert "Invalid JSON file." in result.output
