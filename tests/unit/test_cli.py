"""Tests for bufferguard/cli.py"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from bufferguard.calendar.providers.google_calendar import GoogleCalendarAdapter
from bufferguard.calendar.providers.memory import DryRunAdapter
from bufferguard.cli import EXIT_CONFIG, EXIT_FAILURE, EXIT_OK, build_adapter, main
from bufferguard.policies.config_models import BufferGuardConfig, ConfigError


@pytest.fixture
def config_path(tmp_path):
    """Path to a config file that does not exist, so defaults apply."""
    return str(tmp_path / "bufferguard.yaml")


def _stdout_json(capsys):
    return json.loads(capsys.readouterr().out)


class TestBuildAdapter:
    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_CALENDAR_TOKEN", raising=False)
        with pytest.raises(ConfigError, match="GOOGLE_CALENDAR_TOKEN"):
            build_adapter(BufferGuardConfig())

    def test_google_adapter(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CALENDAR_TOKEN", "secret")
        adapter = build_adapter(BufferGuardConfig())
        assert isinstance(adapter, GoogleCalendarAdapter)
        assert adapter.access_token == "secret"

    def test_dry_run_wraps(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CALENDAR_TOKEN", "secret")
        adapter = build_adapter(BufferGuardConfig(), dry_run=True)
        assert isinstance(adapter, DryRunAdapter)
        assert isinstance(adapter.inner, GoogleCalendarAdapter)


class TestMain:
    def test_check_config_prints_policy(self, config_path, capsys):
        assert main(["--config", config_path, "check-config"]) == EXIT_OK
        data = _stdout_json(capsys)
        assert data["policy"]["pre_buffer_minutes"] == 15
        assert data["calendars"]["write"] == "primary"

    def test_invalid_config_exits_with_config_code(self, tmp_path, capsys):
        path = tmp_path / "bufferguard.yaml"
        path.write_text("policy:\n  pre_buffer_minutes: -1\n")

        assert main(["--config", str(path), "check-config"]) == EXIT_CONFIG
        assert "Configuration error" in capsys.readouterr().err

    def test_unreadable_config_exits_with_config_code(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path), "check-config"]) == EXIT_CONFIG
        assert "Could not read" in capsys.readouterr().err

    def test_json_logs_carry_command(self, tmp_path, capsys):
        main(["--json-logs", "--config", str(tmp_path), "check-config"])

        lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
        [error] = [line for line in lines if line["event"] == "config_error"]
        assert error["command"] == "check-config"
        assert error["service"] == "bufferguard"
        assert "dry_run" not in error

    def test_json_logs_carry_dry_run(self, config_path, store, capsys):
        with patch("bufferguard.cli.build_adapter", return_value=store):
            main(["--json-logs", "--config", config_path, "cleanup", "--dry-run"])

        lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
        [finished] = [line for line in lines if line["event"] == "cleanup_pass_finished"]
        assert finished["command"] == "cleanup"
        assert finished["dry_run"] is True
        assert finished["pass_name"] == "cleanup"
        assert finished["calendar_id"] == "primary"

    def test_missing_token_exits_with_config_code(self, config_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_CALENDAR_TOKEN", raising=False)
        assert main(["--config", config_path, "run"]) == EXIT_CONFIG

    def test_run(self, config_path, make_event, store, capsys):
        store.add(make_event(start=datetime.now(timezone.utc) + timedelta(days=1)))

        with patch("bufferguard.cli.build_adapter", return_value=store) as build:
            code = main(["--config", config_path, "run", "--dry-run"])

        assert code == EXIT_OK
        assert build.call_args.kwargs["dry_run"] is True
        data = _stdout_json(capsys)
        assert data["dry_run"] is True
        assert data["outcomes"] == {"created": 2}

    def test_cleanup(self, config_path, store, capsys):
        with patch("bufferguard.cli.build_adapter", return_value=store):
            code = main(["--config", config_path, "cleanup"])

        assert code == EXIT_OK
        assert _stdout_json(capsys)["examined"] == 0

    def test_classify(self, config_path, make_event, store, capsys):
        event = store.add(make_event(title="[ACME] Sync"))

        with patch("bufferguard.cli.build_adapter", return_value=store):
            code = main(["--config", config_path, "classify", "--event-id", event.event_id])

        assert code == EXIT_OK
        data = _stdout_json(capsys)
        assert data["decision"]["reason"] == "customer-engagement"
        assert data["decision"]["customer_code"] == "ACME"

    def test_classify_unknown_event(self, config_path, store, capsys):
        with patch("bufferguard.cli.build_adapter", return_value=store):
            code = main(["--config", config_path, "classify", "--event-id", "missing"])

        assert code == EXIT_FAILURE
        assert "Event not found" in capsys.readouterr().err

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])
