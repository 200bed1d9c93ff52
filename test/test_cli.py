"""
End-to-end tests for the command-line entry point.
"""

import json

import pytest

from settings_sync import cli
from settings_sync.config import AppConfig, DatabaseConfig, LocalStoreConfig, SyncConfig
from settings_sync.database.session import create_engine_for_url, create_session_factory
from settings_sync.local_store import LocalStoreAdapter, SqlKeyValueStore


def _config(tmp_path, device):
    return AppConfig(
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'remote.db'}"),
        local_store=LocalStoreConfig(url=f"sqlite:///{tmp_path / f'{device}.db'}"),
        sync=SyncConfig(reload_delay_seconds=0),
    )


def _use(monkeypatch, config):
    monkeypatch.setattr(cli, "settings", config)


def _device_store(config):
    engine = create_engine_for_url(config.local_store.url)
    return LocalStoreAdapter(SqlKeyValueStore(create_session_factory(engine)))


class TestCli:
    """Test cases for settings-sync subcommands."""

    @pytest.mark.integration
    def test_init_db_and_check_db(self, tmp_path, monkeypatch, capsys):
        _use(monkeypatch, _config(tmp_path, "device_a"))

        assert cli.main(["init-db"]) == 0
        assert cli.main(["check-db"]) == 0

        out = capsys.readouterr().out
        assert "Tables created" in out
        assert "Database connection OK" in out

    @pytest.mark.integration
    def test_sync_without_any_data(self, tmp_path, monkeypatch, capsys):
        _use(monkeypatch, _config(tmp_path, "device_a"))
        cli.main(["init-db"])

        assert cli.main(["sync", "--user-id", "u1"]) == 0
        assert "sync: nothing_to_sync" in capsys.readouterr().out

    @pytest.mark.integration
    def test_push_then_sync_on_second_device(self, tmp_path, monkeypatch, capsys):
        device_a = _config(tmp_path, "device_a")
        _use(monkeypatch, device_a)
        cli.main(["init-db"])
        _device_store(device_a).write_bundle({"folders": [{"id": 1}], "charts": [{"id": 9}]})

        assert cli.main(["push", "--user-id", "u1", "--email", "u1@example.com"]) == 0

        device_b = _config(tmp_path, "device_b")
        _use(monkeypatch, device_b)
        cli.main(["init-db"])
        assert cli.main(["sync", "--user-id", "u1"]) == 0
        capsys.readouterr()

        assert cli.main(["show"]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["folders"] == [{"id": 1}]
        assert shown["charts"] == [{"id": 9}]
        assert shown["trainings"] == []

    @pytest.mark.integration
    def test_first_sign_in_uploads_local_data(self, tmp_path, monkeypatch, capsys):
        config = _config(tmp_path, "device_a")
        _use(monkeypatch, config)
        cli.main(["init-db"])
        _device_store(config).write_bundle({"trainings": [{"id": "t1"}]})

        assert cli.main(["sync", "--user-id", "u1"]) == 0
        assert "sync: uploaded_initial" in capsys.readouterr().out

        assert cli.main(["sync", "--user-id", "u1"]) == 0
        assert "sync: applied_remote" in capsys.readouterr().out

    @pytest.mark.integration
    def test_push_failure_exit_code(self, tmp_path, monkeypatch, capsys):
        _use(monkeypatch, _config(tmp_path, "device_a"))

        assert cli.main(["push", "--user-id", "u1"]) == 1
        assert "push: failed" in capsys.readouterr().out

    @pytest.mark.integration
    def test_show_before_init_db_reports_failure(self, tmp_path, monkeypatch, capsys):
        _use(monkeypatch, _config(tmp_path, "device_a"))

        assert cli.main(["show"]) == 1
        out = capsys.readouterr().out
        assert "show: failed" in out
        assert "error:" in out

    @pytest.mark.unit
    def test_user_id_is_required(self, tmp_path, monkeypatch):
        _use(monkeypatch, _config(tmp_path, "device_a"))

        with pytest.raises(SystemExit):
            cli.main(["sync"])
