"""Unit tests for the gitop CLI entry point and commands."""

from unittest.mock import MagicMock, patch

import pytest

from gitop.cli import commands
from gitop.cli.main import main
from gitop.config import MonitorConfig


def _run_main(argv):
    with patch("sys.argv", ["gitop", *argv]):
        with pytest.raises(SystemExit) as exc_info:
            main()
    return exc_info.value.code


def test_init_writes_config(tmp_path, capsys):
    config_path = tmp_path / "gitop.yaml"

    rc = _run_main(["--config", str(config_path), "init"])

    assert rc == 0
    assert config_path.exists()
    assert "Created default config" in capsys.readouterr().out


def test_init_refuses_to_overwrite_without_force(tmp_path, capsys):
    config_path = tmp_path / "gitop.yaml"
    config_path.write_text("repositories: []\n")

    rc = _run_main(["--config", str(config_path), "init"])

    assert rc == 1
    assert "--force" in capsys.readouterr().err
    assert config_path.read_text() == "repositories: []\n"


def test_init_force_overwrites(tmp_path):
    config_path = tmp_path / "gitop.yaml"
    config_path.write_text("repositories: []\n")

    rc = _run_main(["--config", str(config_path), "init", "--force"])

    assert rc == 0
    assert "Current Directory" in config_path.read_text()


def test_config_lists_repositories(tmp_path, capsys):
    config_path = tmp_path / "gitop.yaml"
    config_path.write_text("repositories:\n  - name: api\n    path: /srv/api\n")

    rc = _run_main(["--config", str(config_path), "config"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Exists: True" in out
    assert "Repositories configured: 1" in out
    assert "  - api (/srv/api)" in out


def test_config_without_file(tmp_path, capsys):
    rc = _run_main(["--config", str(tmp_path / "none.yaml"), "config"])

    assert rc == 0
    assert "gitop init" in capsys.readouterr().out


def test_monitor_refuses_to_start_on_bad_config(tmp_path, capsys):
    config_path = tmp_path / "gitop.yaml"
    config_path.write_text("refresh_interval: -5\n")

    with patch("gitop.cli.commands.run_monitor") as mock_run:
        rc = _run_main(["--config", str(config_path)])

    assert rc == 1
    assert "refresh_interval" in capsys.readouterr().err
    mock_run.assert_not_called()


def test_monitor_runs_with_loaded_config(tmp_path):
    config_path = tmp_path / "gitop.yaml"
    config_path.write_text(f"repositories: []\nlog_file: {tmp_path / 'logs' / 'gitop.log'}\n")

    with patch("gitop.cli.commands.run_monitor", return_value=0) as mock_run:
        rc = _run_main(["--config", str(config_path)])

    assert rc == 0
    config = mock_run.call_args.args[0]
    assert isinstance(config, MonitorConfig)
    assert (tmp_path / "logs").is_dir()


def test_run_monitor_stops_poller_after_loop(tmp_path):
    app = MagicMock()
    with patch("gitop.cli.commands.MonitorApp", return_value=app):
        with patch("gitop.cli.tui.run_monitor_tui", return_value=0) as mock_tui:
            rc = commands.run_monitor(MonitorConfig())

    assert rc == 0
    app.validate_repositories.assert_called_once_with()
    app.start.assert_called_once_with()
    mock_tui.assert_called_once_with(app)
    app.stop.assert_called_once_with()


def test_run_monitor_stops_poller_when_loop_fails():
    app = MagicMock()
    with patch("gitop.cli.commands.MonitorApp", return_value=app):
        with patch("gitop.cli.tui.run_monitor_tui", side_effect=RuntimeError("terminal gone")):
            with pytest.raises(RuntimeError):
                commands.run_monitor(MonitorConfig())

    app.stop.assert_called_once_with()
