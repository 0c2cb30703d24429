"""
End-to-end tests for the fstamp CLI.
"""

import shlex

import pytest
from typer.testing import CliRunner

from conftest import set_mtime
from filestamp.cli import EXIT_ERROR, EXIT_OK, EXIT_STALE, app
from filestamp.config import CONFIG_FILENAME, load_config
from filestamp.snapshot import Snapshot


runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch, make_file):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FILESTAMP_ENV_VAR", raising=False)
    monkeypatch.delenv("FILESTAMP_LOG_LEVEL", raising=False)
    make_file("a.txt", mtime=100)
    result = runner.invoke(app, ["init", "a.txt", "b.txt"])
    assert result.exit_code == EXIT_OK, result.output
    return tmp_path


def _export_payload(output: str) -> tuple[str, str]:
    line = next(line for line in output.splitlines() if line.startswith("export "))
    assignment = shlex.split(line[len("export "):])[0]
    name, _, payload = assignment.partition("=")
    return name, payload


def test_init_writes_config(workspace):
    config = load_config(workspace)

    assert (workspace / CONFIG_FILENAME).exists()
    assert config.watch_paths == ["a.txt", "b.txt"]
    assert config.state_db_path.exists()


def test_record_then_check_up_to_date(workspace):
    result = runner.invoke(app, ["record"])
    assert result.exit_code == EXIT_OK, result.output
    assert "2 path(s)" in result.output

    result = runner.invoke(app, ["check"])
    assert result.exit_code == EXIT_OK, result.output
    assert "Up to date" in result.output


def test_check_detects_change(workspace):
    runner.invoke(app, ["record"])
    set_mtime(workspace / "a.txt", 200)

    result = runner.invoke(app, ["check"])

    assert result.exit_code == EXIT_STALE
    assert "changed" in result.output


def test_check_one_detects_appearance(workspace):
    runner.invoke(app, ["record"])
    (workspace / "b.txt").write_text("new", encoding="utf-8")

    assert runner.invoke(app, ["check", "a.txt"]).exit_code == EXIT_OK
    result = runner.invoke(app, ["check", "b.txt"])
    assert result.exit_code == EXIT_STALE
    assert "newly appeared" in result.output


def test_check_one_unknown_path(workspace):
    runner.invoke(app, ["record"])

    result = runner.invoke(app, ["check", "c.txt"])

    assert result.exit_code == EXIT_ERROR
    assert "unknown" in result.output


def test_check_without_recorded_snapshot(workspace):
    result = runner.invoke(app, ["check", "--name", "nothing"])

    assert result.exit_code == EXIT_ERROR


def test_check_payload_option(workspace):
    assert runner.invoke(app, ["check", "--payload", Snapshot().marshal()]).exit_code == EXIT_STALE
    assert runner.invoke(app, ["check", "--payload", "garbage!"]).exit_code == EXIT_ERROR


def test_export_and_check_from_env(workspace, monkeypatch):
    runner.invoke(app, ["record"])

    result = runner.invoke(app, ["export"])
    assert result.exit_code == EXIT_OK, result.output
    name, payload = _export_payload(result.output)
    assert name == "FILESTAMP_WATCHES"
    assert len(Snapshot.unmarshal(payload)) == 2

    monkeypatch.setenv(name, payload)
    assert runner.invoke(app, ["check", "--from-env"]).exit_code == EXIT_OK

    (workspace / "a.txt").unlink()
    result = runner.invoke(app, ["check", "--from-env"])
    assert result.exit_code == EXIT_STALE
    assert "missing" in result.output


def test_check_from_env_requires_variable(workspace, monkeypatch):
    monkeypatch.delenv("FILESTAMP_WATCHES", raising=False)

    result = runner.invoke(app, ["check", "--from-env"])

    assert result.exit_code == EXIT_ERROR
    assert "FILESTAMP_WATCHES" in result.output


def test_status_lists_every_record(workspace):
    runner.invoke(app, ["record"])

    result = runner.invoke(app, ["status"])
    assert result.exit_code == EXIT_OK, result.output
    assert "a.txt" in result.output
    assert "b.txt" in result.output

    set_mtime(workspace / "a.txt", 300)
    (workspace / "b.txt").write_text("", encoding="utf-8")
    result = runner.invoke(app, ["status"])
    assert result.exit_code == EXIT_STALE
    assert "changed" in result.output
    assert "appeared" in result.output


def test_record_named_snapshot_with_explicit_paths(workspace, make_file):
    other = make_file("other.txt", mtime=5)

    result = runner.invoke(app, ["record", str(other), "--name", "other", "--print"])
    assert result.exit_code == EXIT_OK, result.output
    payload = result.output.strip().splitlines()[-1]
    assert [r.path for r in Snapshot.unmarshal(payload)] == [str(other)]

    assert runner.invoke(app, ["check", "--name", "other"]).exit_code == EXIT_OK
    assert runner.invoke(app, ["forget", "other"]).exit_code == EXIT_OK
    assert runner.invoke(app, ["forget", "other"]).exit_code == EXIT_ERROR


def test_record_requires_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["record", "x"])

    assert result.exit_code == EXIT_ERROR
    assert "Config file not found" in result.output


def test_verbose_flag_logs_decisions(workspace):
    runner.invoke(app, ["record"])

    result = runner.invoke(app, ["-v", "check"])

    assert result.exit_code == EXIT_OK


def test_list_shows_stored_snapshot_names(workspace):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == EXIT_OK
    assert "No snapshots recorded" in result.output

    runner.invoke(app, ["record"])
    runner.invoke(app, ["record", "a.txt", "--name", "extra"])

    result = runner.invoke(app, ["list"])
    assert result.exit_code == EXIT_OK, result.output
    assert "Snapshots (2):" in result.output
    assert "  default" in result.output
    assert "  extra" in result.output
