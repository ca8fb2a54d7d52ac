"""
Unit tests for the command-line entry point.
"""

import pytest

from src.cli import main
from src.config import SPARK_MASTER_ENV, WORKERS_ENV


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv(WORKERS_ENV, raising=False)
    monkeypatch.delenv(SPARK_MASTER_ENV, raising=False)


def _make_pipeline(root, name: str, schedule: str = "@daily"):
    tasks = root / "tasks"
    tasks.mkdir(parents=True)
    (root / "pipeline.yml").write_text(f"name: {name}\nschedule: '{schedule}'\n")
    (tasks / "extract.sql").write_text(
        "-- @blast.name: extract\n-- @blast.type: bq.sql\nselect 1;\n"
    )


class TestMain:
    """Test cases for main."""

    def test_clean_pipelines_exit_zero(self, tmp_path, capsys):
        _make_pipeline(tmp_path / "clean", "clean")

        assert main(["validate", str(tmp_path)]) == 0
        assert "found 0 issue(s)" in capsys.readouterr().out

    def test_issues_exit_one(self, tmp_path, capsys):
        _make_pipeline(tmp_path / "clean", "clean")
        _make_pipeline(tmp_path / "broken", "broken pipeline", schedule="whenever")

        assert main(["validate", str(tmp_path)]) == 1

        output = capsys.readouterr().out
        assert "Invalid cron schedule 'whenever'" in output
        assert "found 2 issue(s)" in output

    def test_missing_path_exit_one(self, tmp_path):
        assert main(["validate", str(tmp_path / "missing")]) == 1

    def test_invalid_config_exit_one(self, tmp_path):
        _make_pipeline(tmp_path / "clean", "clean")
        config = tmp_path / "lint.yml"
        config.write_text("worker_count: many\n")

        assert main(["validate", str(tmp_path), "--config", str(config)]) == 1

    def test_undecodable_task_file_exit_one(self, tmp_path):
        _make_pipeline(tmp_path / "clean", "clean")
        (tmp_path / "clean" / "tasks" / "legacy.sql").write_bytes("select 'café';".encode("latin-1"))

        assert main(["validate", str(tmp_path)]) == 1
