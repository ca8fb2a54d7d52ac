"""
Unit tests for configuration loading.
"""

import pytest

from src.config import SPARK_MASTER_ENV, WORKERS_ENV, LintConfig, load_config
from src.exceptions import ConfigError


class TestLoadConfig:
    """Test cases for load_config."""

    def test_defaults(self):
        config = load_config(None, environ={})
        assert config == LintConfig()
        assert config.worker_count == 4
        assert config.warehouse.spark is None
        assert config.query_worker_count() == 0

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "lint.yml"
        path.write_text(
            "worker_count: 8\n"
            "run_date: '2022-02-03'\n"
            "variables:\n  env: dev\n"
            "warehouse:\n  spark:\n    master: local[2]\n    conf:\n      spark.ui.enabled: 'false'\n"
        )

        config = load_config(str(path), environ={})

        assert config.worker_count == 8
        assert config.run_date == "2022-02-03"
        assert config.variables == {"env": "dev"}
        assert config.warehouse.spark.master == "local[2]"
        assert config.warehouse.spark.conf == {"spark.ui.enabled": "false"}
        assert config.query_worker_count() == 8

    def test_environment_overrides(self, tmp_path):
        config = load_config(None, environ={WORKERS_ENV: "2", SPARK_MASTER_ENV: "spark://host:7077"})
        assert config.worker_count == 2
        assert config.warehouse.spark.master == "spark://host:7077"
        assert config.query_worker_count() == 2

    def test_negative_workers(self):
        with pytest.raises(ConfigError):
            load_config(None, environ={WORKERS_ENV: "-1"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(str(tmp_path / "missing.yml"), environ={})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "lint.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path), environ={})
