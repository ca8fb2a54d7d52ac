"""
Lint configuration.

Loaded from an optional YAML file, then overridden from the environment.
"""

import os
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError

WORKERS_ENV = "PIPELINE_LINT_WORKERS"
SPARK_MASTER_ENV = "PIPELINE_LINT_SPARK_MASTER"

DEFAULT_WORKER_COUNT = 4


class SparkConfig(BaseModel):
    """Spark session used to dry-run ``databricks.sql`` tasks."""

    master: str = "local[*]"
    app_name: str = "pipeline-lint"
    conf: Dict[str, str] = Field(default_factory=dict)


class WarehouseConfig(BaseModel):
    spark: Optional[SparkConfig] = None


class LintConfig(BaseModel):
    """Settings of a lint run."""

    worker_count: int = Field(default=DEFAULT_WORKER_COUNT, ge=0)
    pipeline_file_name: str = "pipeline.yml"
    tasks_directory_name: str = "tasks"
    task_file_name: str = "task.yml"
    run_date: Optional[str] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    warehouse: WarehouseConfig = Field(default_factory=WarehouseConfig)

    def query_worker_count(self) -> int:
        """Worker count of the query validation rules, 0 without a warehouse."""
        if self.warehouse.spark is None:
            return 0
        return self.worker_count


def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> LintConfig:
    """
    Load the lint configuration.

    Args:
        config_path: Optional path to a YAML configuration file
        environ: Environment to read overrides from, ``os.environ`` by default

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file cannot be read or the values are invalid
    """
    environ = os.environ if environ is None else environ
    raw: Dict = {}

    if config_path:
        try:
            with open(config_path, 'r') as f:
                raw = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

    if environ.get(WORKERS_ENV):
        raw["worker_count"] = environ[WORKERS_ENV]

    if environ.get(SPARK_MASTER_ENV):
        warehouse = raw.setdefault("warehouse", {}) or {}
        spark = warehouse.get("spark") or {}
        spark["master"] = environ[SPARK_MASTER_ENV]
        warehouse["spark"] = spark
        raw["warehouse"] = warehouse

    try:
        return LintConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
