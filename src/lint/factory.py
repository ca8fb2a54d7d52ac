"""
Rule set construction.
"""

import logging
from typing import Callable, List, Optional

from ..config import LintConfig
from ..query.extractor import FileExtractor
from ..query.renderer import Renderer
from ..warehouse.spark_validator import create_spark_validator
from .query_validator import QueryValidator, QueryValidatorRule
from .rules import (
    FileSystem,
    Rule,
    SimpleRule,
    ensure_dependency_exists,
    ensure_executable_file_is_valid,
    ensure_only_accepted_task_types_are_there,
    ensure_pipeline_has_no_cycles,
    ensure_pipeline_name_is_valid,
    ensure_pipeline_schedule_is_valid_cron,
    ensure_task_name_is_unique,
    ensure_task_name_is_valid,
)

SPARK_TASK_TYPE = "databricks.sql"

SparkValidatorFactory = Callable[..., QueryValidator]


def get_rules(
    config: LintConfig,
    logger: Optional[logging.Logger] = None,
    fs: Optional[FileSystem] = None,
    spark_validator_factory: Optional[SparkValidatorFactory] = None
) -> List[Rule]:
    """
    Build the full rule set for a lint run.

    Raises:
        WarehouseConnectionError: If a configured warehouse client cannot be created
    """
    logger = logger or logging.getLogger(__name__)

    rules: List[Rule] = [
        SimpleRule("task-name-valid", ensure_task_name_is_valid),
        SimpleRule("task-name-unique", ensure_task_name_is_unique),
        SimpleRule("dependency-exists", ensure_dependency_exists),
        SimpleRule("valid-executable-file", ensure_executable_file_is_valid(fs)),
        SimpleRule("pipeline-name-valid", ensure_pipeline_name_is_valid),
        SimpleRule("valid-pipeline-schedule", ensure_pipeline_schedule_is_valid_cron),
        SimpleRule("valid-task-type", ensure_only_accepted_task_types_are_there),
        SimpleRule("acyclic-pipeline", ensure_pipeline_has_no_cycles),
    ]

    worker_count = config.query_worker_count()
    if worker_count == 0:
        logger.debug("No warehouse configured, query validation is disabled")
        return rules

    factory = spark_validator_factory or create_spark_validator
    validator = factory(config.warehouse.spark, logger=logger)
    extractor = FileExtractor(Renderer.for_run_date(config.run_date, config.variables))

    rules.append(QueryValidatorRule(
        identifier="databricks-validator",
        task_type=SPARK_TASK_TYPE,
        validator=validator,
        extractor=extractor,
        worker_count=worker_count,
        logger=logger,
    ))

    return rules
