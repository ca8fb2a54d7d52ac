"""
Unit tests for the Spark dry-run validator and the rule set factory.
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from pyspark.sql import SparkSession

from src.config import LintConfig, SparkConfig, WarehouseConfig
from src.exceptions import QueryValidationError, WarehouseConnectionError
from src.lint.factory import SPARK_TASK_TYPE, get_rules
from src.lint.query_validator import QueryValidatorRule
from src.warehouse.spark_validator import SparkQueryValidator, create_spark_validator


def _explain_result(plan: str):
    result = Mock()
    result.collect.return_value = [(plan,)]
    return result


class TestSparkQueryValidator:
    """Test cases for SparkQueryValidator."""

    @pytest.fixture
    def mock_session(self):
        """Create the isolated session handed out for a validation."""
        return Mock(spec=SparkSession)

    @pytest.fixture
    def mock_spark(self, mock_session):
        """Create a mock Spark session."""
        spark = Mock(spec=SparkSession)
        spark.newSession.return_value = mock_session
        return spark

    def test_valid_query(self, mock_spark, mock_session):
        mock_session.sql.return_value = _explain_result("== Physical Plan ==\n*(1) Scan")
        validator = SparkQueryValidator(mock_spark)

        assert validator.is_valid("EXPLAIN select 1;") is True
        mock_session.sql.assert_called_once_with("EXPLAIN select 1")

    def test_variable_definitions_run_first(self, mock_spark, mock_session):
        mock_session.sql.return_value = _explain_result("== Physical Plan ==")
        validator = SparkQueryValidator(mock_spark)

        validator.is_valid("SET x = 1;\nSET y = 2;\nEXPLAIN select ${x};")

        assert [c.args[0] for c in mock_session.sql.call_args_list] == ["SET x = 1", "SET y = 2", "EXPLAIN select ${x}"]

    def test_parse_error_is_raised(self, mock_spark, mock_session):
        mock_session.sql.side_effect = Exception("\n[PARSE_SYNTAX_ERROR] Syntax error at or near 'selec'\n== SQL ==")
        validator = SparkQueryValidator(mock_spark)

        with pytest.raises(QueryValidationError, match=r"^\[PARSE_SYNTAX_ERROR\] Syntax error at or near 'selec'$"):
            validator.is_valid("EXPLAIN selec 1;")

    def test_planning_error_is_raised(self, mock_spark, mock_session):
        mock_session.sql.return_value = _explain_result(
            "Error occurred during query planning: \n[TABLE_OR_VIEW_NOT_FOUND] The table `users` cannot be found."
        )
        validator = SparkQueryValidator(mock_spark)

        with pytest.raises(QueryValidationError, match="TABLE_OR_VIEW_NOT_FOUND"):
            validator.is_valid("EXPLAIN select * from users;")

    def test_empty_query(self, mock_spark):
        assert SparkQueryValidator(mock_spark).is_valid(";\n") is False
        mock_spark.sql.assert_not_called()

    def test_each_validation_uses_its_own_session(self):
        """Variable definitions of one query never reach the session of another."""
        spark = Mock(spec=SparkSession)
        sessions = [Mock(spec=SparkSession), Mock(spec=SparkSession)]
        for session in sessions:
            session.sql.return_value = _explain_result("== Physical Plan ==")
        spark.newSession.side_effect = sessions
        validator = SparkQueryValidator(spark)

        validator.is_valid("DECLARE VARIABLE x INT DEFAULT 1;\nEXPLAIN select x;")
        validator.is_valid("DECLARE VARIABLE x INT DEFAULT 1;\nEXPLAIN select x + 1;")

        assert spark.newSession.call_count == 2
        spark.sql.assert_not_called()
        assert [c.args[0] for c in sessions[0].sql.call_args_list] == [
            "DECLARE VARIABLE x INT DEFAULT 1",
            "EXPLAIN select x",
        ]
        assert [c.args[0] for c in sessions[1].sql.call_args_list] == [
            "DECLARE VARIABLE x INT DEFAULT 1",
            "EXPLAIN select x + 1",
        ]


class TestCreateSparkValidator:
    """Test cases for create_spark_validator."""

    def test_session_is_configured(self):
        with patch("src.warehouse.spark_validator.SparkSession") as session_cls:
            builder = MagicMock()
            session_cls.builder.master.return_value.appName.return_value = builder
            builder.config.return_value = builder

            validator = create_spark_validator(SparkConfig(master="local[1]", conf={"spark.ui.enabled": "false"}))

        session_cls.builder.master.assert_called_once_with("local[1]")
        builder.config.assert_called_once_with("spark.ui.enabled", "false")
        assert validator.spark == builder.getOrCreate.return_value

    def test_session_failure(self):
        with patch("src.warehouse.spark_validator.SparkSession") as session_cls:
            session_cls.builder.master.side_effect = RuntimeError("no java")
            with pytest.raises(WarehouseConnectionError, match="no java"):
                create_spark_validator(SparkConfig())


class TestGetRules:
    """Test cases for the rule set factory."""

    def test_structural_rules_only_without_warehouse(self):
        factory = Mock()
        rules = get_rules(LintConfig(), spark_validator_factory=factory)

        assert [r.name for r in rules] == [
            "task-name-valid",
            "task-name-unique",
            "dependency-exists",
            "valid-executable-file",
            "pipeline-name-valid",
            "valid-pipeline-schedule",
            "valid-task-type",
            "acyclic-pipeline",
        ]
        factory.assert_not_called()

    def test_query_rule_with_spark(self):
        factory = Mock()
        config = LintConfig(worker_count=3, warehouse=WarehouseConfig(spark=SparkConfig()))

        rules = get_rules(config, spark_validator_factory=factory)

        query_rule = rules[-1]
        assert isinstance(query_rule, QueryValidatorRule)
        assert query_rule.task_type == SPARK_TASK_TYPE
        assert query_rule.worker_count == 3
        assert query_rule.validator == factory.return_value

    def test_connection_failure_propagates(self):
        factory = Mock(side_effect=WarehouseConnectionError("no java"))
        config = LintConfig(warehouse=WarehouseConfig(spark=SparkConfig()))

        with pytest.raises(WarehouseConnectionError):
            get_rules(config, spark_validator_factory=factory)
