"""
Spark SQL dry-run validator.

Compiles ``EXPLAIN`` statements through a Spark session. Nothing is executed,
Spark only parses and analyzes the query to build its plan.
"""

import logging
from typing import List, Optional

from pyspark.sql import SparkSession

from ..config import SparkConfig
from ..exceptions import QueryValidationError, WarehouseConnectionError

PLANNING_ERROR_MARKER = "Error occurred during query planning"


def _split_statements(query: str) -> List[str]:
    statements = []
    for statement in query.split(";\n"):
        statement = statement.strip().rstrip(";").strip()
        if statement:
            statements.append(statement)
    return statements


def _diagnostic(error: Exception) -> str:
    message = str(error).strip()
    lines = [line for line in message.split("\n") if line.strip()]
    return lines[0] if lines else error.__class__.__name__


class SparkQueryValidator:
    """
    Validates queries against a Spark session.

    The rendered query may start with variable definitions; they are run in
    order before the ``EXPLAIN`` statement, in a session of their own so that
    concurrent validations do not see each other's variables.
    """

    def __init__(self, spark: SparkSession, logger: Optional[logging.Logger] = None):
        self.spark = spark
        self.logger = logger or logging.getLogger(__name__)

    def is_valid(self, query: str) -> bool:
        """
        Dry-run the query.

        Returns:
            True if the query compiles

        Raises:
            QueryValidationError: With Spark's diagnostic if it does not
        """
        statements = _split_statements(query)
        if not statements:
            return False

        # variable definitions are session state, keep them out of the shared session
        session = self.spark.newSession()
        try:
            for statement in statements[:-1]:
                session.sql(statement)

            rows = session.sql(statements[-1]).collect()
        except Exception as e:
            self.logger.debug(f"Spark rejected query: {e}")
            raise QueryValidationError(_diagnostic(e)) from e

        # EXPLAIN reports analysis errors in its plan output instead of raising
        for row in rows:
            plan = str(row[0]) if len(row) else ""
            if PLANNING_ERROR_MARKER in plan:
                details = plan.split(PLANNING_ERROR_MARKER, 1)[1].lstrip(": \n")
                raise QueryValidationError(_diagnostic(Exception(details or plan)))

        return True


def create_spark_validator(config: SparkConfig, logger: Optional[logging.Logger] = None) -> SparkQueryValidator:
    """
    Create a validator with its own Spark session.

    Raises:
        WarehouseConnectionError: If the session cannot be created
    """
    try:
        builder = SparkSession.builder.master(config.master).appName(config.app_name)
        for key, value in config.conf.items():
            builder = builder.config(key, value)
        spark = builder.getOrCreate()
    except Exception as e:
        raise WarehouseConnectionError(f"Failed to create Spark session: {e}") from e

    return SparkQueryValidator(spark, logger=logger)
