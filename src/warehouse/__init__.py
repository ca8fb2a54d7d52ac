"""
Warehouse Package

Dry-run query validators backed by live warehouse connections.
"""

from .spark_validator import SparkQueryValidator, create_spark_validator

__all__ = ["SparkQueryValidator", "create_spark_validator"]
