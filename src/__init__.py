"""
Pipeline Lint - Main Package

Static validation of data pipeline definitions: task graph structure checks and
dry-run validation of the SQL embedded in task executables.
"""

__version__ = "1.0.0"
__author__ = "Data Platform Team"
