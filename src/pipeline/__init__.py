"""
Pipeline Package

Pipeline graph model, definition file builder and pipeline discovery.
"""

from .models import DefinitionFile, ExecutableFile, Pipeline, Task, TaskDefinitionType
from .builder import Builder, BuilderConfig, create_task_from_file_comments, create_task_from_yaml_definition
from .path import get_pipeline_paths

__all__ = [
    "Builder",
    "BuilderConfig",
    "DefinitionFile",
    "ExecutableFile",
    "Pipeline",
    "Task",
    "TaskDefinitionType",
    "create_task_from_file_comments",
    "create_task_from_yaml_definition",
    "get_pipeline_paths",
]
