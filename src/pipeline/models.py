"""
Pipeline graph model.

Value types produced by the builder and consumed, read-only, by every lint rule.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field


class TaskDefinitionType(str, Enum):
    """How a task was declared."""

    YAML = "yaml"
    COMMENT = "comment"


class ExecutableFile(BaseModel):
    """Script or query file executed by a task."""

    name: str = ""
    path: str = ""


class DefinitionFile(BaseModel):
    """File a task or pipeline was declared in."""

    name: str = ""
    path: str = ""
    type: TaskDefinitionType = TaskDefinitionType.YAML


class Task(BaseModel):
    """A single unit of work in a pipeline."""

    name: str = ""
    description: str = ""
    type: str = ""
    parameters: Dict[str, str] = Field(default_factory=dict)
    connections: Dict[str, str] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list)
    executable_file: ExecutableFile = Field(default_factory=ExecutableFile)
    definition_file: DefinitionFile = Field(default_factory=DefinitionFile)


class Pipeline(BaseModel):
    """A named collection of tasks with dependencies and an optional schedule."""

    name: str = ""
    schedule: str = ""
    start_date: str = ""
    parameters: Dict[str, str] = Field(default_factory=dict)
    tasks: List[Task] = Field(default_factory=list)
    definition_file: DefinitionFile = Field(default_factory=DefinitionFile)
