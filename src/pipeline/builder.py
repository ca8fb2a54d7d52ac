"""
Pipeline Builder - turns a pipeline directory into a Pipeline graph.

A pipeline directory holds a ``pipeline.yml`` definition and a ``tasks``
directory. Tasks are declared either in ``task.yml`` files, or directly inside
SQL/Python executables through ``@blast.<key>: <value>`` comment lines.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from jsonschema import ValidationError, validate
from pydantic import BaseModel

from ..exceptions import PipelineBuildError
from .models import DefinitionFile, ExecutableFile, Pipeline, Task, TaskDefinitionType


PIPELINE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "schedule": {"type": "string"},
        "start_date": {},
        "parameters": {"type": "object", "additionalProperties": {"type": ["string", "number", "boolean"]}},
    },
}

TASK_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "type": {"type": "string"},
        "run": {"type": "string"},
        "depends": {"type": "array", "items": {"type": "string"}},
        "parameters": {"type": "object", "additionalProperties": {"type": ["string", "number", "boolean"]}},
        "connections": {"type": "object", "additionalProperties": {"type": "string"}},
    },
}

COMMENT_TASK_EXTENSIONS = {".sql": "--", ".py": "#"}
COMMENT_TASK_PREFIX = "@blast."

_COMMENT_LINE = re.compile(r"^\s*(?:--|#)\s*@blast\.(?P<key>[\w.]+)\s*:\s*(?P<value>.*?)\s*$")


class BuilderConfig(BaseModel):
    """File names the builder looks for inside a pipeline directory."""

    pipeline_file_name: str = "pipeline.yml"
    tasks_directory_name: str = "tasks"
    tasks_file_name: str = "task.yml"


TaskCreator = Callable[[Path], Optional[Task]]


def _load_yaml(path: Path, schema: Dict[str, Any]) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise PipelineBuildError(f"Cannot read definition file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise PipelineBuildError(f"Invalid YAML file {path}: {e}") from e

    if content is None:
        content = {}

    try:
        validate(instance=content, schema=schema)
    except ValidationError as e:
        location = " -> ".join(str(p) for p in e.absolute_path)
        message = f"Definition file {path} does not match the expected format: {e.message}"
        if location:
            message += f" (at {location})"
        raise PipelineBuildError(message) from e

    return content


def _stringify(values: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {str(k): str(v) for k, v in (values or {}).items()}


def create_task_from_yaml_definition(definition_path: Path) -> Optional[Task]:
    """
    Create a task from a ``task.yml`` file.

    Args:
        definition_path: Path to the task definition file

    Returns:
        Task declared by the file

    Raises:
        PipelineBuildError: If the file cannot be read or has an invalid shape
    """
    definition = _load_yaml(definition_path, TASK_SCHEMA)

    executable = ExecutableFile()
    run = definition.get("run")
    if run:
        executable = ExecutableFile(
            name=Path(run).name,
            path=str((definition_path.parent / run).resolve()),
        )

    return Task(
        name=definition.get("name", ""),
        description=definition.get("description", ""),
        type=definition.get("type", ""),
        parameters=_stringify(definition.get("parameters")),
        connections=_stringify(definition.get("connections")),
        depends_on=list(definition.get("depends") or []),
        executable_file=executable,
        definition_file=DefinitionFile(
            name=definition_path.name,
            path=str(definition_path.resolve()),
            type=TaskDefinitionType.YAML,
        ),
    )


def create_task_from_file_comments(file_path: Path) -> Optional[Task]:
    """
    Create a task from the ``@blast.`` comments of an executable file.

    Only the leading comment lines of the file are inspected. Files without any
    ``@blast.`` line are not tasks and yield None.
    """
    if file_path.suffix not in COMMENT_TASK_EXTENSIONS:
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise PipelineBuildError(f"Cannot read task file {file_path}: {e}") from e

    marker = COMMENT_TASK_EXTENSIONS[file_path.suffix]
    values: Dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith(marker):
            break

        match = _COMMENT_LINE.match(stripped)
        if match:
            values[match.group("key")] = match.group("value")

    if not values:
        return None

    parameters = {k[len("parameters."):]: v for k, v in values.items() if k.startswith("parameters.")}
    connections = {k[len("connections."):]: v for k, v in values.items() if k.startswith("connections.")}
    depends = [d.strip() for d in values.get("depends", "").split(",") if d.strip()]

    absolute = str(file_path.resolve())
    return Task(
        name=values.get("name", ""),
        description=values.get("description", ""),
        type=values.get("type", ""),
        parameters=parameters,
        connections=connections,
        depends_on=depends,
        executable_file=ExecutableFile(name=file_path.name, path=absolute),
        definition_file=DefinitionFile(
            name=file_path.name,
            path=absolute,
            type=TaskDefinitionType.COMMENT,
        ),
    )


class Builder:
    """
    Builds Pipeline graphs from pipeline directories.

    Task creation is delegated to the two injected creators so that the
    discovery logic can be tested independently of the file formats.
    """

    def __init__(
        self,
        config: BuilderConfig,
        yaml_task_creator: TaskCreator = create_task_from_yaml_definition,
        comment_task_creator: TaskCreator = create_task_from_file_comments,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self.yaml_task_creator = yaml_task_creator
        self.comment_task_creator = comment_task_creator
        self.logger = logger or logging.getLogger(__name__)

    def create_pipeline_from_path(self, pipeline_path: str) -> Pipeline:
        """
        Build the pipeline rooted at the given directory.

        Args:
            pipeline_path: Directory containing the pipeline definition file

        Returns:
            Fully populated Pipeline

        Raises:
            PipelineBuildError: If any definition file is unreadable or invalid
        """
        root = Path(pipeline_path)
        definition_path = root / self.config.pipeline_file_name
        definition = _load_yaml(definition_path, PIPELINE_SCHEMA)

        tasks = self._create_tasks(root / self.config.tasks_directory_name)
        self.logger.debug(f"Built {len(tasks)} tasks for pipeline at {root}")

        return Pipeline(
            name=definition.get("name", ""),
            schedule=definition.get("schedule", ""),
            start_date=str(definition.get("start_date", "")),
            parameters=_stringify(definition.get("parameters")),
            tasks=tasks,
            definition_file=DefinitionFile(
                name=definition_path.name,
                path=str(definition_path.resolve()),
            ),
        )

    def _create_tasks(self, tasks_path: Path) -> List[Task]:
        if not tasks_path.is_dir():
            return []

        files: List[Path] = []
        for directory, dir_names, file_names in os.walk(tasks_path):
            dir_names.sort()
            files.extend(Path(directory) / name for name in sorted(file_names))

        tasks: List[Task] = []
        yaml_executables = set()
        for file_path in files:
            if file_path.name != self.config.tasks_file_name:
                continue
            task = self.yaml_task_creator(file_path)
            if task is None:
                continue
            tasks.append(task)
            if task.executable_file.path:
                yaml_executables.add(task.executable_file.path)

        for file_path in files:
            if file_path.name == self.config.tasks_file_name:
                continue
            if str(file_path.resolve()) in yaml_executables:
                continue
            task = self.comment_task_creator(file_path)
            if task is not None:
                tasks.append(task)

        return tasks
