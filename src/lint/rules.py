"""
Structural lint rules.

Every rule is a pure function of a Pipeline returning the list of issues it
found. Raising from a rule is reserved for fatal conditions such as an
unreadable filesystem; it is never the result of a malformed pipeline.
"""

import os
import re
import stat
from collections import OrderedDict
from typing import Callable, Dict, List, Optional, Protocol, Set

from croniter import croniter

from ..pipeline.models import Pipeline, Task, TaskDefinitionType
from .issue import Issue

TASK_TYPE_PYTHON = "python"

VALID_TASK_TYPES: Set[str] = {
    "bash",
    "bq.cost_tracker",
    "bq.sensor.query",
    "bq.sensor.table",
    "bq.sql",
    "databricks.sql",
    "empty",
    "gcs.from.s3",
    TASK_TYPE_PYTHON,
    "python.beta",
    "python.legacy",
    "s3.sensor.key_sensor",
    "sf.sql",
}

NAMED_SCHEDULES: Set[str] = {
    "@yearly",
    "@annually",
    "@monthly",
    "@weekly",
    "@daily",
    "@midnight",
    "@hourly",
}

TASK_NAME_MUST_EXIST = "A task must have a name"
TASK_NAME_MUST_BE_ALPHANUMERIC = "A task name must be made of alphanumeric characters, dashes and underscores"
PIPELINE_NAME_CANNOT_BE_EMPTY = "The pipeline name cannot be empty, it must be specified in 'pipeline.yml'"
PIPELINE_NAME_MUST_BE_ALPHANUMERIC = "The pipeline name must be made of alphanumeric characters, dashes and underscores"
PIPELINE_CONTAINS_CYCLE = "The pipeline has a cycle with dependencies, make sure there are no cyclic dependencies"

EXECUTABLE_FILE_CANNOT_BE_EMPTY = "The 'run' option cannot be empty, make sure you have defined a file to run"
EXECUTABLE_FILE_DOES_NOT_EXIST = "The executable file does not exist"
EXECUTABLE_FILE_IS_A_DIRECTORY = "The executable file is a directory, must be a file"
EXECUTABLE_FILE_IS_EMPTY = "The executable file is empty"
EXECUTABLE_FILE_IS_NOT_EXECUTABLE = "The executable file is not executable, give it execute permissions, e.g. '755'"

_VALID_NAME = re.compile(r"[\w-]+", re.ASCII)
_ANY_EXECUTE_BIT = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class Rule(Protocol):
    """A check over a single pipeline."""

    @property
    def name(self) -> str:
        ...

    def validate(self, pipeline: Pipeline) -> List[Issue]:
        ...


PipelineValidator = Callable[[Pipeline], List[Issue]]


class SimpleRule:
    """Adapts a plain validation function to the Rule protocol."""

    def __init__(self, identifier: str, validator: PipelineValidator):
        self.identifier = identifier
        self.validator = validator

    @property
    def name(self) -> str:
        return self.identifier

    def validate(self, pipeline: Pipeline) -> List[Issue]:
        return self.validator(pipeline)


def ensure_task_name_is_valid(pipeline: Pipeline) -> List[Issue]:
    issues = []
    for task in pipeline.tasks:
        if task.name == "":
            issues.append(Issue(task=task, description=TASK_NAME_MUST_EXIST))
            continue

        if not _VALID_NAME.fullmatch(task.name):
            issues.append(Issue(task=task, description=TASK_NAME_MUST_BE_ALPHANUMERIC))

    return issues


def ensure_task_name_is_unique(pipeline: Pipeline) -> List[Issue]:
    """Report each duplicated task name once, on its first occurrence."""
    tasks_by_name: Dict[str, List[Task]] = OrderedDict()
    for task in pipeline.tasks:
        if task.name == "":
            continue
        tasks_by_name.setdefault(task.name, []).append(task)

    issues = []
    for name, tasks in tasks_by_name.items():
        if len(tasks) == 1:
            continue

        issues.append(Issue(
            task=tasks[0],
            description=f"Task name '{name}' is not unique, please make sure all the task names are unique",
            context=[t.definition_file.path for t in tasks],
        ))

    return issues


def ensure_dependency_exists(pipeline: Pipeline) -> List[Issue]:
    task_names = {task.name for task in pipeline.tasks}

    issues = []
    for task in pipeline.tasks:
        for dependency in task.depends_on:
            if dependency not in task_names:
                issues.append(Issue(task=task, description=f"Dependency '{dependency}' does not exist"))

    return issues


def ensure_pipeline_name_is_valid(pipeline: Pipeline) -> List[Issue]:
    if pipeline.name == "":
        return [Issue(description=PIPELINE_NAME_CANNOT_BE_EMPTY)]

    if not _VALID_NAME.fullmatch(pipeline.name):
        return [Issue(description=PIPELINE_NAME_MUST_BE_ALPHANUMERIC)]

    return []


def is_valid_schedule(schedule: str) -> bool:
    """Whether a schedule is a named descriptor or a 5-field cron expression."""
    if schedule in NAMED_SCHEDULES:
        return True

    if len(schedule.split()) != 5:
        return False

    return croniter.is_valid(schedule)


def ensure_pipeline_schedule_is_valid_cron(pipeline: Pipeline) -> List[Issue]:
    if pipeline.schedule == "":
        return []

    if not is_valid_schedule(pipeline.schedule):
        return [Issue(description=f"Invalid cron schedule '{pipeline.schedule}'")]

    return []


def ensure_only_accepted_task_types_are_there(pipeline: Pipeline) -> List[Issue]:
    issues = []
    for task in pipeline.tasks:
        if task.type == "":
            continue

        if task.type not in VALID_TASK_TYPES:
            issues.append(Issue(task=task, description=f"Invalid task type '{task.type}'"))

    return issues


def ensure_pipeline_has_no_cycles(pipeline: Pipeline) -> List[Issue]:
    """
    Detect dependency cycles.

    Self dependencies are reported one by one first. The remaining graph is
    then searched depth-first; every cycle closed by a back edge is reported
    once with the edges that compose it.
    """
    issues = []
    graph: Dict[str, List[str]] = OrderedDict()
    for task in pipeline.tasks:
        edges = graph.setdefault(task.name, [])
        for dependency in task.depends_on:
            if dependency == task.name:
                issues.append(Issue(
                    description=PIPELINE_CONTAINS_CYCLE,
                    context=[f"Task `{task.name}` depends on itself"],
                ))
                continue
            edges.append(dependency)

    for cycle in _find_cycles(graph):
        issues.append(Issue(description=PIPELINE_CONTAINS_CYCLE, context=cycle))

    return issues


def _find_cycles(graph: Dict[str, List[str]]) -> List[List[str]]:
    # 0 = not visited, 1 = on the current path, 2 = done
    state: Dict[str, int] = {}
    cycles: List[List[str]] = []

    for start in graph:
        if state.get(start):
            continue

        path: List[str] = []
        stack = [(start, iter(graph.get(start, [])))]
        state[start] = 1
        path.append(start)

        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                state[node] = 2
                continue

            child_state = state.get(child, 0)
            if child_state == 1:
                cycle_nodes = path[path.index(child):]
                edges = [
                    f"{cycle_nodes[i]} -> {cycle_nodes[(i + 1) % len(cycle_nodes)]}"
                    for i in range(len(cycle_nodes))
                ]
                cycles.append(list(reversed(edges)))
            elif child_state == 0:
                state[child] = 1
                path.append(child)
                stack.append((child, iter(graph.get(child, []))))

    return cycles


class FileSystem:
    """The filesystem queries needed by the executable file rule."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def size(self, path: str) -> int:
        return os.stat(path).st_size

    def mode(self, path: str) -> int:
        return os.stat(path).st_mode


def ensure_executable_file_is_valid(fs: Optional[FileSystem] = None) -> PipelineValidator:
    """
    Build the executable file check over the given filesystem.

    Comment-defined tasks are skipped, their definition file is the executable.
    """
    fs = fs or FileSystem()

    def validate(pipeline: Pipeline) -> List[Issue]:
        issues = []
        for task in pipeline.tasks:
            if task.definition_file.type == TaskDefinitionType.COMMENT:
                continue

            path = task.executable_file.path
            if path == "":
                if task.type == TASK_TYPE_PYTHON:
                    issues.append(Issue(task=task, description=EXECUTABLE_FILE_CANNOT_BE_EMPTY))
                continue

            if not fs.exists(path):
                issues.append(Issue(task=task, description=EXECUTABLE_FILE_DOES_NOT_EXIST))
                continue

            if fs.is_dir(path):
                issues.append(Issue(task=task, description=EXECUTABLE_FILE_IS_A_DIRECTORY))
                continue

            if fs.size(path) == 0:
                issues.append(Issue(task=task, description=EXECUTABLE_FILE_IS_EMPTY))

            if not fs.mode(path) & _ANY_EXECUTE_BIT:
                issues.append(Issue(task=task, description=EXECUTABLE_FILE_IS_NOT_EXECUTABLE))

        return issues

    return validate
