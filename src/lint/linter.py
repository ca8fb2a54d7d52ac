"""
Linter - runs every rule over every discovered pipeline.
"""

import logging
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from ..exceptions import LintError, PipelineBuildError
from ..pipeline.models import Pipeline
from .issue import Issue
from .rules import Rule


class PipelineBuilder(Protocol):
    def create_pipeline_from_path(self, pipeline_path: str) -> Pipeline:
        ...


PathFinder = Callable[[str, str], List[str]]


class PipelineIssues:
    """Issues of a single pipeline, grouped by rule name."""

    def __init__(self, pipeline: Pipeline, issues: Optional[Dict[str, List[Issue]]] = None):
        self.pipeline = pipeline
        self.issues = issues or {}

    def issue_count(self) -> int:
        return sum(len(issues) for issues in self.issues.values())


class PipelineAnalysisResult:
    """Outcome of a lint run over a set of pipelines."""

    def __init__(self, pipelines: Optional[List[PipelineIssues]] = None):
        self.pipelines = pipelines or []

    def has_errors(self) -> bool:
        return self.issue_count() > 0

    def issue_count(self) -> int:
        return sum(p.issue_count() for p in self.pipelines)


class Linter:
    """
    Validates all the pipelines found under a root path.

    Discovery and build failures are fatal and abort the run; rule findings
    are collected per pipeline.
    """

    def __init__(
        self,
        find_pipelines: PathFinder,
        builder: PipelineBuilder,
        rules: Sequence[Rule],
        logger: Optional[logging.Logger] = None
    ):
        self.find_pipelines = find_pipelines
        self.builder = builder
        self.rules = list(rules)
        self.logger = logger or logging.getLogger(__name__)

    def lint(self, root_path: str, pipeline_definition_file_name: str) -> PipelineAnalysisResult:
        """
        Lint every pipeline under the root path.

        Raises:
            LintError: If no pipeline is found, a pipeline cannot be built or a rule fails
        """
        pipeline_paths = self.find_pipelines(root_path, pipeline_definition_file_name)
        if not pipeline_paths:
            raise LintError(f"No pipelines found in path '{root_path}'")

        self.logger.debug(f"Found {len(pipeline_paths)} pipelines under '{root_path}'")

        pipelines = []
        for pipeline_path in pipeline_paths:
            try:
                pipeline = self.builder.create_pipeline_from_path(pipeline_path)
            except PipelineBuildError as e:
                raise LintError(f"Cannot create pipeline from path '{pipeline_path}': {e}") from e

            self.logger.debug(f"Built pipeline '{pipeline.name}' with {len(pipeline.tasks)} tasks")
            pipelines.append(pipeline)

        return PipelineAnalysisResult([self.lint_pipeline(p) for p in pipelines])

    def lint_pipeline(self, pipeline: Pipeline) -> PipelineIssues:
        """Run every rule against a single pipeline."""
        result = PipelineIssues(pipeline)
        for rule in self.rules:
            self.logger.debug(f"Checking rule '{rule.name}' for pipeline '{pipeline.name}'")
            issues = rule.validate(pipeline)
            if issues:
                result.issues[rule.name] = issues

        return result
