"""Human readable lint report."""

import os
import sys
from typing import Optional, TextIO

from .linter import PipelineAnalysisResult, PipelineIssues


class Printer:
    """Writes the issues of a lint run, grouped by pipeline and rule."""

    def __init__(self, root_check_path: str, out: Optional[TextIO] = None):
        self.root_check_path = root_check_path
        self.out = out or sys.stdout

    def _relative(self, path: str) -> str:
        if not path:
            return path
        try:
            return os.path.relpath(path, os.path.abspath(self.root_check_path))
        except ValueError:
            return path

    def print_issues(self, analysis: PipelineAnalysisResult) -> None:
        for pipeline_issues in analysis.pipelines:
            self._print_pipeline(pipeline_issues)

        self.out.write(
            f"Checked {len(analysis.pipelines)} pipeline(s), found {analysis.issue_count()} issue(s)\n"
        )

    def _print_pipeline(self, pipeline_issues: PipelineIssues) -> None:
        pipeline = pipeline_issues.pipeline
        location = self._relative(os.path.dirname(pipeline.definition_file.path))
        self.out.write(f"\nPipeline: {pipeline.name or '<unnamed>'} ({location or '.'})\n")

        if not pipeline_issues.issues:
            self.out.write("  No issues found\n")
            return

        for rule_name, issues in pipeline_issues.issues.items():
            for issue in issues:
                if issue.task is not None:
                    self.out.write(f"  [{rule_name}] {issue.task.name or '<unnamed>'}: {issue.description}\n")
                else:
                    self.out.write(f"  [{rule_name}] {issue.description}\n")

                for line in issue.context:
                    self.out.write(f"      {self._relative(line) if os.path.isabs(line) else line}\n")
