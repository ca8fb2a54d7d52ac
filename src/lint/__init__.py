"""
Lint Package

Rules, the concurrent query validation rule and the linter running them.
"""

from .issue import Issue
from .linter import Linter, PipelineAnalysisResult, PipelineIssues
from .printer import Printer
from .query_validator import QueryValidatorRule
from .rules import Rule, SimpleRule
from .factory import get_rules

__all__ = [
    "Issue",
    "Linter",
    "PipelineAnalysisResult",
    "PipelineIssues",
    "Printer",
    "QueryValidatorRule",
    "Rule",
    "SimpleRule",
    "get_rules",
]
