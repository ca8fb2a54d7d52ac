"""
Query Package

Extraction of explainable SQL statements from task executables.
"""

from .extractor import ExplainableQuery, FileExtractor, split_queries, strip_comments
from .renderer import Renderer

__all__ = ["ExplainableQuery", "FileExtractor", "Renderer", "split_queries", "strip_comments"]
