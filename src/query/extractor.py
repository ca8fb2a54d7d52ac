"""
Statement extraction for query validation.

Turns the raw text of an executable file into an ordered list of
``ExplainableQuery`` objects: comments are stripped, templates rendered, the
text split on ``;`` and each statement classified by its leading keyword.
"""

import logging
import re
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import QueryExtractionError
from .renderer import Renderer

logger = logging.getLogger(__name__)

_COMMENT = re.compile(r"/\*.*?\*/|--.*?\n", re.DOTALL)

VARIABLE_DEFINITION_KEYWORDS = {"set", "declare"}
IGNORED_KEYWORDS = {"use"}


class ExplainableQuery(BaseModel):
    """A query together with the variable definitions it may depend on."""

    variable_definitions: List[str] = Field(default_factory=list)
    query: str

    def to_explain_query(self) -> str:
        """Render the statement text submitted to the warehouse for a dry run."""
        explain = "".join(f"{definition};\n" for definition in self.variable_definitions)
        return explain + f"EXPLAIN {self.query};"


def strip_comments(content: str) -> str:
    """Replace block and line comments with a newline."""
    return _COMMENT.sub("\n", content)


def split_queries(content: str) -> List[ExplainableQuery]:
    """
    Split rendered file content into explainable queries.

    ``SET``/``DECLARE`` statements are accumulated for the whole file and every
    later query carries all of them. ``USE`` statements are dropped.
    """
    queries: List[ExplainableQuery] = []
    variables_seen: List[str] = []

    for candidate in content.split(";"):
        lines = [line for line in candidate.split("\n") if line.strip()]
        statement = "\n".join(lines).strip()
        if not statement:
            continue

        keyword = statement.split(None, 1)[0].lower()
        if keyword in VARIABLE_DEFINITION_KEYWORDS:
            variables_seen.append(statement)
            continue

        if keyword in IGNORED_KEYWORDS:
            continue

        queries.append(ExplainableQuery(variable_definitions=list(variables_seen), query=statement))

    return queries


class FileExtractor:
    """Reads executable files and extracts their explainable queries."""

    def __init__(self, renderer: Renderer, opener: Optional[Callable] = None):
        self.renderer = renderer
        self.opener = opener or open

    def extract_queries_from_file(self, file_path: str) -> List[ExplainableQuery]:
        """
        Extract the queries of a single file.

        Raises:
            QueryExtractionError: If the file cannot be read
        """
        try:
            with self.opener(file_path, 'r', encoding='utf-8') as f:
                contents = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise QueryExtractionError(f"could not read file: {e}") from e

        cleaned = strip_comments(contents)
        cleaned = self.renderer.render(cleaned)
        queries = split_queries(cleaned)
        logger.debug(f"Extracted {len(queries)} queries from {file_path}")
        return queries
