"""
Query template rendering.

Only plain variable substitution is supported: ``{{ name }}`` placeholders bound
in the context are replaced, everything else is left untouched.
"""

import re
from datetime import date
from typing import Dict, Optional

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class Renderer:
    """Renders ``{{ variable }}`` placeholders in SQL text."""

    def __init__(self, context: Optional[Dict[str, str]] = None):
        self.context = dict(context or {})

    @classmethod
    def for_run_date(cls, run_date: Optional[str] = None, variables: Optional[Dict[str, str]] = None) -> "Renderer":
        """
        Build a renderer with the default ``ds`` binding.

        Args:
            run_date: Run date in YYYY-MM-DD format, today when omitted
            variables: Extra variables, may override ``ds``
        """
        context = {"ds": run_date or date.today().strftime("%Y-%m-%d")}
        context.update(variables or {})
        return cls(context)

    def render_query(self, query: str, args: Dict[str, str]) -> str:
        """
        Render a query with the given arguments.

        Unknown placeholders are kept verbatim.
        """
        def replace(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name in args:
                return str(args[name])
            return match.group(0)

        return _PLACEHOLDER.sub(replace, query)

    def render(self, query: str) -> str:
        """Render a query with the renderer's own context."""
        return self.render_query(query, self.context)
