"""
Exceptions raised by the pipeline linter.

Only fatal conditions are exceptions. Validation findings are reported as
``Issue`` objects and never raised.
"""


class PipelineLintError(Exception):
    """Base exception for all fatal linter errors."""
    pass


class ConfigError(PipelineLintError):
    """Raised when the lint configuration cannot be loaded or is invalid."""
    pass


class PipelineBuildError(PipelineLintError):
    """Raised when a pipeline definition cannot be turned into a Pipeline."""
    pass


class LintError(PipelineLintError):
    """Raised when a lint run cannot be completed."""
    pass


class QueryExtractionError(PipelineLintError):
    """Raised when the queries of an executable file cannot be read."""
    pass


class QueryValidationError(PipelineLintError):
    """Raised by a warehouse validator when a query does not compile."""
    pass


class WarehouseConnectionError(PipelineLintError):
    """Raised when a warehouse client cannot be created."""
    pass
