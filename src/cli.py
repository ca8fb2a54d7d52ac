"""
Pipeline Lint - command-line entry point.

Usage:
    pipeline-lint validate [path] [--config lint.yml] [--debug]

Exits with 0 when no pipeline has issues, 1 when an issue was found or the
run failed.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import load_config
from .exceptions import PipelineLintError
from .lint.factory import get_rules
from .lint.linter import Linter
from .lint.printer import Printer
from .pipeline.builder import Builder, BuilderConfig
from .pipeline.path import get_pipeline_paths

DEFAULT_PIPELINE_PATH = "."


def setup_logging(debug: bool = False) -> logging.Logger:
    """Set up logging for the command line."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )
    return logging.getLogger("pipeline_lint")


def validate(root_path: str, config_path: Optional[str], logger: logging.Logger) -> int:
    """Validate all the pipelines under a path and print the report."""
    try:
        config = load_config(config_path)
        rules = get_rules(config, logger=logger)

        builder = Builder(
            BuilderConfig(
                pipeline_file_name=config.pipeline_file_name,
                tasks_directory_name=config.tasks_directory_name,
                tasks_file_name=config.task_file_name,
            ),
            logger=logger,
        )
        linter = Linter(get_pipeline_paths, builder, rules, logger)
        result = linter.lint(root_path, config.pipeline_file_name)
    except PipelineLintError as e:
        logger.error(f"An error occurred while linting the pipelines: {e}")
        return 1

    Printer(root_check_path=root_path).print_issues(result)

    if result.has_errors():
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line execution."""
    parser = argparse.ArgumentParser(
        prog="pipeline-lint",
        description="Validate data pipeline definitions before they run"
    )
    parser.add_argument("--debug", action="store_true", help="Show debug information")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate the pipeline configuration for all the pipelines in a given directory"
    )
    validate_parser.add_argument("path", nargs="?", default=DEFAULT_PIPELINE_PATH, help="Path to pipelines")
    validate_parser.add_argument("--config", help="Path to lint configuration file")

    args = parser.parse_args(argv)
    logger = setup_logging(args.debug)

    return validate(args.path, args.config, logger)


if __name__ == "__main__":
    sys.exit(main())
