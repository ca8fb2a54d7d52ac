"""Pipeline discovery on disk."""

import os
from pathlib import Path
from typing import List

from ..exceptions import LintError


def get_pipeline_paths(root: str, pipeline_file_name: str = "pipeline.yml") -> List[str]:
    """
    Find every directory under ``root`` that contains a pipeline definition.

    Args:
        root: Directory to search
        pipeline_file_name: Name of the pipeline definition file

    Returns:
        Sorted list of absolute pipeline directory paths

    Raises:
        LintError: If the root path does not exist or is not a directory
    """
    root_path = Path(root)
    if not root_path.exists():
        raise LintError(f"Path does not exist: {root}")
    if not root_path.is_dir():
        raise LintError(f"Path is not a directory: {root}")

    pipeline_paths = []
    for directory, dir_names, file_names in os.walk(root_path):
        dir_names[:] = sorted(d for d in dir_names if not d.startswith("."))
        if pipeline_file_name in file_names:
            pipeline_paths.append(str(Path(directory).resolve()))

    return sorted(pipeline_paths)
