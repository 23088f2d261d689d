"""Read-only reports and generated artifacts built from the index."""

from codeatlas.reporting.architecture import render_architecture
from codeatlas.reporting.artifacts import (
    build_code_index,
    build_metrics,
    build_repo_map,
    write_artifacts,
)

__all__ = [
    "build_code_index",
    "build_metrics",
    "build_repo_map",
    "render_architecture",
    "write_artifacts",
]
