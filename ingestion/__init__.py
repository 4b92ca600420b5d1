"""
Datasource generation: walk a local folder and push every file into the
matching cloud index pipeline.

Submodules are imported on demand; `ingestion.cli` is the entry point.
"""

__all__ = [
    "cli",
    "environment",
    "errors",
    "file_scanner",
    "models",
    "orchestrator",
    "pipeline_resolver",
    "progress",
    "uploader",
]
