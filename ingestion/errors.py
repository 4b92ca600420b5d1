"""Error taxonomy for datasource generation.

Fatal errors (usage, config, resolution, filesystem) propagate to the CLI
boundary and end the run with a non-zero exit code. Per-file errors (upload,
association) are caught by the uploader and recorded on the file's outcome.
"""

from __future__ import annotations


class IngestionError(RuntimeError):
    """Base class for all datasource generation failures."""


class UsageError(IngestionError):
    """Raised when the caller did not supply a datasource name."""


class ConfigError(IngestionError):
    """Raised when required credentials or identifiers are missing."""


class ResolutionError(IngestionError):
    """Raised when the project or pipeline cannot be listed or created."""


class UploadError(IngestionError):
    """Raised when the raw upload to the remote file store fails."""


class AssociationError(IngestionError):
    """Raised when adding an uploaded file to the pipeline fails."""

    def __init__(
        self, message: str, status_code: int | None = None, attempts: int = 1
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts

    @property
    def is_bad_request(self) -> bool:
        """True for an HTTP 400 rejection; no other status is retried."""
        return self.status_code == 400


class FilesystemError(IngestionError):
    """Raised when the datasource directory cannot be walked or read."""


class NotFoundError(FilesystemError):
    """Raised when the datasource directory does not exist."""


__all__ = [
    "AssociationError",
    "ConfigError",
    "FilesystemError",
    "IngestionError",
    "NotFoundError",
    "ResolutionError",
    "UploadError",
    "UsageError",
]
