from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

import config
from cloud.configuration import CloudSettings
from types_models import (
    EmbeddingConfig,
    ParseResult,
    Pipeline,
    PipelineCreate,
    PipelineFileAssociation,
    Project,
    RemoteFile,
)


@runtime_checkable
class CloudService(Protocol):
    """Structural type for the managed index service.

    The production implementation is `cloud.client.LlamaCloudClient`; tests
    substitute an in-memory fake with the same method set. Every method may
    raise `cloud.client.ApiError`.
    """

    def list_projects(
        self, project_name: str | None = None, organization_id: str | None = None
    ) -> list[Project]: ...

    def list_pipelines(self, project_id: str) -> list[Pipeline]: ...

    def create_pipeline(self, project_id: str, request: PipelineCreate) -> Pipeline: ...

    def upload_file(
        self, project_id: str, content: bytes, filename: str | None = None
    ) -> RemoteFile: ...

    def add_files_to_pipeline(
        self, pipeline_id: str, files: Sequence[PipelineFileAssociation]
    ) -> None: ...

    def parse_file(self, project_id: str, file_id: str) -> ParseResult: ...


@dataclass(frozen=True)
class RetryPolicy:
    """Association retry settings.

    ``max_retries`` counts attempts after the first one, so the default
    policy makes at most four association calls per file.
    """

    max_retries: int = config.MAX_ASSOCIATION_RETRIES
    delay_seconds: float = config.RETRY_DELAY_SECONDS
    enabled: bool = config.RETRY_ON_ASSOCIATION

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got: {self.max_retries}")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got: {self.delay_seconds}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1 if self.enabled else 1


class FileStatus(str, Enum):
    UPLOADED = "uploaded"
    FAILED = "failed"


class FileOutcome(BaseModel):
    """Result of pushing one local file to the pipeline."""

    path: str
    status: FileStatus
    file_id: str | None = None
    attempts: int = Field(default=0, ge=0, description="Association calls made")
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.UPLOADED


class RunSummary(BaseModel):
    """Aggregate accounting for one datasource generation run."""

    datasource: str
    project_id: str
    pipeline_id: str
    duration_seconds: float = Field(ge=0.0)
    outcomes: list[FileOutcome] = Field(default_factory=list)

    @property
    def uploaded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def failed_paths(self) -> list[str]:
        return [outcome.path for outcome in self.outcomes if not outcome.ok]


class IngestionContext(BaseModel):
    """Validated container for shared run state."""

    settings: CloudSettings
    service: CloudService
    project_name: str
    data_dir: Path = Field(default_factory=lambda: Path(config.DATA_DIR))
    embedding_config: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    skip_hidden: bool = config.SKIP_HIDDEN
    parse_files: bool = config.ENABLE_PARSE
    file_metadata: dict[str, Any] = Field(
        default_factory=lambda: dict(config.DEFAULT_FILE_METADATA)
    )
    crash_log: Path | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")


__all__ = [
    "CloudService",
    "FileOutcome",
    "FileStatus",
    "IngestionContext",
    "RetryPolicy",
    "RunSummary",
]
