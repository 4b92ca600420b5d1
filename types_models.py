"""
Type definitions and Pydantic models for datasource generation.

These models mirror the records exchanged with the managed cloud index
(projects, pipelines, files, parse results). Unknown fields returned by the
service are ignored so API additions do not break validation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

import config


class EmbeddingConfig(BaseModel):
    """Embedding settings attached to a pipeline at creation time."""

    type: str = Field(default=config.EMBEDDING_TYPE, description="Embedding provider")
    model_name: str = Field(default=config.EMBED_MODEL, description="Embedding model")

    model_config = ConfigDict(frozen=True, protected_namespaces=())


class Project(BaseModel):
    """Remote project that scopes pipelines and files."""

    id: str = Field(description="Project identifier")
    name: str = Field(description="Project name")
    organization_id: str | None = Field(default=None, description="Owning organization")

    model_config = ConfigDict(extra="ignore")


class Pipeline(BaseModel):
    """Remote ingestion/index target for one datasource."""

    id: str | None = Field(default=None, description="Pipeline identifier")
    name: str = Field(description="Pipeline name (equals the datasource name)")
    pipeline_type: str | None = Field(default=None, description="e.g. MANAGED")
    embedding_config: dict[str, Any] | None = Field(
        default=None, description="Embedding configuration as stored remotely"
    )

    model_config = ConfigDict(extra="ignore")


class PipelineCreate(BaseModel):
    """Request body for creating a pipeline."""

    name: str = Field(min_length=1, description="Pipeline name")
    pipeline_type: str = Field(default=config.PIPELINE_TYPE)
    embedding_config: EmbeddingConfig = Field(default_factory=EmbeddingConfig)


class RemoteFile(BaseModel):
    """A file stored in the remote file store."""

    id: str = Field(min_length=1, description="Remote file identifier")
    name: str | None = Field(default=None, description="Remote file name")

    model_config = ConfigDict(frozen=True, extra="ignore")


class ParseResult(BaseModel):
    """Best-effort parse output; empty when parsing failed or is unsupported."""

    parsed_content: str | None = Field(default=None, description="Extracted text")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        """Services sometimes send ``null`` instead of an empty mapping."""
        return {} if v is None else v

    @property
    def is_empty(self) -> bool:
        return not self.parsed_content and not self.metadata


class PipelineFileAssociation(BaseModel):
    """Links an uploaded file to a pipeline with custom metadata."""

    file_id: str = Field(min_length=1)
    custom_metadata: dict[str, Any] = Field(default_factory=dict)

