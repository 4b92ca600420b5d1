from __future__ import annotations

import itertools
import os
from pathlib import Path
from typing import Any, Sequence

import pytest

from cloud.client import ApiError
from cloud.configuration import CloudSettings
from ingestion.models import IngestionContext, RetryPolicy
from types_models import (
    ParseResult,
    Pipeline,
    PipelineCreate,
    PipelineFileAssociation,
    Project,
    RemoteFile,
)


class FakeCloud:
    """In-memory stand-in for the managed index service.

    Failure injection:
    - ``association_errors``: errors raised by successive association calls
      (popped front to back; an empty list means success).
    - ``upload_errors``: filename -> error raised by ``upload_file``.
    - ``parse_error``: raised by every ``parse_file`` call when set.
    """

    def __init__(
        self,
        *,
        projects: Sequence[Project] | None = None,
        pipelines: Sequence[Pipeline] | None = None,
    ) -> None:
        self.projects = list(projects) if projects is not None else [
            Project(id="proj-1", name="Default")
        ]
        self.pipelines = list(pipelines or [])
        self.uploads: list[tuple[str, bytes, str | None]] = []
        self.associations: list[tuple[str, list[PipelineFileAssociation]]] = []
        self.association_calls = 0
        self.created_pipelines: list[PipelineCreate] = []
        self.parse_calls: list[str] = []
        self.list_pipeline_calls = 0

        self.association_errors: list[Exception] = []
        self.upload_errors: dict[str, Exception] = {}
        self.parse_error: Exception | None = None
        self.parse_result = ParseResult(parsed_content="parsed text", metadata={"pages": 1})
        self.list_pipelines_error: Exception | None = None
        self.create_pipeline_error: Exception | None = None
        self.create_pipeline_returns_id = True
        self.closed = False
        self._ids = itertools.count(1)

    @property
    def calls(self) -> int:
        return (
            self.list_pipeline_calls
            + len(self.created_pipelines)
            + len(self.uploads)
            + self.association_calls
            + len(self.parse_calls)
        )

    def list_projects(
        self, project_name: str | None = None, organization_id: str | None = None
    ) -> list[Project]:
        return [p for p in self.projects if project_name is None or p.name == project_name]

    def list_pipelines(self, project_id: str) -> list[Pipeline]:
        self.list_pipeline_calls += 1
        if self.list_pipelines_error is not None:
            raise self.list_pipelines_error
        return list(self.pipelines)

    def create_pipeline(self, project_id: str, request: PipelineCreate) -> Pipeline:
        self.created_pipelines.append(request)
        if self.create_pipeline_error is not None:
            raise self.create_pipeline_error
        pipeline = Pipeline(
            id=f"pipe-{next(self._ids)}" if self.create_pipeline_returns_id else None,
            name=request.name,
            pipeline_type=request.pipeline_type,
            embedding_config=request.embedding_config.model_dump(),
        )
        self.pipelines.append(pipeline)
        return pipeline

    def upload_file(
        self, project_id: str, content: bytes, filename: str | None = None
    ) -> RemoteFile:
        self.uploads.append((project_id, content, filename))
        if filename in self.upload_errors:
            raise self.upload_errors[filename]
        return RemoteFile(id=f"file-{next(self._ids)}", name=filename)

    def add_files_to_pipeline(
        self, pipeline_id: str, files: Sequence[PipelineFileAssociation]
    ) -> None:
        self.association_calls += 1
        if self.association_errors:
            raise self.association_errors.pop(0)
        self.associations.append((pipeline_id, list(files)))

    def parse_file(self, project_id: str, file_id: str) -> ParseResult:
        self.parse_calls.append(file_id)
        if self.parse_error is not None:
            raise self.parse_error
        return self.parse_result

    def close(self) -> None:
        self.closed = True

    def uploaded_names(self) -> list[str | None]:
        return [filename for _, _, filename in self.uploads]

    def metadata_for(self, index: int = 0) -> dict[str, Any]:
        _, files = self.associations[index]
        return files[0].custom_metadata


def bad_request(message: str = "Bad Request") -> ApiError:
    return ApiError(message, status_code=400, body={"detail": message})


def make_tree(root: Path, files: dict[str, bytes | str]) -> Path:
    """Create ``files`` (relative path -> content) below ``root``."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root


@pytest.fixture(autouse=True)
def _isolate_cloud_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials out of the tests."""
    for name in list(os.environ):
        if name.startswith("LLAMA_CLOUD_"):
            monkeypatch.delenv(name)


@pytest.fixture
def fake_cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def settings() -> CloudSettings:
    return CloudSettings(api_key="test-key", project_name="Default")


@pytest.fixture
def make_context(tmp_path: Path, settings: CloudSettings):
    def _make(service: FakeCloud, **overrides: Any) -> IngestionContext:
        values: dict[str, Any] = {
            "settings": settings,
            "service": service,
            "project_name": "Default",
            "data_dir": tmp_path / "datasources",
            "retry_policy": RetryPolicy(delay_seconds=0),
        }
        values.update(overrides)
        return IngestionContext(**values)

    return _make
