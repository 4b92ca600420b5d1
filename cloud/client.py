"""HTTP client for the managed cloud index REST API.

Only the handful of endpoints datasource generation needs are wrapped here:
projects, pipelines, file upload, pipeline file association and parsing.
Transient failures (429/5xx on idempotent verbs) are retried by the mounted
urllib3 ``Retry`` adapter; everything else surfaces as `ApiError` so callers
can decide what is fatal and what is per-file.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

import config
from types_models import (
    ParseResult,
    Pipeline,
    PipelineCreate,
    PipelineFileAssociation,
    Project,
    RemoteFile,
)

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class ApiError(RuntimeError):
    """Raised when the service is unreachable or answers with a non-2xx status."""

    def __init__(
        self, message: str, status_code: int | None = None, body: Any = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _error_detail(response: requests.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        text = response.text[:200]
        return text, text
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message") or body.get("error")
        if detail:
            return str(detail), body
    return str(body)[:200], body


class LlamaCloudClient:
    """Thin `requests` wrapper around the managed index API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = config.DEFAULT_BASE_URL,
        *,
        organization_id: str | None = None,
        timeout: int = config.REQUEST_TIMEOUT,
        max_retries: int = config.TRANSPORT_RETRIES,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.organization_id = organization_id
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update(
            {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        )
        # POST is not in urllib3's default allowed_methods, so uploads and
        # creates are never replayed here.
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def __enter__(self) -> "LlamaCloudClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        query = {key: value for key, value in (params or {}).items() if value is not None}
        try:
            response = self.session.request(
                method,
                url,
                params=query or None,
                json=json,
                files=files,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise ApiError(
                f"{method} {path} did not respond within {self.timeout} seconds"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            detail, body = _error_detail(response)
            raise ApiError(
                f"{method} {path} responded with HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
                body=body,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(model: type[_ModelT], payload: Any, what: str) -> _ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(f"Unexpected {what} payload: {exc}", body=payload) from exc

    def _parse_list(self, model: type[_ModelT], payload: Any, what: str) -> list[_ModelT]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ApiError(f"Expected a list of {what}, got {type(payload).__name__}", body=payload)
        return [self._parse(model, item, what) for item in payload]

    def list_projects(
        self, project_name: str | None = None, organization_id: str | None = None
    ) -> list[Project]:
        payload = self._request(
            "GET",
            "/api/v1/projects",
            params={
                "project_name": project_name,
                "organization_id": organization_id or self.organization_id,
            },
        )
        return self._parse_list(Project, payload, "projects")

    def list_pipelines(self, project_id: str) -> list[Pipeline]:
        payload = self._request(
            "GET", "/api/v1/pipelines", params={"project_id": project_id}
        )
        return self._parse_list(Pipeline, payload, "pipelines")

    def create_pipeline(self, project_id: str, request: PipelineCreate) -> Pipeline:
        payload = self._request(
            "POST",
            "/api/v1/pipelines",
            params={"project_id": project_id},
            json=request.model_dump(),
        )
        return self._parse(Pipeline, payload, "pipeline")

    def upload_file(
        self, project_id: str, content: bytes, filename: str | None = None
    ) -> RemoteFile:
        files = {
            "upload_file": (filename or "upload", content, "application/octet-stream")
        }
        payload = self._request(
            "POST", "/api/v1/files", params={"project_id": project_id}, files=files
        )
        return self._parse(RemoteFile, payload, "file")

    def add_files_to_pipeline(
        self, pipeline_id: str, files: Sequence[PipelineFileAssociation]
    ) -> None:
        _ = self._request(
            "PUT",
            f"/api/v1/pipelines/{pipeline_id}/files",
            json=[item.model_dump() for item in files],
        )

    def parse_file(self, project_id: str, file_id: str) -> ParseResult:
        payload = self._request(
            "POST",
            "/api/v1/parsing/file",
            params={"project_id": project_id},
            json={"file_id": file_id},
        )
        if payload is None:
            return ParseResult()
        return self._parse(ParseResult, payload, "parse result")


__all__ = ["ApiError", "LlamaCloudClient"]
