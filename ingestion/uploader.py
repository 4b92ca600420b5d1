"""Per-file upload: store bytes, parse best-effort, associate with a pipeline.

`FileUploader.upload` is the per-file error boundary. Upload and association
failures are logged with enough context to diagnose (path, project, pipeline)
and returned as a failed `FileOutcome`; they never abort the caller's batch.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Mapping

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from cloud.client import ApiError
from ingestion.errors import AssociationError, UploadError
from ingestion.models import CloudService, FileOutcome, FileStatus, RetryPolicy
from types_models import (
    ParseResult,
    PipelineFileAssociation,
    RemoteFile,
)

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, AssociationError) and exc.is_bad_request


def build_file_metadata(
    file_id: str,
    caller_metadata: Mapping[str, Any] | None = None,
    parse_result: ParseResult | None = None,
) -> dict[str, Any]:
    """Compose the custom metadata attached to a pipeline file.

    ``file_id`` always reflects the uploaded file, even if the caller passed
    its own. When a parse was attempted, ``parsed_content`` is the extracted
    text (empty string if none) and ``metadata`` is the parse metadata as a
    JSON string (``"{}"`` if none).
    """
    custom: dict[str, Any] = dict(caller_metadata or {})
    custom["file_id"] = file_id
    if parse_result is not None:
        custom["parsed_content"] = parse_result.parsed_content or ""
        custom["metadata"] = json.dumps(parse_result.metadata, default=str)
    return custom


class FileUploader:
    """Push file contents into a pipeline, one file at a time."""

    def __init__(
        self,
        service: CloudService,
        *,
        retry_policy: RetryPolicy | None = None,
        parse_files: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__()
        self._service = service
        self._retry_policy = retry_policy or RetryPolicy()
        self._parse_files = parse_files
        self._sleep = sleep

    def _upload_bytes(
        self, project_id: str, content: bytes, filename: str | None, label: str
    ) -> RemoteFile:
        logger.info("Uploading file: %s", label)
        try:
            remote = self._service.upload_file(project_id, content, filename)
        except ApiError as exc:
            raise UploadError(f"Upload failed for {label}: {exc}") from exc
        if remote is None or not remote.id:
            raise UploadError(f"Upload failed for {label}: no file ID returned")
        logger.info("File uploaded successfully. File ID: %s", remote.id)
        return remote

    def parse(self, project_id: str, file_id: str) -> ParseResult:
        """Best-effort parse; any failure degrades to an empty result."""
        try:
            result = self._service.parse_file(project_id, file_id)
        except Exception as exc:
            logger.warning("⚠️ Unable to parse file %s: %s", file_id, exc)
            return ParseResult()
        return result if result is not None else ParseResult()

    def _add_to_pipeline(
        self, pipeline_id: str, association: PipelineFileAssociation
    ) -> None:
        try:
            self._service.add_files_to_pipeline(pipeline_id, [association])
        except ApiError as exc:
            raise AssociationError(
                f"Adding file {association.file_id} to pipeline {pipeline_id} failed: {exc}",
                status_code=exc.status_code,
            ) from exc

    def _retrying(self, label: str) -> Retrying:
        policy = self._retry_policy

        def log_retry(retry_state: RetryCallState) -> None:
            attempts_left = policy.max_attempts - retry_state.attempt_number
            logger.warning(
                "⚠️ Bad request when adding %s to pipeline. Retrying in %.1fs... (%d attempts left)",
                label,
                policy.delay_seconds,
                attempts_left,
            )

        return Retrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_fixed(policy.delay_seconds),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True,
        )

    def associate(
        self,
        pipeline_id: str,
        file_id: str,
        custom_metadata: Mapping[str, Any],
        *,
        label: str | None = None,
    ) -> int:
        """Register ``file_id`` with the pipeline; return the attempts used.

        HTTP 400 rejections are retried per the retry policy; any other
        status (401, 404, 429, 5xx) or a transport error fails immediately.
        """
        association = PipelineFileAssociation(
            file_id=file_id, custom_metadata=dict(custom_metadata)
        )
        logger.info("Adding file to pipeline: %s", pipeline_id)
        attempts = 0
        try:
            for attempt in self._retrying(label or file_id):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    self._add_to_pipeline(pipeline_id, association)
        except AssociationError as exc:
            raise AssociationError(
                f"{exc} (after {attempts} attempt(s))",
                status_code=exc.status_code,
                attempts=attempts,
            ) from exc
        return attempts

    def upload(
        self,
        project_id: str,
        pipeline_id: str,
        content: bytes,
        metadata: Mapping[str, Any] | None = None,
        *,
        filename: str | None = None,
        source: str | None = None,
    ) -> FileOutcome:
        """Upload ``content`` and attach it to the pipeline.

        Never raises for upload or association failures; inspect the
        returned outcome instead.
        """
        label = source or filename or "<bytes>"
        file_id: str | None = None
        attempts = 0
        try:
            remote = self._upload_bytes(project_id, content, filename, label)
            file_id = remote.id
            parse_result = self.parse(project_id, file_id) if self._parse_files else None
            custom = build_file_metadata(file_id, metadata, parse_result)
            attempts = self.associate(pipeline_id, file_id, custom, label=label)
        except (UploadError, AssociationError) as exc:
            if isinstance(exc, AssociationError):
                attempts = exc.attempts
            logger.error(
                "❌ Error processing %s (project=%s, pipeline=%s): %s",
                label,
                project_id,
                pipeline_id,
                exc,
            )
            logger.info("Skipping file due to error: %s", label)
            return FileOutcome(
                path=label,
                status=FileStatus.FAILED,
                file_id=file_id,
                attempts=attempts,
                error=str(exc),
            )

        logger.info("✅ Successfully uploaded and processed file: %s", label)
        return FileOutcome(
            path=label, status=FileStatus.UPLOADED, file_id=file_id, attempts=attempts
        )

    def upload_path(
        self,
        project_id: str,
        pipeline_id: str,
        path: str | os.PathLike[str],
        metadata: Mapping[str, Any] | None = None,
    ) -> FileOutcome:
        """Read ``path`` and upload it; an unreadable file becomes a failed outcome."""
        file_path = Path(path)
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            logger.error("❌ Could not read %s: %s", file_path, exc)
            return FileOutcome(
                path=str(file_path), status=FileStatus.FAILED, error=f"read failed: {exc}"
            )
        return self.upload(
            project_id,
            pipeline_id,
            content,
            metadata,
            filename=file_path.name,
            source=str(file_path),
        )


__all__ = ["FileUploader", "build_file_metadata"]
