"""Top-level driver for generating a datasource in the cloud index.

Sequence: resolve project and pipeline once, walk the datasource folder, and
push each file through `FileUploader` strictly one after another. Resolution
and directory errors abort the run; per-file failures are collected as
outcomes and the run carries on.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path

from ingestion.errors import UsageError
from ingestion.file_scanner import datasource_root, walk_files
from ingestion.models import FileOutcome, IngestionContext, RunSummary
from ingestion.pipeline_resolver import PipelineResolver
from ingestion.progress import ConsoleSpinnerProgress, SyncStage
from ingestion.uploader import FileUploader

logger = logging.getLogger(__name__)


def _append_crash_log(crash_log: Path, outcome: FileOutcome) -> None:
    with open(crash_log, "a", encoding="utf-8") as handle:
        _ = handle.write(f"\n{'=' * 60}\n")
        _ = handle.write(f"FAILED FILE: {outcome.path}\n")
        _ = handle.write(f"TIME: {datetime.now().isoformat()}\n")
        _ = handle.write(f"FILE ID: {outcome.file_id or '-'}\n")
        _ = handle.write(f"ATTEMPTS: {outcome.attempts}\n")
        _ = handle.write(f"ERROR: {outcome.error}\n")
        _ = handle.write(f"{'=' * 60}\n")


def print_summary(summary: RunSummary) -> None:
    """Emit final run statistics."""
    print("-------------------------------------------------")
    print(
        f"✅ Finished processing documents for LlamaCloud in {summary.duration_seconds:.3f}s."
    )
    print(f"📁 Datasource: {summary.datasource} (pipeline {summary.pipeline_id})")
    print(f"📤 Uploaded: {summary.uploaded}")
    print(f"⚠️  Failed: {summary.failed}")
    for path in summary.failed_paths[:10]:
        print(f"   • {path}")
    if summary.failed > 10:
        print(f"   • (+ {summary.failed - 10} more...)")


def generate_datasource(
    datasource: str | None,
    ctx: IngestionContext,
    *,
    progress: ConsoleSpinnerProgress | None = None,
) -> RunSummary:
    """Sync ``ctx.data_dir / datasource`` into the pipeline of the same name.

    Raises:
        UsageError: no datasource name was given.
        ResolutionError: the project or pipeline could not be resolved.
        FilesystemError: the datasource folder is missing or unreadable.
    """
    datasource = (datasource or "").strip()
    if not datasource:
        raise UsageError("Please provide a datasource name as an argument.")

    logger.info("Generating storage context for datasource '%s'...", datasource)
    spinner = progress if progress is not None and progress.enabled else None

    resolver = PipelineResolver(ctx.service, embedding_config=ctx.embedding_config)
    uploader = FileUploader(
        ctx.service, retry_policy=ctx.retry_policy, parse_files=ctx.parse_files
    )

    if ctx.crash_log is not None and ctx.crash_log.exists():
        # A stale report from an earlier run would be mistaken for this one's.
        ctx.crash_log.unlink()
        logger.info("🗑️  Cleared previous crash log")

    outcomes: list[FileOutcome] = []
    uploaded = failed = 0
    start = time.perf_counter()

    if spinner:
        spinner.start(stage=SyncStage.RESOLVING)
    try:
        project = resolver.resolve_project(
            ctx.project_name, ctx.settings.organization_id
        )
        pipeline = resolver.resolve(project.id, datasource)
        assert pipeline.id is not None

        root = datasource_root(ctx.data_dir, datasource)
        logger.info("Walking through directory: %s", root)
        if spinner:
            spinner.update(stage=SyncStage.WALKING)

        for path in walk_files(root, skip_hidden=ctx.skip_hidden):
            logger.info("Processing file: %s", path)
            if spinner:
                spinner.update(
                    stage=SyncStage.FILE_STARTED,
                    message=f"Uploading {Path(path).name}...",
                    files_seen=len(outcomes) + 1,
                )

            outcome = uploader.upload_path(
                project.id, pipeline.id, path, ctx.file_metadata
            )
            outcomes.append(outcome)

            if outcome.ok:
                uploaded += 1
                stage = SyncStage.FILE_UPLOADED
            else:
                failed += 1
                stage = SyncStage.FILE_FAILED
                if ctx.crash_log is not None:
                    _append_crash_log(ctx.crash_log, outcome)
                if spinner:
                    spinner.write_line(f"⚠️  Failed: {outcome.path} ({outcome.error})")
            if spinner:
                spinner.update(stage=stage, uploaded=uploaded, failed=failed)

        if spinner:
            spinner.update(stage=SyncStage.COMPLETED)
    except Exception as exc:
        logger.error("❌ Error generating datasource: %s", exc)
        if spinner:
            spinner.update(stage=SyncStage.ERROR)
        raise
    finally:
        if spinner:
            spinner.stop()

    summary = RunSummary(
        datasource=datasource,
        project_id=project.id,
        pipeline_id=pipeline.id,
        duration_seconds=time.perf_counter() - start,
        outcomes=outcomes,
    )
    logger.info(
        "Finished datasource '%s' in %.3fs | uploaded=%d | failed=%d",
        datasource,
        summary.duration_seconds,
        summary.uploaded,
        summary.failed,
    )
    if summary.failed:
        logger.warning("⚠️ Failed files: %s", ", ".join(summary.failed_paths))
    return summary


__all__ = ["generate_datasource", "print_summary"]
