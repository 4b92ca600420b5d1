from __future__ import annotations

from pathlib import Path

import pytest

from cloud.client import ApiError
from conftest import FakeCloud, bad_request, make_tree
from ingestion.errors import NotFoundError, ResolutionError, UsageError
from ingestion.file_scanner import walk_files
from ingestion.models import FileStatus, RunSummary
from ingestion.orchestrator import generate_datasource, print_summary
from types_models import Pipeline


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    return make_tree(
        tmp_path / "datasources" / "docs",
        {"a.txt": "alpha", "b/c.txt": "charlie", ".hidden/d.txt": "delta"},
    )


def test_uploads_every_visible_file(docs: Path, make_context) -> None:
    cloud = FakeCloud()

    summary = generate_datasource("docs", make_context(cloud))

    assert sorted(cloud.uploaded_names()) == ["a.txt", "c.txt"]
    assert len(cloud.associations) == 2
    assert summary.uploaded == 2
    assert summary.failed == 0
    assert summary.datasource == "docs"
    assert summary.project_id == "proj-1"
    assert summary.duration_seconds >= 0
    assert [o.path for o in summary.outcomes] == list(walk_files(docs))


def test_hidden_files_included_when_requested(docs: Path, make_context) -> None:
    cloud = FakeCloud()

    summary = generate_datasource("docs", make_context(cloud, skip_hidden=False))

    assert summary.uploaded == 3


def test_default_file_metadata_is_attached(docs: Path, make_context) -> None:
    cloud = FakeCloud()

    _ = generate_datasource("docs", make_context(cloud))

    for _, files in cloud.associations:
        assert files[0].custom_metadata["private"] == "false"


def test_pipeline_created_once_across_runs(docs: Path, make_context) -> None:
    cloud = FakeCloud()

    first = generate_datasource("docs", make_context(cloud))
    second = generate_datasource("docs", make_context(cloud))

    assert first.pipeline_id == second.pipeline_id
    assert len(cloud.created_pipelines) == 1


def test_existing_pipeline_is_targeted(docs: Path, make_context) -> None:
    cloud = FakeCloud(pipelines=[Pipeline(id="pipe-docs", name="docs")])

    summary = generate_datasource("docs", make_context(cloud))

    assert summary.pipeline_id == "pipe-docs"
    assert {pipeline_id for pipeline_id, _ in cloud.associations} == {"pipe-docs"}


def test_per_file_failure_does_not_stop_run(
    docs: Path, make_context, tmp_path: Path
) -> None:
    cloud = FakeCloud()
    cloud.upload_errors["a.txt"] = ApiError("rejected", status_code=415)
    crash_log = tmp_path / "crash_log.txt"

    summary = generate_datasource("docs", make_context(cloud, crash_log=crash_log))

    assert summary.uploaded == 1
    assert summary.failed == 1
    assert summary.failed_paths == [str(docs / "a.txt")]
    failed = next(o for o in summary.outcomes if not o.ok)
    assert failed.status is FileStatus.FAILED
    report = crash_log.read_text(encoding="utf-8")
    assert f"FAILED FILE: {docs / 'a.txt'}" in report
    assert "rejected" in report


def test_stale_crash_log_is_cleared(docs: Path, make_context, tmp_path: Path) -> None:
    crash_log = tmp_path / "crash_log.txt"
    crash_log.write_text("old failure", encoding="utf-8")

    summary = generate_datasource("docs", make_context(FakeCloud(), crash_log=crash_log))

    assert summary.failed == 0
    assert not crash_log.exists()


def test_association_retries_count_in_outcome(docs: Path, make_context) -> None:
    cloud = FakeCloud()
    cloud.association_errors = [bad_request()]

    summary = generate_datasource("docs", make_context(cloud))

    assert summary.uploaded == 2
    assert sorted(o.attempts for o in summary.outcomes) == [1, 2]


@pytest.mark.parametrize("name", [None, "", "   "])
def test_missing_name_is_usage_error(name, make_context) -> None:
    cloud = FakeCloud()

    with pytest.raises(UsageError):
        generate_datasource(name, make_context(cloud))
    assert cloud.calls == 0


def test_missing_datasource_folder(make_context) -> None:
    cloud = FakeCloud()

    with pytest.raises(NotFoundError):
        generate_datasource("absent", make_context(cloud))
    assert cloud.uploads == []


def test_resolution_failure_aborts_before_uploads(docs: Path, make_context) -> None:
    cloud = FakeCloud()
    cloud.create_pipeline_error = ApiError("forbidden", status_code=403)

    with pytest.raises(ResolutionError):
        generate_datasource("docs", make_context(cloud))
    assert cloud.uploads == []


def test_missing_project_aborts(docs: Path, make_context) -> None:
    cloud = FakeCloud(projects=[])

    with pytest.raises(ResolutionError):
        generate_datasource("docs", make_context(cloud))
    assert cloud.list_pipeline_calls == 0


def test_surrounding_whitespace_is_stripped_from_name(docs: Path, make_context) -> None:
    cloud = FakeCloud(pipelines=[Pipeline(id="pipe-docs", name="docs")])

    summary = generate_datasource("  docs\n", make_context(cloud))

    assert summary.datasource == "docs"
    assert summary.pipeline_id == "pipe-docs"
    assert cloud.created_pipelines == []
    assert summary.uploaded == 2


def test_empty_folder_gives_empty_summary(tmp_path: Path, make_context) -> None:
    (tmp_path / "datasources" / "empty").mkdir(parents=True)

    summary = generate_datasource("empty", make_context(FakeCloud()))

    assert summary.outcomes == []
    assert summary.uploaded == summary.failed == 0


def test_print_summary_lists_failures(capsys: pytest.CaptureFixture[str]) -> None:
    summary = RunSummary(
        datasource="docs",
        project_id="proj-1",
        pipeline_id="pipe-1",
        duration_seconds=1.5,
        outcomes=[
            {"path": "docs/a.txt", "status": "uploaded", "file_id": "f-1", "attempts": 1},
            {"path": "docs/b.txt", "status": "failed", "error": "boom"},
        ],
    )

    print_summary(summary)

    out = capsys.readouterr().out
    assert "Finished processing documents for LlamaCloud in 1.500s." in out
    assert "Uploaded: 1" in out
    assert "Failed: 1" in out
    assert "docs/b.txt" in out
