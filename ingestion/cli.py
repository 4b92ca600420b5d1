import argparse
import logging
from io import TextIOWrapper
import sys
from typing import Sequence

import config
from cloud.client import ApiError
from ingestion.environment import EnvironmentManager
from ingestion.errors import IngestionError, UsageError
from ingestion.orchestrator import generate_datasource, print_summary
from ingestion.progress import ConsoleSpinnerProgress

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def validate_datasource_name(datasource: str) -> None:
    """Reject names that would escape the data directory when joined onto it.

    Surrounding whitespace is ignored, matching `generate_datasource`.

    Raises:
        UsageError: The name is empty, a relative path component, or
            contains a path separator.
    """
    datasource = datasource.strip()
    if not datasource:
        raise UsageError("Please provide a datasource name as an argument.")
    if datasource in {".", ".."}:
        raise UsageError(f"Invalid datasource name: {datasource!r}")
    if "/" in datasource or "\\" in datasource:
        raise UsageError(
            f"Datasource name must be a single folder name, got: {datasource!r}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upload a local datasource folder into its cloud index pipeline"
    )
    _ = parser.add_argument(
        "datasource",
        help=f"Datasource name; files are read from '{config.DATA_DIR}/<datasource>'",
    )
    _ = parser.add_argument(
        "--data-dir",
        default=config.DATA_DIR,
        help=f"Root folder holding one subfolder per datasource (default: {config.DATA_DIR})",
    )
    _ = parser.add_argument(
        "--project",
        help="Project name (overrides LLAMA_CLOUD_PROJECT_NAME)",
    )
    _ = parser.add_argument(
        "--include-hidden",
        action="store_true",
        help="Also upload dot-files and files inside dot-directories",
    )
    _ = parser.add_argument(
        "--no-retry",
        action="store_true",
        help="Do not retry rejected pipeline associations",
    )
    _ = parser.add_argument(
        "--no-parse",
        action="store_true",
        help="Skip the best-effort remote parse of each uploaded file",
    )
    _ = parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output instead of showing a progress spinner",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    if isinstance(sys.stdout, TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    env = EnvironmentManager(verbose=args.verbose)
    env.apply()

    try:
        validate_datasource_name(args.datasource)
        ctx = env.initialize(
            project_name=args.project,
            data_dir=args.data_dir,
            skip_hidden=not args.include_hidden,
            parse_files=not args.no_parse,
            retry_on_association=not args.no_retry,
        )
        summary = generate_datasource(
            args.datasource,
            ctx,
            progress=ConsoleSpinnerProgress(enabled=False if args.verbose else None),
        )
    except UsageError as exc:
        logger.error("❌ %s", exc)
        return EXIT_USAGE
    except (IngestionError, ApiError) as exc:
        logger.error("❌ An error occurred: %s", exc)
        if isinstance(exc, ApiError) and exc.body is not None:
            logger.error("Error details: %s", exc.body)
        return EXIT_FAILURE
    finally:
        env.close()

    print_summary(summary)
    return EXIT_OK


__all__ = ["build_parser", "main", "validate_datasource_name"]
