"""Process-wide setup for datasource generation runs.

`EnvironmentManager.apply` loads ``.env`` files and configures logging;
`initialize` validates credentials and builds the shared `IngestionContext`.
The HTTP client class is imported lazily so tests can monkeypatch the
constructor without touching the network stack.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import config
from cloud.configuration import load_env_files, load_settings, validate_settings
from ingestion.models import IngestionContext, RetryPolicy

if TYPE_CHECKING:
    from cloud.client import LlamaCloudClient as LlamaCloudClientType
else:
    LlamaCloudClientType = Any

# Lazily populated so tests can swap in a fake service factory.
LlamaCloudClient: type[LlamaCloudClientType] | None = None

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _ensure_client_factory() -> type[LlamaCloudClientType]:
    global LlamaCloudClient

    if LlamaCloudClient is None:
        from cloud.client import LlamaCloudClient as _LlamaCloudClient

        LlamaCloudClient = _LlamaCloudClient

    return LlamaCloudClient


class EnvironmentManager:
    """Apply run-wide environment settings and build the shared context."""

    def __init__(self, *, verbose: bool = False) -> None:
        super().__init__()
        self._verbose = verbose
        self._context: IngestionContext | None = None

    def apply(self) -> None:
        """Load env files and route logs to stdout and the ingestion log."""
        logging.basicConfig(
            level=logging.DEBUG if self._verbose else logging.INFO,
            format=LOG_FORMAT,
            handlers=[
                logging.StreamHandler(),
                logging.FileHandler(config.INGESTION_LOG_FILE, encoding="utf-8"),
            ],
        )
        for logger_name in ["urllib3", "requests"]:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

        loaded = load_env_files(config.ENV_FILES)
        if loaded:
            logger.info("Loaded environment from %s", ", ".join(str(p) for p in loaded))

    def initialize(
        self,
        *,
        project_name: str | None = None,
        data_dir: str | Path | None = None,
        skip_hidden: bool = config.SKIP_HIDDEN,
        parse_files: bool = config.ENABLE_PARSE,
        retry_on_association: bool = config.RETRY_ON_ASSOCIATION,
    ) -> IngestionContext:
        """Validate settings and build the run context, caching the result.

        Raises:
            ConfigError: the API key or project name is missing.
        """
        if self._context is not None:
            return self._context

        settings = load_settings()
        resolved_project = validate_settings(settings, project_name)
        logger.info("Cloud settings: %s", settings.redacted())

        client_cls = _ensure_client_factory()
        assert settings.api_key is not None
        service = client_cls(
            settings.api_key,
            settings.base_url,
            organization_id=settings.organization_id,
        )

        self._context = IngestionContext(
            settings=settings,
            service=service,
            project_name=resolved_project,
            data_dir=Path(data_dir or config.DATA_DIR),
            retry_policy=RetryPolicy(enabled=retry_on_association),
            skip_hidden=skip_hidden,
            parse_files=parse_files,
            crash_log=Path(config.CRASH_LOG_FILE),
        )
        return self._context

    def close(self) -> None:
        """Release the HTTP session held by the context's service."""
        if self._context is None:
            return
        close = getattr(self._context.service, "close", None)
        if callable(close):
            close()
        self._context = None


__all__ = ["EnvironmentManager"]
