# ======================================
# Config for datasource generation
# Credentials live in the environment (see cloud/configuration.py);
# everything here is a static knob.
# ======================================

from typing import Literal

# Type definitions
EmbeddingType = Literal["OPENAI_EMBEDDING"]
PipelineType = Literal["MANAGED", "PLAYGROUND"]

# Local layout
DATA_DIR: str = "./datasources"  # one subdirectory per datasource
SKIP_HIDDEN: bool = True  # skip dot-files and dot-directories while walking

# Environment files, loaded in order (earlier files win)
ENV_FILES: tuple[str, ...] = (".env.development.local", ".env")

# Remote pipeline defaults
PIPELINE_TYPE: PipelineType = "MANAGED"
EMBEDDING_TYPE: EmbeddingType = "OPENAI_EMBEDDING"
EMBED_MODEL: str = "text-embedding-ada-002"

# Per-file behaviour
DEFAULT_FILE_METADATA: dict[str, str] = {"private": "false"}
ENABLE_PARSE: bool = True  # best-effort remote parse before association
RETRY_ON_ASSOCIATION: bool = True
MAX_ASSOCIATION_RETRIES: int = 3  # additional attempts after the first
RETRY_DELAY_SECONDS: float = 1.0

# HTTP
DEFAULT_BASE_URL: str = "https://api.cloud.llamaindex.ai"
REQUEST_TIMEOUT: int = 60
TRANSPORT_RETRIES: int = 3  # 429/5xx retries at the session layer

# File paths and logging
INGESTION_LOG_FILE: str = "ingestion.log"
CRASH_LOG_FILE: str = "crash_log.txt"


def validate_config() -> None:
    """Validate configuration values at startup."""
    positive_int_configs = [
        ("REQUEST_TIMEOUT", REQUEST_TIMEOUT),
    ]

    for config_name, config_val in positive_int_configs:
        if not isinstance(config_val, int) or config_val <= 0:
            raise ValueError(
                f"{config_name} must be a positive integer, got: {config_val}"
            )

    non_negative_int_configs = [
        ("MAX_ASSOCIATION_RETRIES", MAX_ASSOCIATION_RETRIES),
        ("TRANSPORT_RETRIES", TRANSPORT_RETRIES),
    ]

    for config_name, config_val in non_negative_int_configs:
        if not isinstance(config_val, int) or config_val < 0:
            raise ValueError(
                f"{config_name} must be a non-negative integer, got: {config_val}"
            )

    if not isinstance(RETRY_DELAY_SECONDS, (int, float)) or RETRY_DELAY_SECONDS < 0:
        raise ValueError(
            f"RETRY_DELAY_SECONDS must be a non-negative number, got: {RETRY_DELAY_SECONDS}"
        )

    string_configs = [
        ("DATA_DIR", DATA_DIR),
        ("EMBED_MODEL", EMBED_MODEL),
        ("DEFAULT_BASE_URL", DEFAULT_BASE_URL),
        ("INGESTION_LOG_FILE", INGESTION_LOG_FILE),
        ("CRASH_LOG_FILE", CRASH_LOG_FILE),
    ]

    for config_name, config_val in string_configs:
        if not isinstance(config_val, str) or not config_val.strip():
            raise ValueError(
                f"{config_name} must be a non-empty string, got: {config_val}"
            )

    valid_pipeline_types = {"MANAGED", "PLAYGROUND"}
    if PIPELINE_TYPE not in valid_pipeline_types:
        raise ValueError(
            f"PIPELINE_TYPE must be one of {valid_pipeline_types}, got: {PIPELINE_TYPE}"
        )

    if not isinstance(DEFAULT_FILE_METADATA, dict) or not all(
        isinstance(key, str) and isinstance(value, str)
        for key, value in DEFAULT_FILE_METADATA.items()
    ):
        raise ValueError("DEFAULT_FILE_METADATA must map strings to strings")


# Validate on import
validate_config()
