"""Client-side building blocks for the managed cloud index.

Names are re-exported lazily so that importing settings alone does not pull
in `requests` and friends.
"""

from __future__ import annotations

import importlib
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import ApiError, LlamaCloudClient
    from .configuration import (
        CloudSettings,
        load_env_files,
        load_settings,
        validate_settings,
    )

__all__ = [
    "ApiError",
    "CloudSettings",
    "LlamaCloudClient",
    "load_env_files",
    "load_settings",
    "validate_settings",
]

_IMPORT_MAP = {
    "ApiError": ("cloud.client", "ApiError"),
    "LlamaCloudClient": ("cloud.client", "LlamaCloudClient"),
    "CloudSettings": ("cloud.configuration", "CloudSettings"),
    "load_env_files": ("cloud.configuration", "load_env_files"),
    "load_settings": ("cloud.configuration", "load_settings"),
    "validate_settings": ("cloud.configuration", "validate_settings"),
}


def __getattr__(name: str) -> Any:
    """Resolve re-exported names on first access."""
    try:
        module_name, attr_name = _IMPORT_MAP[name]
    except KeyError as exc:
        raise AttributeError(f"module 'cloud' has no attribute '{name}'") from exc

    module = importlib.import_module(module_name)
    attr = getattr(module, attr_name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:
    return sorted(__all__)
