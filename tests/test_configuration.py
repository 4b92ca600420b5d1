from __future__ import annotations

import os
from pathlib import Path

import pytest

import config
from cloud.configuration import (
    CloudSettings,
    load_env_files,
    load_settings,
    validate_settings,
)
from ingestion.errors import ConfigError
from ingestion.models import RetryPolicy


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLAMA_CLOUD_API_KEY", "llx-123")
    monkeypatch.setenv("LLAMA_CLOUD_PROJECT_NAME", "Default")
    monkeypatch.setenv("LLAMA_CLOUD_ORGANIZATION_ID", "org-7")

    settings = CloudSettings()

    assert settings.api_key == "llx-123"
    assert settings.project_name == "Default"
    assert settings.organization_id == "org-7"
    assert settings.base_url == config.DEFAULT_BASE_URL


def test_blank_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLAMA_CLOUD_BASE_URL", "  ")
    monkeypatch.setenv("LLAMA_CLOUD_ORGANIZATION_ID", "")

    settings = CloudSettings()

    assert settings.base_url == config.DEFAULT_BASE_URL
    assert settings.organization_id is None


def test_base_url_trailing_slash_stripped() -> None:
    assert CloudSettings(base_url="https://eu.example.com/").base_url == "https://eu.example.com"


def test_load_settings_ignores_none_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLAMA_CLOUD_PROJECT_NAME", "FromEnv")

    assert load_settings(project_name=None).project_name == "FromEnv"
    assert load_settings(project_name="Override").project_name == "Override"


def test_validate_reports_every_missing_variable() -> None:
    with pytest.raises(ConfigError) as excinfo:
        validate_settings(CloudSettings())

    message = str(excinfo.value)
    assert "LLAMA_CLOUD_PROJECT_NAME" in message
    assert "LLAMA_CLOUD_API_KEY" in message


def test_validate_missing_api_key_only() -> None:
    with pytest.raises(ConfigError, match="^LLAMA_CLOUD_API_KEY"):
        validate_settings(CloudSettings(project_name="Default"))


def test_validate_prefers_project_override() -> None:
    settings = CloudSettings(api_key="k", project_name="Default")

    assert validate_settings(settings) == "Default"
    assert validate_settings(settings, "Other") == "Other"


def test_redacted_hides_api_key() -> None:
    values = CloudSettings(api_key="llx-secret").redacted()

    assert values["api_key"] == "[REDACTED]"
    assert "llx-secret" not in str(values)


def test_env_files_do_not_override_and_earlier_wins(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    for name in ("DATASOURCE_TEST_FIRST", "DATASOURCE_TEST_SHARED"):
        # Register the variable with monkeypatch so whatever load_dotenv sets is undone.
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.setenv("DATASOURCE_TEST_PRESET", "shell")

    local = tmp_path / ".env.development.local"
    local.write_text("DATASOURCE_TEST_SHARED=local\nDATASOURCE_TEST_PRESET=file\n")
    fallback = tmp_path / ".env"
    fallback.write_text("DATASOURCE_TEST_SHARED=fallback\nDATASOURCE_TEST_FIRST=fallback\n")

    loaded = load_env_files([local, tmp_path / "missing.env", fallback])

    assert loaded == [local, fallback]
    assert os.environ["DATASOURCE_TEST_SHARED"] == "local"
    assert os.environ["DATASOURCE_TEST_FIRST"] == "fallback"
    assert os.environ["DATASOURCE_TEST_PRESET"] == "shell"


def test_retry_policy_defaults() -> None:
    policy = RetryPolicy()

    assert policy.max_retries == 3
    assert policy.delay_seconds == 1.0
    assert policy.max_attempts == 4
    assert RetryPolicy(enabled=False).max_attempts == 1


@pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"delay_seconds": -0.5}])
def test_retry_policy_rejects_negative_values(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_cloud_package_reexports_lazily() -> None:
    import cloud
    from cloud.client import LlamaCloudClient

    assert cloud.CloudSettings is CloudSettings
    assert cloud.LlamaCloudClient is LlamaCloudClient
    with pytest.raises(AttributeError):
        _ = cloud.does_not_exist


def test_cloud_exports_all_resolve() -> None:
    import cloud

    for name in cloud.__all__:
        assert getattr(cloud, name) is not None
    assert sorted(dir(cloud)) == sorted(cloud.__all__)
