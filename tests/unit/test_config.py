"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

import regflow.persistence as persistence
from regflow.config import load_config
from regflow.persistence import (
    InMemoryDraftStore,
    RemoteDraftStore,
    SQLiteDraftStore,
    get_draft_store,
)
from regflow.services import (
    InMemorySubmissionService,
    RemoteSubmissionService,
    get_submission_service,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "REGFLOW_CONFIG",
        "REGFLOW_DATABASE_URL",
        "DATABASE_URL",
        "REGFLOW_SERVICE_URL",
        "REGFLOW_SERVICE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(persistence, "_store_instance", None)


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
draft_store:
  backend: sqlite
  database_url: sqlite:///tmp/drafts.db
submission:
  backend: http
service:
  base_url: https://portal.example.com/functions/v1
  timeout: 3
sync:
  debounce_seconds: 0.25
validation:
  verify_national_id_checksum: true
"""
    )
    monkeypatch.setenv("REGFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.draft_store.backend == "sqlite"
    assert config.draft_store.database_url == "sqlite:///tmp/drafts.db"
    assert config.submission.backend == "http"
    assert config.service.base_url == "https://portal.example.com/functions/v1"
    assert config.service.timeout == 3
    assert config.sync.debounce_seconds == 0.25
    assert config.validation.verify_national_id_checksum is True


def test_defaults_when_no_file(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert config.draft_store.backend is None
    assert config.submission.backend == "inmemory"
    assert config.sync.debounce_seconds == 0.5
    assert config.validation.verify_national_id_checksum is False


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("REGFLOW_DATABASE_URL", "sqlite:///override.db")
    monkeypatch.setenv("REGFLOW_SERVICE_URL", "https://portal.example.com")
    monkeypatch.setenv("REGFLOW_SERVICE_KEY", "secret")

    config = load_config(str(tmp_path / "missing.yaml"))
    assert config.draft_store.database_url == "sqlite:///override.db"
    assert config.service.base_url == "https://portal.example.com"
    assert config.service.api_key == "secret"


def test_negative_debounce_rejected(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("sync:\n  debounce_seconds: -1\n")
    with pytest.raises(ValidationError):
        load_config(str(config_path))


def test_get_draft_store_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"draft_store:\n  database_url: sqlite://{tmp_path / 'd.db'}\n")
    monkeypatch.setenv("REGFLOW_CONFIG", str(config_path))

    store = get_draft_store()
    assert isinstance(store, SQLiteDraftStore)
    assert get_draft_store() is store


def test_get_draft_store_defaults_to_memory(tmp_path, monkeypatch):
    monkeypatch.setenv("REGFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    assert isinstance(get_draft_store(), InMemoryDraftStore)


def test_http_url_selects_remote_store(tmp_path, monkeypatch):
    monkeypatch.setenv("REGFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    store = get_draft_store("https://portal.example.com/functions/v1")
    assert isinstance(store, RemoteDraftStore)


def test_unsupported_url_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("REGFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    with pytest.raises(ValueError):
        get_draft_store("mysql://localhost/db")


def test_get_submission_service_uses_config(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert isinstance(get_submission_service(config), InMemorySubmissionService)

    config.submission.backend = "http"
    config.service.base_url = "https://portal.example.com"
    assert isinstance(get_submission_service(config), RemoteSubmissionService)
