from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_SERVICE_TIMEOUT


class ServiceConfig(BaseModel):
    """Connection settings for the remote portal functions."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = DEFAULT_SERVICE_TIMEOUT


class DraftStoreConfig(BaseModel):
    """Draft store backend selection."""

    backend: Optional[Literal["inmemory", "sqlite", "postgres", "http"]] = None
    database_url: Optional[str] = None


class SubmissionConfig(BaseModel):
    """Submission service backend selection."""

    backend: Literal["inmemory", "http"] = "inmemory"


class SyncConfig(BaseModel):
    """Draft synchronisation settings."""

    debounce_seconds: float = Field(default=DEFAULT_DEBOUNCE_SECONDS, ge=0)


class ValidationConfig(BaseModel):
    verify_national_id_checksum: bool = False


class RegflowConfig(BaseModel):
    """Top-level configuration model."""

    draft_store: DraftStoreConfig = Field(default_factory=DraftStoreConfig)
    submission: SubmissionConfig = Field(default_factory=SubmissionConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)


def load_config(path: Optional[str] = None) -> RegflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to REGFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("REGFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = RegflowConfig(**data)
    else:
        config = RegflowConfig()

    env_db_url = os.getenv("REGFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.draft_store.database_url = env_db_url
    env_base_url = os.getenv("REGFLOW_SERVICE_URL")
    if env_base_url:
        config.service.base_url = env_base_url
    env_api_key = os.getenv("REGFLOW_SERVICE_KEY")
    if env_api_key:
        config.service.api_key = env_api_key
    return config
