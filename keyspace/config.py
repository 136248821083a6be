from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """Namespace record store settings."""

    database_url: Optional[str] = None


class HttpRegistryConfig(BaseModel):
    """Settings for the HTTP key registry client."""

    base_url: str = "http://localhost:8080"
    timeout: float = 5.0


class RegistryConfig(BaseModel):
    """External key registry settings."""

    backend: Literal["inmemory", "http"] = "inmemory"
    http: HttpRegistryConfig = HttpRegistryConfig()


class RotationConfig(BaseModel):
    """Retry policy for HMAC key rotation conflicts."""

    max_attempts: int = Field(default=10, ge=1)
    base_delay: float = Field(default=0.01, ge=0)
    max_delay: float = Field(default=0.5, ge=0)
    jitter: float = Field(default=0.01, ge=0)


class ProvisioningConfig(BaseModel):
    """How re-provisioning an existing namespace is reconciled."""

    on_mismatch: Literal["ignore", "reject"] = "ignore"


class NamespaceDefaults(BaseModel):
    """Policy used when provisioning without explicit values."""

    token_ttl_in_secs: int = 3600
    clock_tolerance_in_secs: int = 60


class KeyspaceConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreConfig = StoreConfig()
    registry: RegistryConfig = RegistryConfig()
    rotation: RotationConfig = RotationConfig()
    provisioning: ProvisioningConfig = ProvisioningConfig()
    defaults: NamespaceDefaults = NamespaceDefaults()


def load_config(path: Optional[str] = None) -> KeyspaceConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to KEYSPACE_CONFIG env
            variable or 'keyspace.yaml' in the current directory.
    """

    config_path = path or os.getenv("KEYSPACE_CONFIG", "keyspace.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = KeyspaceConfig(**data)
    else:
        config = KeyspaceConfig()

    env_db_url = os.getenv("KEYSPACE_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.store.database_url = env_db_url
    return config
