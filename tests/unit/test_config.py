"""Tests for configuration loading."""

from keyspace.config import load_config
from keyspace.keystore import get_keystore
from keyspace.persistence import InMemoryRecordStore, SQLiteRecordStore, get_record_store
from keyspace.registry import HttpKeyRegistry, InMemoryKeyRegistry, get_key_registry

import pytest


def test_defaults_without_config_file():
    config = load_config()
    assert config.store.database_url is None
    assert config.registry.backend == "inmemory"
    assert config.rotation.max_attempts == 10
    assert config.provisioning.on_mismatch == "ignore"


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "keyspace.yaml"
    config_path.write_text(
        """
registry:
  backend: http
  http:
    base_url: http://keys.internal:9000
    timeout: 2.5
rotation:
  max_attempts: 4
  base_delay: 0.1
provisioning:
  on_mismatch: reject
"""
    )
    monkeypatch.setenv("KEYSPACE_CONFIG", str(config_path))

    config = load_config()
    assert config.registry.backend == "http"
    assert config.registry.http.base_url == "http://keys.internal:9000"
    assert config.rotation.max_attempts == 4
    assert config.rotation.base_delay == 0.1
    assert config.provisioning.on_mismatch == "reject"

    registry = get_key_registry(config)
    assert isinstance(registry, HttpKeyRegistry)
    assert registry.base_url == "http://keys.internal:9000"
    assert registry.timeout == 2.5


def test_database_url_env_override(tmp_path, monkeypatch):
    db_path = tmp_path / "keys.db"
    monkeypatch.setenv("KEYSPACE_DATABASE_URL", f"sqlite://{db_path}")

    config = load_config()
    assert config.store.database_url == f"sqlite://{db_path}"
    store = get_record_store(config=config)
    assert isinstance(store, SQLiteRecordStore)
    assert store.db_path == str(db_path)


def test_get_record_store_backends(tmp_path):
    assert isinstance(get_record_store(), InMemoryRecordStore)
    assert isinstance(get_record_store(f"sqlite://{tmp_path / 'x.db'}"), SQLiteRecordStore)
    with pytest.raises(ValueError):
        get_record_store("mysql://localhost/keys")


def test_get_keystore_wires_configuration():
    keystore = get_keystore()
    assert isinstance(keystore.store, InMemoryRecordStore)
    assert isinstance(keystore.registry, InMemoryKeyRegistry)
