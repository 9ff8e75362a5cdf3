"""Tests for environment configuration and service wiring."""

import json
import logging

import pytest

from inventorykit.config import ConfigurationError, InventoryConfig
from inventorykit.resources import DiscoverySnapshot, SnapshotPhase
from inventorykit.service import build_snapshot_reconciler, create_store
from inventorykit.store import InMemoryStoreClient

ENV_NAMES = (
    "INVENTORY_STORE_BACKEND",
    "INVENTORY_DB_URL",
    "INVENTORY_DB_HOST",
    "INVENTORY_DB_PORT",
    "INVENTORY_DB_NAME",
    "INVENTORY_DB_USER",
    "INVENTORY_DB_PASSWORD",
    "INVENTORY_DB_POOL_MIN",
    "INVENTORY_DB_POOL_MAX",
    "INVENTORY_DEBUG",
    "INVENTORY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes anything load_dotenv() wrote
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestInventoryConfig:

    def test_defaults(self):
        config = InventoryConfig.from_env(load_env_file=False)
        assert config.store_backend == "memory"
        assert config.db_url is None
        assert config.db_port == 5432
        assert config.debug is False
        assert config.log_level == "INFO"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("INVENTORY_STORE_BACKEND", "Postgres")
        monkeypatch.setenv("INVENTORY_DB_URL", "postgresql://u:p@db/inv")
        monkeypatch.setenv("INVENTORY_DB_POOL_MAX", "4")
        monkeypatch.setenv("INVENTORY_DEBUG", "yes")

        config = InventoryConfig.from_env(load_env_file=False)

        assert config.store_backend == "postgres"
        assert config.db_url == "postgresql://u:p@db/inv"
        assert config.pool_max == 4
        assert config.debug is True
        assert config.log_level == "DEBUG"

    def test_loads_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("INVENTORY_LOG_LEVEL=warning\nINVENTORY_DB_NAME=inv\n")

        config = InventoryConfig.from_env(env_file=str(env_file))

        assert config.log_level == "WARNING"
        assert config.db_name == "inv"

    def test_finds_dotenv_in_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("INVENTORY_STORE_BACKEND=postgres\n")
        monkeypatch.chdir(tmp_path)

        assert InventoryConfig.from_env().store_backend == "postgres"

    def test_environment_wins_over_dotenv(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("INVENTORY_DB_NAME=from-file\n")
        monkeypatch.setenv("INVENTORY_DB_NAME", "from-env")

        assert InventoryConfig.from_env(env_file=str(env_file)).db_name == "from-env"

    @pytest.mark.parametrize("name,value", [
        ("INVENTORY_STORE_BACKEND", "sqlite"),
        ("INVENTORY_DB_PORT", "five"),
        ("INVENTORY_DEBUG", "maybe"),
        ("INVENTORY_LOG_LEVEL", "LOUD"),
        ("INVENTORY_DB_POOL_MIN", "0"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            InventoryConfig.from_env(load_env_file=False)


class TestServiceWiring:

    def test_memory_backend(self):
        assert isinstance(create_store(InventoryConfig()), InMemoryStoreClient)

    def test_build_and_reconcile(self):
        store = InMemoryStoreClient()
        reconciler = build_snapshot_reconciler(InventoryConfig(log_level="WARNING"), store=store)
        snapshot = DiscoverySnapshot.new("wired", json.dumps([{"serialNumber": "A"}]))
        store.create(snapshot)

        reconciler.reconcile(snapshot)

        assert store.get(snapshot.kind, snapshot.uid).status.phase is SnapshotPhase.COMPLETED
        assert len(store.list("Device")) == 1

    def test_reconcile_logs_are_tagged(self, caplog):
        store = InMemoryStoreClient()
        reconciler = build_snapshot_reconciler(InventoryConfig(), store=store)
        snapshot = DiscoverySnapshot.new("tagged", json.dumps([{"serialNumber": "A"}]))
        store.create(snapshot)

        with caplog.at_level(logging.INFO, logger="inventorykit"):
            reconciler.reconcile(snapshot)

        creates = [r for r in caplog.records if "Creating new device" in r.getMessage()]
        assert len(creates) == 1
        assert creates[0].snapshot == "tagged"
        assert creates[0].serial == "A"
        assert creates[0].getMessage().startswith("snapshot=tagged ")
