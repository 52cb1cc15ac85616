"""Tests for ConfigManager."""

import pytest
from zookeeper_config import MISSING
from zookeeper_config import ConfigManager
from zookeeper_config import HierarchicalStore
from zookeeper_config import StoreOptions
from zookeeper_config import ZooKeeperStore


class TestConfigManager:
    """Test ConfigManager class."""

    @pytest.fixture
    def overrides(self):
        return HierarchicalStore()

    @pytest.fixture
    def defaults(self):
        store = HierarchicalStore({"database": {"host": "localhost", "pool": {"size": 5}}, "debug": False})
        store.read_only = True
        return store

    @pytest.fixture
    def manager(self, overrides, defaults):
        return ConfigManager([("overrides", overrides), ("defaults", defaults)])

    def test_names_in_priority_order(self, manager):
        assert manager.names == ["overrides", "defaults"]

    def test_duplicate_names_rejected(self, overrides):
        with pytest.raises(ValueError):
            ConfigManager([("a", overrides), ("a", overrides)])

    def test_store_lookup(self, manager, overrides):
        assert manager.store("overrides") is overrides
        with pytest.raises(KeyError):
            manager.store("nope")

    # ===== Read Tests =====

    def test_get_falls_through(self, manager):
        """Test keys absent from higher stores resolve from lower ones."""
        assert manager.get("database:pool:size") == 5

    def test_get_precedence(self, manager, overrides):
        """Test the highest-priority store wins."""
        overrides.set("database:pool:size", 20)
        assert manager.get("database:pool:size") == 20

    def test_get_missing(self, manager):
        assert manager.get("nope") is MISSING

    def test_get_falsy_value_is_found(self, manager):
        assert manager.get("debug") is False

    def test_get_merged_settings(self, manager, overrides):
        """Test merged settings combine all stores with precedence."""
        overrides.set("database:pool:size", 20)
        overrides.set("feature", True)
        assert manager.get_merged_settings() == {
            "database": {"host": "localhost", "pool": {"size": 20}},
            "debug": False,
            "feature": True,
        }
        assert manager.get() == manager.get_merged_settings()

    # ===== Write Tests =====

    def test_set_targets_first_writable(self, manager, overrides, defaults):
        assert manager.set("debug", True) is True
        assert overrides.get("debug") is True
        assert defaults.get("debug") is False

    def test_set_to_read_only_scope_fails(self, manager):
        assert manager.set("debug", True, scope="defaults") is False

    def test_set_without_writable_store(self, defaults):
        manager = ConfigManager([("defaults", defaults)])
        assert manager.set("debug", True) is False

    def test_merge_and_clear(self, manager, overrides):
        manager.merge("database", {"pool": {"size": 20}})
        assert overrides.get() == {"database": {"pool": {"size": 20}}}
        assert manager.clear("database:pool") is True
        assert manager.get("database:pool:size") == 5

    # ===== Persistence Tests =====

    def test_load_and_save_remote_stores(self, zk, overrides):
        """Test load and save reach the stores that support them."""
        zk.nodes["/service"] = b'{"remote": 1}'
        remote = ZooKeeperStore(StoreOptions(name="service"), client=zk)
        manager = ConfigManager([("overrides", overrides), ("zookeeper", remote)])

        manager.load()
        assert manager.get("remote") == 1

        manager.set("remote", 2, scope="zookeeper")
        manager.save()
        assert zk.nodes["/service"] == b'{"remote": 2}'

    def test_save_skips_read_only_stores(self, zk, overrides):
        zk.nodes["/service"] = b"{}"
        remote = ZooKeeperStore(StoreOptions(name="service"), client=zk)
        remote.read_only = True
        manager = ConfigManager([("overrides", overrides), ("zookeeper", remote)])
        manager.save()
        assert zk.count("set") == 0
