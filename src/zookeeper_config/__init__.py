"""zookeeper-config: Hierarchical configuration stored in ZooKeeper.

This library keeps a nested configuration document in a single ZooKeeper
node and exposes it as an in-memory store addressed by colon-delimited
keys (``database:pool:size``). Changes are written back explicitly with
``save()`` or automatically after a configurable delay, and the store can
follow remote changes through a ZooKeeper watch.

Public API:
    ZooKeeperStore: Store persisted in a ZooKeeper node
    HierarchicalStore: In-memory store with the same key semantics
    ConfigManager: Layers several stores by priority
    StoreOptions, ZooKeeperHost: Store configuration
    AutoSavePolicy: Auto-save scheduling
    RemoteSync, DataSubscription: ZooKeeper synchronization
    MISSING: Sentinel returned for absent keys
    to_path, to_key, deep_merge: Key and dictionary utilities
    ConfigError and subclasses: Exception types

Example:
    ```python
    from zookeeper_config import StoreOptions, ZooKeeperHost, ZooKeeperStore

    options = StoreOptions(
        hosts=[ZooKeeperHost("zk1", 2181, "/services"), ZooKeeperHost("zk2", 2181, "/services")],
        name="billing",
        auto_save=250,
        auto_update=True,
    )
    store = ZooKeeperStore(options)
    store.load()

    store.merge("database", {"pool": {"size": 20}})
    store.get("database:pool:size")  # 20
    ```
"""

from .autosave import AutoSavePolicy
from .exceptions import ConfigError
from .exceptions import ConfigFileError
from .exceptions import ConfigValidationError
from .exceptions import RemoteDataError
from .exceptions import RemoteNodeCreationError
from .exceptions import RemoteSyncError
from .manager import ConfigManager
from .models import MISSING
from .models import StoreOptions
from .models import ZooKeeperHost
from .store import HierarchicalStore
from .sync import DataSubscription
from .sync import RemoteSync
from .utils import deep_merge
from .utils import to_key
from .utils import to_path
from .zookeeper import ZooKeeperStore

__version__ = "0.1.0"

__all__ = [
    "ZooKeeperStore",
    "HierarchicalStore",
    "ConfigManager",
    "StoreOptions",
    "ZooKeeperHost",
    "AutoSavePolicy",
    "RemoteSync",
    "DataSubscription",
    "MISSING",
    "to_path",
    "to_key",
    "deep_merge",
    "ConfigError",
    "ConfigFileError",
    "ConfigValidationError",
    "RemoteSyncError",
    "RemoteNodeCreationError",
    "RemoteDataError",
]
