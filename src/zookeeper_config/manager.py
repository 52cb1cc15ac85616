"""Configuration manager layering several stores."""

import copy
import logging
from collections.abc import Iterable
from typing import Any

from .models import MISSING
from .store import HierarchicalStore
from .utils import deep_merge

logger = logging.getLogger(__name__)


class ConfigManager:
    """Resolves configuration across an ordered set of stores.

    Applications construct their stores and hand them to the manager in
    priority order, highest first. Reads return the first store holding a
    key; writes go to a named store or the first writable one.

    Args:
        stores: (name, store) pairs, highest priority first

    Example:
        ```python
        remote = ZooKeeperStore(StoreOptions(name="my-service"))
        overrides = HierarchicalStore()
        config = ConfigManager([("overrides", overrides), ("zookeeper", remote)])
        config.load()
        pool_size = config.get("database:pool:size")
        ```
    """

    def __init__(self, stores: Iterable[tuple[str, HierarchicalStore]]):
        self._stores: dict[str, HierarchicalStore] = {}
        for name, store in stores:
            if name in self._stores:
                raise ValueError(f"Duplicate store name '{name}'")
            self._stores[name] = store

    @property
    def names(self) -> list[str]:
        """Store names, highest priority first."""
        return list(self._stores)

    def store(self, name: str) -> HierarchicalStore:
        """Get a store by name.

        Raises:
            KeyError: If no store has that name
        """
        return self._stores[name]

    # ===== Reads =====

    def get(self, key: str | None = None) -> Any:
        """Get the highest-priority value for ``key``.

        Args:
            key: Delimited key, or None for the merged settings of all stores

        Returns:
            The value, or MISSING when no store holds the key
        """
        if key is None:
            return self.get_merged_settings()

        for store in self._stores.values():
            value = store.get(key)
            if value is not MISSING:
                return value
        return MISSING

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all stores.

        Merge order (later overrides earlier): lowest priority store first,
        highest priority store last.

        Returns:
            Merged settings dictionary
        """
        merged: dict[str, Any] = {}
        for store in reversed(list(self._stores.values())):
            merged = deep_merge(merged, copy.deepcopy(store.get()))
        return merged

    # ===== Writes =====

    def set(self, key: str | None, value: Any, scope: str | None = None) -> bool:
        """Set ``value`` at ``key`` in the target store.

        Args:
            key: Delimited key
            value: Value to store
            scope: Store name (default: first writable store)

        Returns:
            True if the target store accepted the value
        """
        target = self._target(scope)
        return target is not None and target.set(key, value)

    def merge(self, key: str | None, value: Any, scope: str | None = None) -> bool:
        """Merge ``value`` into ``key`` in the target store."""
        target = self._target(scope)
        return target is not None and target.merge(key, value)

    def clear(self, key: str | None = None, scope: str | None = None) -> bool:
        """Remove ``key`` from the target store."""
        target = self._target(scope)
        return target is not None and target.clear(key)

    # ===== Persistence =====

    def load(self) -> None:
        """Load every store backed by a remote source."""
        for name, store in self._stores.items():
            load = getattr(store, "load", None)
            if load is not None:
                logger.debug(f"Loading store '{name}'")
                load()

    def save(self) -> None:
        """Save every store backed by a remote source."""
        for name, store in self._stores.items():
            if store.read_only:
                continue
            save = getattr(store, "save", None)
            if save is not None:
                logger.debug(f"Saving store '{name}'")
                save()

    # ===== Private Helpers =====

    def _target(self, scope: str | None) -> HierarchicalStore | None:
        if scope is not None:
            return self._stores[scope]
        for store in self._stores.values():
            if not store.read_only:
                return store
        logger.warning("No writable store configured")
        return None
