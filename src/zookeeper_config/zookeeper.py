"""ZooKeeper-backed configuration store."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from kazoo.client import KazooClient

from .autosave import AutoSavePolicy
from .exceptions import RemoteSyncError
from .models import StoreOptions
from .store import HierarchicalStore
from .sync import RemoteSync


class ZooKeeperStore(HierarchicalStore):
    """Hierarchical store persisted as JSON in a single ZooKeeper node.

    The node lives at ``options.path`` under the connection's chroot and holds
    the whole store. ``load`` replaces the in-memory store with the node's
    content, ``save`` overwrites the node with the in-memory store. Nothing is
    merged between the two: whichever side writes last wins.

    Args:
        options: Store options (defaults to StoreOptions())
        client: KazooClient to use. When omitted one is built from
            ``options.connection_string`` and owned (stopped on close) by the store.
        logger: Logger for the store, its auto-save and its synchronization
        timer_factory: Builds auto-save timers, ``threading.Timer`` by default

    Example:
        ```python
        store = ZooKeeperStore(StoreOptions(name="my-service", auto_save=100))
        store.load()
        store.set("database:pool:size", 20)
        ```
    """

    type = "zookeeper"

    def __init__(
        self,
        options: StoreOptions | None = None,
        *,
        client: KazooClient | None = None,
        logger: logging.Logger | None = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        super().__init__()
        self.options = options or StoreOptions()
        self._logger = logger or logging.getLogger(__name__)
        self._owns_client = client is None
        if client is None:
            self._logger.debug(f"Connecting to ZooKeeper at {self.options.connection_string}")
            client = KazooClient(hosts=self.options.connection_string)
        self.client = client
        self.autosave = AutoSavePolicy(
            self._auto_save,
            delay_ms=self.options.auto_save,
            timer_factory=timer_factory,
            logger=self._logger,
        )
        self.remote = RemoteSync(
            client,
            self.path,
            self._install,
            auto_update=self.options.auto_update,
            connect_timeout=self.options.connect_timeout,
            on_error=self.options.on_error,
            logger=self._logger,
        )

    @property
    def path(self) -> str:
        return self.options.path

    def load(self, callback: Callable[[dict[str, Any] | None], None] | None = None) -> dict[str, Any] | None:
        """Replace the store with the content of the ZooKeeper node.

        Args:
            callback: Called once with the loaded data after a successful load

        Returns:
            The loaded data, or None if the node is empty (the store is then
            left as it was)

        Raises:
            RemoteSyncError: If the node cannot be read or created
        """
        self._logger.debug(f"Load requested, client connected: {self.client.connected}")
        data = self.remote.load()
        if callback is not None:
            callback(data)
        return data

    def save(self, callback: Callable[[Exception | None], None] | None = None) -> None:
        """Write the whole store to the ZooKeeper node.

        Args:
            callback: Called with None on success or with the RemoteSyncError
                on failure. When given, errors are not raised.

        Raises:
            RemoteSyncError: If the write fails and no callback was given
        """
        try:
            self.remote.save(self.to_json().encode("utf-8"))
        except RemoteSyncError as e:
            if callback is None:
                raise
            callback(e)
            return
        if callback is not None:
            callback(None)

    def close(self) -> None:
        """Cancel pending auto-saves and stop watching the node."""
        self.autosave.cancel()
        self.remote.close()
        if self._owns_client:
            self.client.stop()
            self.client.close()

    # ===== Private Helpers =====

    def _changed(self) -> None:
        self.autosave.trigger()

    def _auto_save(self) -> None:
        self.save(self._auto_save_done)

    def _auto_save_done(self, error: Exception | None) -> None:
        if error is None:
            return
        if self.options.on_error is None:
            self._logger.warning(f"Auto-save to {self.path} failed: {error}")
        else:
            self.options.on_error(error)

    def _install(self, data: dict[str, Any]) -> None:
        self.replace(data)
        if self.options.on_updated is not None:
            self.options.on_updated(data)
