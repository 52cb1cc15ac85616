"""Synchronization between a store and its ZooKeeper node."""

import json
import logging
from collections.abc import Callable
from typing import Any

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException
from kazoo.exceptions import NoNodeError
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.protocol.states import EventType
from kazoo.protocol.states import KazooState
from kazoo.protocol.states import WatchedEvent
from kazoo.protocol.states import ZnodeStat

from .exceptions import RemoteDataError
from .exceptions import RemoteNodeCreationError
from .exceptions import RemoteSyncError


class DataSubscription:
    """Data watch on one node that re-arms itself after every change.

    ZooKeeper watches fire once. Every :meth:`arm` call reads the node and
    registers a new watch; a ``CHANGED`` notification runs ``on_change`` on
    the client's handler thread, which is expected to call :meth:`arm` again.
    Kazoo keeps one registration per callable, so arming twice before a
    notification does not duplicate it.

    Args:
        client: Connected KazooClient
        path: Watched node
        on_change: Called (without arguments) after the node's data changed
        logger: Logger for watch events
    """

    def __init__(
        self,
        client: KazooClient,
        path: str,
        on_change: Callable[[], None],
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.path = path
        self._on_change = on_change
        self._logger = logger or logging.getLogger(__name__)
        self.active = True

    def arm(self) -> tuple[bytes, ZnodeStat]:
        """Read the node and register a watch for its next change."""
        self.active = True
        return self.client.get(self.path, watch=self._watcher)

    def unsubscribe(self) -> None:
        """Ignore further notifications.

        ZooKeeper offers no way to withdraw a registered watch, so the one
        already armed still fires once and is discarded.
        """
        self.active = False

    def _watcher(self, event: WatchedEvent) -> None:
        self._logger.debug(f"Watch event {event.type} for {event.path}")
        if not self.active:
            return
        if event.type == EventType.CHANGED:
            self.client.handler.spawn(self._on_change)


class RemoteSync:
    """Loads and saves one JSON document stored in a ZooKeeper node.

    A fetch that finds no node creates it (with its parents) and retries
    exactly once. With ``auto_update`` every fetch also watches the node,
    and each change notification triggers a background refetch that hands
    the new data to ``on_data``.

    Args:
        client: KazooClient, connected or not
        path: Node holding the document
        on_data: Receives every parsed, non-empty document
        auto_update: Refetch when the node's data changes
        connect_timeout: Seconds to wait when connecting
        on_error: Receives errors from background refetches
        logger: Logger for the synchronization flow
    """

    def __init__(
        self,
        client: KazooClient,
        path: str,
        on_data: Callable[[dict[str, Any]], None],
        *,
        auto_update: bool = False,
        connect_timeout: float = 10.0,
        on_error: Callable[[Exception], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.path = path
        self.auto_update = auto_update
        self.connect_timeout = connect_timeout
        self._on_data = on_data
        self._on_error = on_error
        self._logger = logger or logging.getLogger(__name__)
        self._session_lost = False
        self._subscription = DataSubscription(client, path, self._refresh, self._logger) if auto_update else None
        self.client.add_listener(self._state_listener)

    def load(self) -> dict[str, Any] | None:
        """Connect if needed, then fetch the document.

        Returns:
            The parsed document, or None if the node is empty

        Raises:
            RemoteSyncError: If connecting or fetching fails
            RemoteNodeCreationError: If the missing node cannot be created
            RemoteDataError: If the node does not hold a JSON object
        """
        if not self.client.connected:
            self._logger.debug(f"Connecting to ZooKeeper to load {self.path}")
            try:
                self.client.start(timeout=self.connect_timeout)
            except (KazooTimeoutError, KazooException) as e:
                raise RemoteSyncError(f"Failed to connect to ZooKeeper: {e}") from e
        return self.fetch()

    def fetch(self) -> dict[str, Any] | None:
        """Fetch the document, creating the node once if it does not exist."""
        self._logger.debug(f"Retrieving {self.path}")
        try:
            data, _stat = self._get()
        except NoNodeError:
            self._create()
            try:
                data, _stat = self._get()
            except KazooException as e:
                raise RemoteSyncError(f"Failed to read {self.path} after creating it: {e}") from e
        except KazooException as e:
            raise RemoteSyncError(f"Failed to read {self.path}: {e}") from e

        if not data:
            self._logger.debug(f"{self.path} is empty")
            return None

        parsed = _decode(self.path, data)
        self._logger.debug(f"Got data from {self.path}: {parsed}")
        self._on_data(parsed)
        return parsed

    def save(self, payload: bytes) -> ZnodeStat:
        """Overwrite the node's data with ``payload``.

        Raises:
            RemoteSyncError: If the write fails
        """
        self._logger.debug(f"Saving {len(payload)} bytes to {self.path}")
        try:
            stat = self.client.set(self.path, payload)
        except KazooException as e:
            raise RemoteSyncError(f"Failed to write {self.path}: {e}") from e
        self._logger.debug(f"Saved {self.path} (version {stat.version})")
        return stat

    def close(self) -> None:
        """Stop reacting to watch and connection events."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self.client.remove_listener(self._state_listener)

    # ===== Private Helpers =====

    def _get(self) -> tuple[bytes, ZnodeStat]:
        if self._subscription is not None:
            return self._subscription.arm()
        return self.client.get(self.path)

    def _create(self) -> None:
        self._logger.info(f"{self.path} not found, creating it")
        try:
            self.client.ensure_path(self.path)
        except KazooException as e:
            raise RemoteNodeCreationError(f"Failed to create {self.path}: {e}") from e

    def _refresh(self) -> None:
        if self._subscription is not None and not self._subscription.active:
            return
        try:
            self.fetch()
        except RemoteSyncError as e:
            if self._on_error is None:
                self._logger.warning(f"Refreshing {self.path} failed: {e}")
            else:
                self._on_error(e)

    def _state_listener(self, state: KazooState) -> None:
        self._logger.debug(f"ZooKeeper connection state changed to {state}")
        if state == KazooState.LOST:
            self._session_lost = True
        elif state == KazooState.CONNECTED and self._session_lost:
            self._session_lost = False
            # watches do not survive an expired session
            self.client.handler.spawn(self._refresh)


def _decode(path: str, data: bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RemoteDataError(f"{path} does not hold valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise RemoteDataError(f"{path} holds {type(parsed).__name__}, expected a JSON object")
    return parsed
