"""In-memory hierarchical key-value store addressed by colon-delimited keys."""

import copy
import json
import logging
import threading
from typing import Any

from .models import MISSING
from .utils import to_key
from .utils import to_path

logger = logging.getLogger(__name__)


class HierarchicalStore:
    """Nested dictionary addressed by ``:``-delimited keys.

    ``"database:pool:size"`` addresses ``{"database": {"pool": {"size": ...}}}``.
    A key of ``None`` addresses the root, which is always a dictionary.

    Values are copied on the way in, so a store never shares its tree with
    the caller or with another store.

    Mutators never raise for invalid input. They return ``False`` and leave
    the store untouched when the store is read-only or the mutation cannot
    be applied, and call :meth:`_changed` once after every successful
    mutation.

    Attributes:
        read_only: When True every mutator returns False
    """

    type = "memory"

    def __init__(self, data: dict[str, Any] | None = None):
        self.read_only = False
        self._store: dict[str, Any] = copy.deepcopy(data) if data is not None else {}
        self._lock = threading.RLock()

    # ===== Reads =====

    def get(self, key: str | None = None) -> Any:
        """Get the value stored at ``key``.

        Args:
            key: Delimited key, or None for the whole store

        Returns:
            The stored value, or MISSING if any segment is absent
        """
        with self._lock:
            target: Any = self._store
            for segment in to_path(key):
                if isinstance(target, dict) and segment in target:
                    target = target[segment]
                    continue
                return MISSING
            return target

    def to_json(self) -> str:
        """Serialize the whole store as JSON."""
        with self._lock:
            return json.dumps(self._store)

    # ===== Mutations =====

    def set(self, key: str | None, value: Any) -> bool:
        """Set ``value`` at ``key``.

        Intermediate segments that are missing or hold a non-dict value are
        replaced with empty dictionaries. Setting the root replaces the whole
        store and requires a dictionary.

        Returns:
            True if the value was stored
        """
        if self.read_only:
            return False

        with self._lock:
            if not self._assign(to_path(key), value):
                return False
        self._changed()
        return True

    def clear(self, key: str | None = None) -> bool:
        """Remove ``key`` from the store, or everything when no key is given.

        Returns:
            False if the store is read-only or an intermediate segment is
            missing or not a dictionary
        """
        if self.read_only:
            return False

        with self._lock:
            if not key:
                self._store = {}
            else:
                path = to_path(key)
                target: Any = self._store
                for segment in path[:-1]:
                    target = target.get(segment)
                    if not isinstance(target, dict):
                        return False
                target.pop(path[-1], None)
        self._changed()
        return True

    def merge(self, key: str | None, value: Any) -> bool:
        """Merge ``value`` into the value stored at ``key``.

        Dictionaries are merged key by key, recursively. Anything else
        (scalars, lists, None) simply overwrites, exactly like :meth:`set`.
        A dictionary also overwrites an existing non-dict value at ``key``.

        Children are merged best effort: a failing child does not undo the
        children merged before it. The change hook runs when anything was
        modified, even if part of the merge failed.

        Returns:
            True if every part of the merge succeeded
        """
        if self.read_only:
            return False

        if not isinstance(value, dict):
            return self.set(key, value)

        with self._lock:
            ok, modified = self._merge(key, value)
        if modified:
            self._changed()
        return ok

    def reset(self) -> bool:
        """Remove every key from the store."""
        if self.read_only:
            return False

        with self._lock:
            self._store = {}
        self._changed()
        return True

    def replace(self, data: dict[str, Any]) -> None:
        """Install ``data`` as the new root, bypassing read-only and change hooks.

        Used when the store is refreshed from its backing source. ``data`` is
        kept by reference; callers hand over a freshly parsed document.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Store root must be a dict, got {type(data).__name__}")
        with self._lock:
            self._store = data

    # ===== Private Helpers =====

    def _changed(self) -> None:
        """Hook called after every successful mutation."""

    def _assign(self, path: list[str], value: Any) -> bool:
        if not path:
            if not isinstance(value, dict):
                return False
            self._store = copy.deepcopy(value)
            return True

        target = self._store
        for segment in path[:-1]:
            if not isinstance(target.get(segment), dict):
                target[segment] = {}
            target = target[segment]
        target[path[-1]] = copy.deepcopy(value)
        return True

    def _merge(self, key: str | None, value: Any) -> tuple[bool, bool]:
        """Merge without notifying.

        Returns:
            (succeeded, modified)
        """
        if not isinstance(value, dict):
            ok = self._assign(to_path(key), value)
            return ok, ok

        path = to_path(key)
        if not path:
            return self._merge_children(None, value)

        modified = False
        target = self._store
        for segment in path[:-1]:
            if target.get(segment) is None:
                target[segment] = {}
                modified = True
            target = target[segment]
            if not isinstance(target, dict):
                logger.debug(f"Cannot merge '{key}': segment '{segment}' is not a mapping")
                return False, modified

        leaf = path[-1]
        if not isinstance(target.get(leaf), dict):
            target[leaf] = copy.deepcopy(value)
            return True, True

        ok, children_modified = self._merge_children(key, value)
        return ok, modified or children_modified

    def _merge_children(self, key: str | None, value: dict[str, Any]) -> tuple[bool, bool]:
        results = [
            self._merge(child if key is None else to_key(key, child), child_value)
            for child, child_value in value.items()
        ]
        return all(ok for ok, _ in results), any(modified for _, modified in results)
