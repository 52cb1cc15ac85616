"""Shared fixtures: an in-memory ZooKeeper client and manually fired timers."""

from collections import defaultdict

import pytest
from kazoo.exceptions import NoNodeError
from kazoo.protocol.states import EventType
from kazoo.protocol.states import KazooState
from kazoo.protocol.states import KeeperState
from kazoo.protocol.states import WatchedEvent
from kazoo.protocol.states import ZnodeStat


class InlineHandler:
    """Runs spawned callables immediately instead of on a worker thread."""

    def __init__(self):
        self.spawned = []

    def spawn(self, func, *args, **kwargs):
        self.spawned.append(func)
        return func(*args, **kwargs)


class FakeZooKeeperClient:
    """Subset of KazooClient backed by a dictionary of node paths."""

    def __init__(self, nodes=None, connected=False):
        self.nodes = dict(nodes or {})
        self.versions = defaultdict(int)
        self.connected = connected
        self.handler = InlineHandler()
        self.listeners = []
        self.watches = defaultdict(set)
        self.calls = []
        self.failures = defaultdict(list)
        self.stopped = False

    def fail_next(self, method, exc):
        """Make the next call to ``method`` raise ``exc``."""
        self.failures[method].append(exc)

    def start(self, timeout=15):
        self._record("start", None)
        self.connected = True
        self._notify(KazooState.CONNECTED)

    def stop(self):
        self.stopped = True
        self.connected = False
        self._notify(KazooState.LOST)

    def close(self):
        pass

    def add_listener(self, listener):
        self.listeners.append(listener)

    def remove_listener(self, listener):
        self.listeners.remove(listener)

    def get(self, path, watch=None):
        self._record("get", path)
        if path not in self.nodes:
            raise NoNodeError()
        if watch is not None:
            self.watches[path].add(watch)
        return self.nodes[path], self._stat(path)

    def set(self, path, value, version=-1):
        self._record("set", path)
        if path not in self.nodes:
            raise NoNodeError()
        self.nodes[path] = value
        self.versions[path] += 1
        self.fire(path, EventType.CHANGED)
        return self._stat(path)

    def ensure_path(self, path):
        self._record("ensure_path", path)
        parts = [p for p in path.split("/") if p]
        for i in range(1, len(parts) + 1):
            self.nodes.setdefault("/" + "/".join(parts[:i]), b"")
        return True

    def fire(self, path, event_type):
        """Deliver a one-shot watch event to every watcher of ``path``."""
        watchers = self.watches.pop(path, set())
        for watcher in watchers:
            watcher(WatchedEvent(event_type, KeeperState.CONNECTED, path))

    def count(self, method):
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method, path):
        self.calls.append((method, path))
        if self.failures[method]:
            raise self.failures[method].pop(0)

    def _stat(self, path):
        data = self.nodes[path]
        return ZnodeStat(0, 0, 0, 0, self.versions[path], 0, 0, 0, len(data), 0, 0)

    def _notify(self, state):
        for listener in list(self.listeners):
            listener(state)


class ManualTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


class TimerFactory:
    """Creates ManualTimers and remembers them."""

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = ManualTimer(interval, function, args, kwargs)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if t.started and not t.cancelled]

    def fire_all(self):
        for timer in list(self.timers):
            timer.fire()


@pytest.fixture
def zk():
    """Disconnected fake ZooKeeper client with no nodes."""
    return FakeZooKeeperClient()


@pytest.fixture
def timers():
    return TimerFactory()
