"""Data models for zookeeper-config."""

from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigFileError
from .exceptions import ConfigValidationError


class _Missing:
    """Marker for a key that is not present in a store."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ZooKeeperHost:
    """One member of the ZooKeeper ensemble.

    Attributes:
        host: Server hostname
        port: Client port
        root_path: Chroot applied to every path used by the store
    """

    host: str = "localhost"
    port: int = 2181
    root_path: str = "/"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class StoreOptions:
    """Options for a ZooKeeperStore.

    Attributes:
        hosts: Ensemble members, in connection order
        name: Node (under the chroot) holding the serialized store. May be nested,
            e.g. ``apps/billing``; missing parents are created on first load.
        auto_save: Auto-save delay in milliseconds. Negative disables auto-save,
            zero saves immediately after every mutation.
        auto_update: Reload the store whenever the node's data changes
        connect_timeout: Seconds to wait for the initial connection
        on_updated: Called with the new data after every successful fetch
        on_error: Called with errors raised by background refreshes and auto-saves
    """

    hosts: tuple[ZooKeeperHost, ...] = (ZooKeeperHost(),)
    name: str = "zookeeper-config"
    auto_save: int = -1
    auto_update: bool = False
    connect_timeout: float = 10.0
    on_updated: Callable[[dict[str, Any]], None] | None = field(default=None, repr=False)
    on_error: Callable[[Exception], None] | None = field(default=None, repr=False)

    def __post_init__(self):
        self.hosts = tuple(self.hosts)
        if not self.hosts:
            raise ConfigValidationError("At least one ZooKeeper host is required")
        stripped = self.name.strip("/")
        if not stripped or "//" in stripped:
            raise ConfigValidationError(f"Invalid node name: {self.name!r}")

    @property
    def path(self) -> str:
        """Absolute node path, relative to the chroot."""
        return "/" + self.name.strip("/")

    @property
    def connection_string(self) -> str:
        """Connection string in the form accepted by KazooClient.

        ZooKeeper supports a single chroot suffix for the whole ensemble, so
        every host must share the same root path.

        Raises:
            ConfigValidationError: If hosts disagree on their root path
        """
        roots = {_normalize_root(h.root_path) for h in self.hosts}
        if len(roots) > 1:
            raise ConfigValidationError(f"Hosts must share one root path, got {sorted(roots)}")
        chroot = roots.pop()
        addresses = ",".join(h.address for h in self.hosts)
        return addresses if chroot == "/" else addresses + chroot

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoreOptions":
        """Build options from a plain mapping.

        ``host`` may be a hostname (combined with ``port`` and ``root_path``)
        or a list of mappings with ``host``, ``port`` and ``root_path`` keys.

        Args:
            data: Option mapping, typically parsed from YAML

        Returns:
            StoreOptions instance

        Raises:
            ConfigValidationError: On unknown keys or invalid values
        """
        allowed = {"host", "port", "root_path", "name", "auto_save", "auto_update", "connect_timeout"}
        unknown = set(data) - allowed
        if unknown:
            raise ConfigValidationError(f"Unknown store options: {', '.join(sorted(unknown))}")

        host = data.get("host", "localhost")
        if isinstance(host, list):
            if "port" in data or "root_path" in data:
                raise ConfigValidationError("'port' and 'root_path' belong inside each host entry")
            hosts = tuple(_host_from_dict(entry) for entry in host)
        else:
            hosts = (_host_from_dict({k: data[k] for k in ("host", "port", "root_path") if k in data}),)

        kwargs: dict[str, Any] = {"hosts": hosts}
        if "name" in data:
            kwargs["name"] = _typed(data, "name", str)
        if "auto_save" in data:
            kwargs["auto_save"] = _typed(data, "auto_save", int)
        if "auto_update" in data:
            kwargs["auto_update"] = _typed(data, "auto_update", bool)
        if "connect_timeout" in data:
            kwargs["connect_timeout"] = float(_typed(data, "connect_timeout", (int, float)))
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "StoreOptions":
        """Load options from a YAML file.

        Raises:
            ConfigFileError: If the file is missing or cannot be parsed
            ConfigValidationError: If the options are invalid
        """
        if not path.exists():
            raise ConfigFileError(f"Store options file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(f"Failed to read store options from {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Store options in {path} must be a mapping")
        return cls.from_dict(data)


def _normalize_root(root_path: str) -> str:
    return "/" + root_path.strip("/")


def _host_from_dict(data: Any) -> ZooKeeperHost:
    if not isinstance(data, Mapping):
        raise ConfigValidationError(f"Host entry must be a mapping, got {data!r}")
    extra = set(data) - {"host", "port", "root_path"}
    if extra:
        raise ConfigValidationError(f"Unknown host options: {', '.join(sorted(extra))}")
    return ZooKeeperHost(
        host=_typed(data, "host", str) if "host" in data else "localhost",
        port=_typed(data, "port", int) if "port" in data else 2181,
        root_path=_typed(data, "root_path", str) if "root_path" in data else "/",
    )


def _typed(data: Mapping[str, Any], key: str, expected: type | tuple[type, ...]) -> Any:
    value = data[key]
    # bool is an int subclass; only accept it where a bool is expected
    if isinstance(value, bool) and expected is not bool:
        raise ConfigValidationError(f"Option '{key}' has invalid value {value!r}")
    if not isinstance(value, expected):
        raise ConfigValidationError(f"Option '{key}' has invalid value {value!r}")
    return value
