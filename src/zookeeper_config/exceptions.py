"""Exceptions for zookeeper-config."""


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Error reading a store options file."""

    pass


class ConfigValidationError(ConfigError):
    """Error validating store options."""

    pass


class RemoteSyncError(ConfigError):
    """Error synchronizing the store with its ZooKeeper node."""

    pass


class RemoteNodeCreationError(RemoteSyncError):
    """The missing ZooKeeper node could not be created."""

    pass


class RemoteDataError(RemoteSyncError):
    """The ZooKeeper node does not hold a JSON object."""

    pass
