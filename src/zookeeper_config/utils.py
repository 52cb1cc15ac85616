"""Utility functions for zookeeper-config."""

from typing import Any

DELIMITER = ":"


def to_path(key: str | None) -> list[str]:
    """Split a delimited key into its path segments.

    Examples:
        >>> to_path("database:pool:size")
        ['database', 'pool', 'size']

        >>> to_path(None)
        []
    """
    return [] if key is None else key.split(DELIMITER)


def to_key(*segments: str) -> str:
    """Join path segments back into a delimited key.

    Examples:
        >>> to_key("database", "pool")
        'database:pool'
    """
    return DELIMITER.join(segments)


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries with overlay precedence.

    Recursively merges nested dictionaries. Non-dict values in overlay
    completely replace corresponding values in base.

    Args:
        base: Base dictionary
        overlay: Overlay dictionary (takes precedence)

    Returns:
        New merged dictionary (base and overlay are not modified)

    Examples:
        >>> base = {"a": 1, "b": {"c": 2, "d": 3}}
        >>> overlay = {"b": {"c": 20}, "e": 5}
        >>> deep_merge(base, overlay)
        {'a': 1, 'b': {'c': 20, 'd': 3}, 'e': 5}
    """
    result = base.copy()

    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result
