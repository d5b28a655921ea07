from __future__ import annotations

from typing import Any

MISSING: Any = object()
"""Returned by ``InstanceCache.get`` on a miss; ``None`` is a valid cached instance."""


class InstanceCache:
    """Hold singleton instances keyed by the dependency key they were resolved for."""

    __slots__ = ("_instances",)

    def __init__(self, instances: dict[Any, Any] | None = None) -> None:
        self._instances: dict[Any, Any] = dict(instances) if instances else {}

    def get(self, key: Any) -> Any:
        """Return the cached instance for ``key`` or ``MISSING``."""
        return self._instances.get(key, MISSING)

    def put(self, key: Any, instance: Any) -> None:
        """Cache ``instance`` under ``key``."""
        self._instances[key] = instance

    def copy(self) -> InstanceCache:
        """Return a cache holding the same instances under its own mapping."""
        return InstanceCache(self._instances)

    def __contains__(self, key: Any) -> bool:
        return key in self._instances

    def __len__(self) -> int:
        return len(self._instances)
