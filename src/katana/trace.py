from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from katana.exceptions import KatanaCyclicDependencyError, describe_key


class ResolutionTrace:
    """Keep track of the dependency keys currently under resolution.

    Every key is pushed before its constructor's dependencies are resolved and
    popped once the constructor returns, so the trace mirrors the recursive
    call chain. Pushing a key that is already in the trace means the key
    depends on itself, which is reported as a ``KatanaCyclicDependencyError``
    carrying the whole chain.
    """

    __slots__ = ("_keys",)

    def __init__(self) -> None:
        self._keys: list[Any] = []

    @property
    def empty(self) -> bool:
        """Return true when no key is under resolution."""
        return not self._keys

    def contains(self, key: Any) -> bool:
        """Return true when ``key`` is already under resolution."""
        return key in self._keys

    def push(self, key: Any) -> None:
        """Append ``key`` to the trace.

        Args:
            key: The dependency key about to be constructed.

        Raises:
            KatanaCyclicDependencyError: If ``key`` is already in the trace. The
                key is appended first so the reported chain includes the
                closing edge of the cycle.

        """
        is_cycle = key in self._keys
        self._keys.append(key)
        if is_cycle:
            raise KatanaCyclicDependencyError(self._keys)

    def pop(self) -> Any | None:
        """Remove and return the most recently pushed key, or ``None`` when empty."""
        if not self._keys:
            return None
        return self._keys.pop()

    def reset(self) -> None:
        """Forget every key under resolution."""
        self._keys.clear()

    def __contains__(self, key: Any) -> bool:
        return self.contains(key)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __str__(self) -> str:
        return "[" + " -> ".join(describe_key(key) for key in self._keys) + "]"

    def __repr__(self) -> str:
        return f"ResolutionTrace({self})"
