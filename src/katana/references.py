from __future__ import annotations

from typing import Any, Generic, TypeVar

from katana.exceptions import KatanaNilReferenceError, describe_key
from katana.instances import MISSING

T = TypeVar("T")


class Ref(Generic[T]):
    """An addressable slot ``Injector.resolve`` writes a resolved instance into.

    Usage:
        service = Ref(AccountService)
        injector.resolve(service)
        service.value.open_account(...)

    A ``Ref`` created without a key is a nil reference and cannot be resolved.
    """

    __slots__ = ("_value", "key")

    def __init__(self, key: type[T] | Any = None) -> None:
        self.key = key
        self._value: Any = MISSING

    @property
    def is_set(self) -> bool:
        """Return true once a value has been written into the slot."""
        return self._value is not MISSING

    @property
    def value(self) -> T:
        """Return the resolved instance."""
        if self._value is MISSING:
            raise KatanaNilReferenceError(self, "has not been resolved")
        return self._value  # type: ignore[no-any-return]

    @value.setter
    def value(self, instance: T) -> None:
        self._value = instance

    def clear(self) -> None:
        """Forget the resolved instance, keeping the key."""
        self._value = MISSING

    def __repr__(self) -> str:
        key = "<nil>" if self.key is None else describe_key(self.key)
        state = "set" if self.is_set else "unset"
        return f"Ref({key}, {state})"
