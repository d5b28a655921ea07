from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import Any, get_origin


def describe_key(key: Any) -> str:
    """Return a readable name for a dependency key.

    Plain classes and functions are named by their qualified name; aliases
    such as ``Annotated[...]``, ``list[int]`` or ``NewType`` use their repr.
    """
    if get_origin(key) is None and (inspect.isclass(key) or inspect.isroutine(key)):
        return key.__qualname__  # type: ignore[no-any-return]
    return repr(key)


class KatanaError(Exception):
    """Represent a base class for all katana-specific failures.

    Catch this type when you want to handle any katana error path without
    matching each concrete exception class individually.
    """


class KatanaNotAReferenceError(KatanaError):
    """Signal that a resolution target is not a ``Ref`` slot.

    Raised by ``Injector.resolve`` when one of its arguments cannot receive a
    resolved value. Wrap the requested key in ``Ref(key)`` or call
    ``Injector.get(key)`` instead.
    """

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(
            f"Cannot resolve into {type(target).__qualname__}. Expected a Ref slot.",
        )


class KatanaNilReferenceError(KatanaError):
    """Signal that a ``Ref`` slot points to nothing.

    Raised when a ``Ref`` created without a key is passed to
    ``Injector.resolve`` and when ``Ref.value`` is read before the slot was
    filled.
    """

    def __init__(self, ref: Any, detail: str = "has no dependency key") -> None:
        self.ref = ref
        super().__init__(f"Reference {ref!r} {detail}.")


class KatanaNoProviderError(KatanaError):
    """Signal that a dependency key has no provider.

    This is a wiring bug rather than a transient failure: register a provider
    for the key (``provide_new``, ``provide_singleton``, ``provide`` or
    ``provide_as``) before resolving it.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"No providers registered for dependency type {describe_key(key)}")


class KatanaProviderAlreadyRegisteredError(KatanaError):
    """Signal a second registration for the same dependency key.

    Each injector accepts exactly one provider per key. Register overrides on
    a ``clone()`` when a unit of work needs a different provider.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Dependency {describe_key(key)} already registered")


class KatanaInvalidProviderError(KatanaError):
    """Signal a constructor that breaks the provider contract.

    A provider must be a synchronous callable returning exactly one value, and
    every required parameter must carry a type annotation naming the
    dependency to inject.
    """

    def __init__(self, provider: Any, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"Invalid provider {describe_key(provider)}: {reason}")


class KatanaCyclicDependencyError(KatanaError):
    """Signal that a dependency transitively requires itself.

    ``chain`` holds the keys under resolution from the outermost request
    through the repeated key, e.g. ``[A, B, A]``.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = list(chain)
        formatted = " -> ".join(describe_key(key) for key in self.chain)
        super().__init__(f"Cyclic dependency detected: [{formatted}]")


class KatanaNotCallableError(KatanaError):
    """Signal an ``Injector.inject`` call on a non-callable object."""

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(
            f"Cannot inject dependencies into non callable type {type(target).__qualname__}",
        )
