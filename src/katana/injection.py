from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, TypeVar, get_type_hints

from katana.markers import resolved_key
from katana.providers import ProviderDependency, build_call_arguments

T = TypeVar("T")


class Injected(Generic[T]):
    """A callable bound to dependencies resolved once by ``Injector.inject``.

    Every call reuses the same resolved arguments, so ``NEW`` dependencies are
    not rebuilt between calls. Call-time arguments are bound against the
    public signature, which lists only the parameters that were not resolved.
    Keyword arguments naming a resolved parameter override it for that call.
    """

    def __init__(
        self,
        func: Callable[..., T],
        dependencies: tuple[ProviderDependency, ...],
        arguments: dict[str, Any],
    ) -> None:
        self._func = func
        self._dependencies = dependencies
        self._arguments = dict(arguments)

        # Preserve function metadata for introspection
        wraps(func)(self)
        self.__name__: str = getattr(func, "__name__", repr(func))
        self.__wrapped__: Callable[..., T] = func
        self._signature = _signature_of(func)
        self.__signature__ = _signature_without(self._signature, set(self._arguments))

    @property
    def arguments(self) -> dict[str, Any]:
        """Return the resolved arguments keyed by parameter name."""
        return dict(self._arguments)

    def __call__(self, *args: Any, **kwargs: Any) -> T:
        """Call the wrapped function with the resolved and call-time arguments.

        Raises:
            TypeError: If the call-time arguments do not fit the public signature.

        """
        if self._signature is None or self.__signature__ is None:
            resolved_args, resolved_kwargs = build_call_arguments(
                self._dependencies,
                self._arguments,
            )
            return self._func(*resolved_args, *args, **{**resolved_kwargs, **kwargs})

        overrides = {name: kwargs.pop(name) for name in list(kwargs) if name in self._arguments}
        call_arguments = self.__signature__.bind_partial(*args, **kwargs).arguments
        merged = {**self._arguments, **overrides, **call_arguments}
        bound = inspect.BoundArguments(
            self._signature,
            {name: merged[name] for name in self._signature.parameters if name in merged},
        )
        return self._func(*bound.args, **bound.kwargs)

    def __repr__(self) -> str:
        return f"Injected({self._func!r})"

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        """Descriptor protocol to bind this callable to an instance when used as a method."""
        if obj is None:
            return self
        return types.MethodType(self, obj)


def _signature_of(func: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(func)
    except (ValueError, TypeError):
        return None


def _signature_without(
    signature: inspect.Signature | None,
    hidden: set[str],
) -> inspect.Signature | None:
    if signature is None:
        return None
    return signature.replace(
        parameters=[p for p in signature.parameters.values() if p.name not in hidden],
    )


@dataclass(frozen=True, slots=True)
class ResolvedParameter:
    """A parameter annotated with ``Resolved[...]`` and the key it resolves to."""

    name: str
    key: Any


@dataclass(frozen=True, slots=True)
class ResolvedCallableInspection:
    """Resolution metadata derived from a callable signature and annotations."""

    signature: inspect.Signature
    resolved_parameters: tuple[ResolvedParameter, ...]
    public_signature: inspect.Signature


@dataclass(slots=True)
class ResolvedCallableInspector:
    """Inspect callables for ``Resolved[...]`` parameters and build a public signature."""

    def inspect_callable(self, callable_obj: Callable[..., Any]) -> ResolvedCallableInspection:
        """Build resolution metadata and a signature hiding resolved parameters."""
        signature = inspect.signature(callable_obj)
        try:
            annotations = get_type_hints(callable_obj, include_extras=True)
        except (AttributeError, NameError, TypeError):
            annotations = {}

        resolved_parameters: list[ResolvedParameter] = []
        for parameter in signature.parameters.values():
            annotation = annotations.get(parameter.name, parameter.annotation)
            if annotation is inspect.Signature.empty or isinstance(annotation, str):
                continue
            key = resolved_key(annotation)
            if key is None:
                continue
            resolved_parameters.append(ResolvedParameter(name=parameter.name, key=key))

        hidden = {parameter.name for parameter in resolved_parameters}
        public_signature = signature.replace(
            parameters=[p for p in signature.parameters.values() if p.name not in hidden],
        )
        return ResolvedCallableInspection(
            signature=signature,
            resolved_parameters=tuple(resolved_parameters),
            public_signature=public_signature,
        )
