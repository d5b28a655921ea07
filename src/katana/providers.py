from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, TypeAlias, get_type_hints

from typing_extensions import Never, NoReturn

from katana.exceptions import (
    KatanaInvalidProviderError,
    KatanaNoProviderError,
    KatanaProviderAlreadyRegisteredError,
    describe_key,
)
from katana.lifecycle import Lifecycle

logger = logging.getLogger(__name__)

DependencyKey: TypeAlias = Any
"""A hashable key a provider is registered under: a class, protocol, NewType or alias."""

Constructor: TypeAlias = Callable[..., Any]
"""A callable building one instance from its resolved dependencies."""

_MISSING_ANNOTATION: Any = object()
_NO_VALUE_ANNOTATIONS: tuple[Any, ...] = (None, type(None), NoReturn, Never)


@dataclass(frozen=True, slots=True)
class ProviderDependency:
    """Represent a dependency key bound to a constructor parameter."""

    key: DependencyKey
    parameter: Parameter

    @property
    def has_default(self) -> bool:
        """Return true when the parameter can fall back to its default value."""
        return self.parameter.default is not Parameter.empty


@dataclass(frozen=True, slots=True)
class ProviderEntry:
    """A registered provider: which key it builds, how often, and from what."""

    key: DependencyKey
    """The dependency key the constructed instance is resolved for."""
    lifecycle: Lifecycle
    """Whether the constructor runs on every resolution or at most once."""
    constructor: Constructor
    """The callable invoked with the resolved dependencies."""
    dependencies: tuple[ProviderDependency, ...] = ()
    """Injectable parameters of ``constructor`` in signature order."""


def build_call_arguments(
    dependencies: tuple[ProviderDependency, ...],
    values: dict[str, Any],
) -> tuple[list[Any], dict[str, Any]]:
    """Split resolved values into positional and keyword arguments.

    Positional-only parameters are passed positionally, everything else by
    name. Parameters missing from ``values`` are left to their defaults.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for dependency in dependencies:
        name = dependency.parameter.name
        if name not in values:
            continue
        if dependency.parameter.kind is Parameter.POSITIONAL_ONLY:
            args.append(values[name])
        else:
            kwargs[name] = values[name]
    return args, kwargs


class ProviderRegistry:
    """Holds the provider entry registered for each dependency key."""

    __slots__ = ("_entries",)

    def __init__(self, entries: dict[DependencyKey, ProviderEntry] | None = None) -> None:
        self._entries: dict[DependencyKey, ProviderEntry] = dict(entries) if entries else {}

    def register(self, entry: ProviderEntry) -> None:
        """Add a provider entry.

        Raises:
            KatanaProviderAlreadyRegisteredError: If the key already has a provider.

        """
        if entry.key in self._entries:
            raise KatanaProviderAlreadyRegisteredError(entry.key)
        self._entries[entry.key] = entry
        logger.debug(
            "Registered %s provider %r for %r",
            entry.lifecycle.value,
            entry.constructor,
            entry.key,
        )

    def lookup(self, key: DependencyKey) -> ProviderEntry:
        """Return the entry registered for ``key``.

        Raises:
            KatanaNoProviderError: If no provider is registered for ``key``.

        """
        entry = self._entries.get(key)
        if entry is None:
            raise KatanaNoProviderError(key)
        return entry

    def find(self, key: DependencyKey) -> ProviderEntry | None:
        """Return the entry registered for ``key``, if it exists."""
        return self._entries.get(key)

    def keys(self) -> list[DependencyKey]:
        """Return every registered key in registration order."""
        return list(self._entries)

    def copy(self) -> ProviderRegistry:
        """Return a registry sharing the current entries under its own mapping."""
        return ProviderRegistry(self._entries)

    def __contains__(self, key: DependencyKey) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ProviderEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(slots=True)
class ProviderDependenciesExtractor:
    """Extracts injectable parameters from user-defined constructors."""

    def extract(
        self,
        constructor: Constructor,
        *,
        require_annotations: bool = True,
    ) -> tuple[ProviderDependency, ...]:
        """Return the dependencies a constructor needs resolved.

        Annotated parameters become dependencies keyed by their annotation.
        Parameters without an annotation are skipped when they have a default
        value (or are ``*args``/``**kwargs``) and rejected otherwise.

        Args:
            constructor: A class or callable to inspect.
            require_annotations: When false, required parameters without any
                annotation are skipped instead of rejected, leaving them to the
                caller.

        Raises:
            KatanaInvalidProviderError: If a required parameter has no usable
                annotation.

        """
        parameters = self._parameters(constructor)
        annotations, annotation_error = self._resolved_type_hints(constructor)
        dependencies: list[ProviderDependency] = []

        for parameter in parameters:
            if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
                continue
            key = self._resolve_parameter_annotation(
                parameter=parameter,
                annotations=annotations,
                annotation_error=annotation_error,
                constructor=constructor,
                require_annotations=require_annotations,
            )
            if key is _MISSING_ANNOTATION:
                continue
            dependencies.append(ProviderDependency(key=key, parameter=parameter))

        return tuple(dependencies)

    def _parameters(self, constructor: Constructor) -> tuple[Parameter, ...]:
        try:
            return tuple(inspect.signature(constructor).parameters.values())
        except (ValueError, TypeError):
            # Builtins without introspectable signatures are called without arguments.
            return ()

    def _resolve_parameter_annotation(
        self,
        *,
        parameter: Parameter,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        constructor: Constructor,
        require_annotations: bool,
    ) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation

        if parameter.default is not Parameter.empty:
            return _MISSING_ANNOTATION
        if not require_annotations and raw_annotation is Parameter.empty:
            return _MISSING_ANNOTATION

        reason = (
            f"unable to infer dependency for required parameter '{parameter.name}' "
            f"in provider '{describe_key(constructor)}'. Add a type annotation."
        )
        if annotation_error is None:
            raise KatanaInvalidProviderError(constructor, reason)
        reason = f"{reason} Original annotation error: {annotation_error}"
        raise KatanaInvalidProviderError(constructor, reason) from annotation_error

    def _resolved_type_hints(
        self,
        constructor: Constructor,
    ) -> tuple[dict[str, Any], Exception | None]:
        annotations: dict[str, Any] = {}
        annotation_error: Exception | None = None

        target = constructor.__init__ if inspect.isclass(constructor) else constructor
        try:
            annotations = get_type_hints(target, include_extras=True)
        except (AttributeError, NameError, TypeError) as error:
            annotation_error = error

        annotations.pop("return", None)
        return annotations, annotation_error


@dataclass(slots=True)
class ProviderReturnTypeExtractor:
    """Checks the return side of constructors and infers the key they provide."""

    def validate(self, constructor: Any) -> None:
        """Check that ``constructor`` returns exactly one constructed value.

        Raises:
            KatanaInvalidProviderError: If the object is not callable, is a
                generator or coroutine function, or is annotated to return
                nothing.

        """
        if not callable(constructor):
            raise KatanaInvalidProviderError(constructor, "provider is not callable")
        if inspect.isclass(constructor):
            return

        unwrapped = inspect.unwrap(constructor)
        if inspect.isgeneratorfunction(unwrapped) or inspect.isasyncgenfunction(unwrapped):
            raise KatanaInvalidProviderError(
                constructor,
                "generator providers are not supported, return the instance instead",
            )
        if inspect.iscoroutinefunction(unwrapped):
            raise KatanaInvalidProviderError(
                constructor,
                "async providers are not supported, return the instance instead",
            )

        return_annotation, _ = self._return_annotation(constructor)
        if return_annotation is not _MISSING_ANNOTATION and any(
            return_annotation is no_value for no_value in _NO_VALUE_ANNOTATIONS
        ):
            raise KatanaInvalidProviderError(
                constructor,
                "provider must return exactly one value but is annotated to return nothing",
            )

    def extract_provided_key(self, constructor: Constructor) -> DependencyKey:
        """Return the key a constructor provides: the class itself or its return annotation.

        Raises:
            KatanaInvalidProviderError: If the key cannot be inferred.

        """
        if inspect.isclass(constructor):
            return constructor

        return_annotation, annotation_error = self._return_annotation(constructor)
        if return_annotation is not _MISSING_ANNOTATION:
            return return_annotation

        if annotation_error is None:
            raise KatanaInvalidProviderError(
                constructor,
                "unable to infer the provided type. Add a return annotation or pass provides=...",
            )
        reason = (
            "unable to resolve the annotations of the provider. Make the return type "
            f"importable or pass provides=... Original annotation error: {annotation_error}"
        )
        raise KatanaInvalidProviderError(constructor, reason) from annotation_error

    def _return_annotation(self, constructor: Constructor) -> tuple[Any, Exception | None]:
        annotation_error: Exception | None = None
        try:
            hints = get_type_hints(constructor, include_extras=True)
        except (AttributeError, NameError, TypeError) as error:
            hints = {}
            annotation_error = error
        if "return" in hints:
            return hints["return"], None

        try:
            raw_annotation = inspect.signature(constructor).return_annotation
        except (ValueError, TypeError):
            return _MISSING_ANNOTATION, annotation_error
        if raw_annotation is inspect.Signature.empty or isinstance(raw_annotation, str):
            return _MISSING_ANNOTATION, annotation_error
        return raw_annotation, None

