from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar, overload

from typing_extensions import Self, is_protocol

from katana.defaults import DEFAULT_LIFECYCLE, DEFAULT_USE_PARAMETER_DEFAULTS
from katana.exceptions import (
    KatanaInvalidProviderError,
    KatanaNilReferenceError,
    KatanaNotAReferenceError,
    KatanaNotCallableError,
    describe_key,
)
from katana.injection import Injected
from katana.instances import MISSING, InstanceCache
from katana.integrations.pydantic_settings import settings_constructor
from katana.lifecycle import Lifecycle
from katana.providers import (
    Constructor,
    DependencyKey,
    ProviderDependenciesExtractor,
    ProviderDependency,
    ProviderEntry,
    ProviderRegistry,
    ProviderReturnTypeExtractor,
    build_call_arguments,
)
from katana.references import Ref
from katana.trace import ResolutionTrace

T = TypeVar("T")
C = TypeVar("C", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


class Injector:
    """Register constructors for dependency keys and resolve them recursively.

    Each constructor declares its own dependencies as annotated parameters.
    Resolving a key builds those dependencies first (recursively, following
    the same rules), then calls the constructor with them. ``NEW`` providers
    run on every resolution; ``SINGLETON`` providers run at most once and their
    result is cached.

    An injector is not safe for concurrent use. Take a ``clone()`` per unit of
    concurrent work (for example per request) and register request-specific
    values on the clone only.

    Example:
        injector = Injector()
        injector.provide(Config(url="https://x/db", ttl=20000))
        injector.provide_new(Cache)  # Cache.__init__(self, config: Config)
        injector.provide_singleton(AccountService)

        service = Ref(AccountService)
        injector.resolve(service)

    """

    __slots__ = (
        "_default_lifecycle",
        "_dependencies_extractor",
        "_instances",
        "_providers",
        "_return_type_extractor",
        "_trace",
        "_use_parameter_defaults",
    )

    def __init__(
        self,
        *,
        default_lifecycle: Lifecycle = DEFAULT_LIFECYCLE,
        use_parameter_defaults: bool = DEFAULT_USE_PARAMETER_DEFAULTS,
    ) -> None:
        """Initialize an empty injector.

        Args:
            default_lifecycle: Lifecycle applied by ``register`` and ``provider``
                when none is passed.
            use_parameter_defaults: When true, a constructor parameter that has
                a default value keeps it if no provider exists for its key.

        """
        self._default_lifecycle = default_lifecycle
        self._use_parameter_defaults = use_parameter_defaults

        self._providers = ProviderRegistry()
        self._instances = InstanceCache()
        self._trace = ResolutionTrace()

        self._dependencies_extractor = ProviderDependenciesExtractor()
        self._return_type_extractor = ProviderReturnTypeExtractor()

    # Registration

    def register(
        self,
        key: DependencyKey,
        constructor: Constructor | None = None,
        *,
        lifecycle: Lifecycle | None = None,
    ) -> Self:
        """Register ``constructor`` as the provider of ``key``.

        Args:
            key: The dependency key callers resolve. Use an interface or
                protocol here to resolve by capability instead of by the
                concrete constructed type.
            constructor: A callable whose annotated parameters are resolved as
                its dependencies. Defaults to ``key`` itself when ``key`` is a
                concrete class.
            lifecycle: ``Lifecycle.NEW`` or ``Lifecycle.SINGLETON``. Defaults to
                the injector's ``default_lifecycle``.

        Returns:
            The injector, so registrations can be chained.

        Raises:
            KatanaInvalidProviderError: If the constructor does not satisfy the
                provider contract.
            KatanaProviderAlreadyRegisteredError: If ``key`` already has a provider.

        """
        self._ensure_hashable(key)
        if constructor is None:
            constructor = self._concrete_constructor(key)
        self._return_type_extractor.validate(constructor)
        self._ensure_implements(key, constructor)

        self._providers.register(
            ProviderEntry(
                key=key,
                lifecycle=lifecycle if lifecycle is not None else self._default_lifecycle,
                constructor=constructor,
                dependencies=self._dependencies_extractor.extract(constructor),
            ),
        )
        return self

    def provide_new(self, key: DependencyKey, constructor: Constructor | None = None) -> Self:
        """Register a provider invoked on every resolution of ``key``."""
        return self.register(key, constructor, lifecycle=Lifecycle.NEW)

    def provide_singleton(
        self,
        key: DependencyKey,
        constructor: Constructor | None = None,
    ) -> Self:
        """Register a provider invoked at most once; its result is reused afterwards."""
        return self.register(key, constructor, lifecycle=Lifecycle.SINGLETON)

    def provide(self, *values: Any) -> Self:
        """Register ready-made values as singletons keyed by their own type."""
        for value in values:
            self._register_value(type(value), value)
        return self

    def provide_as(self, interface: DependencyKey, value: Any) -> Self:
        """Register a ready-made value as the singleton for ``interface``.

        Raises:
            KatanaInvalidProviderError: If ``interface`` is a class (other than
                a protocol) and ``value`` is not an instance of it.

        """
        self._ensure_hashable(interface)
        if _is_plain_class(interface) and not _safe_check(isinstance, value, interface):
            raise KatanaInvalidProviderError(
                value,
                f"value of type {type(value).__qualname__} is not an instance of "
                f"{describe_key(interface)}",
            )
        self._register_value(interface, value)
        return self

    def provide_settings(self, *settings_types: type[Any]) -> Self:
        """Register ``pydantic-settings`` classes as singletons read from the environment."""
        for settings_type in settings_types:
            self.register(
                settings_type,
                settings_constructor(settings_type),
                lifecycle=Lifecycle.SINGLETON,
            )
        return self

    @overload
    def provider(self, constructor: C, /) -> C: ...

    @overload
    def provider(
        self,
        *,
        provides: DependencyKey | None = None,
        lifecycle: Lifecycle | None = None,
    ) -> Callable[[C], C]: ...

    def provider(
        self,
        constructor: C | None = None,
        /,
        *,
        provides: DependencyKey | None = None,
        lifecycle: Lifecycle | None = None,
    ) -> C | Callable[[C], C]:
        """Register a constructor with a decorator.

        The key is ``provides`` when given, otherwise the decorated class
        itself or the decorated function's return annotation.

        Examples:
            @injector.provider
            def make_cache(config: Config) -> Cache:
                return Cache(config.ttl)

            @injector.provider(provides=Repository, lifecycle=Lifecycle.SINGLETON)
            class SqlRepository(Repository): ...

        """

        def decorator(decorated: C) -> C:
            key = (
                provides
                if provides is not None
                else self._return_type_extractor.extract_provided_key(decorated)
            )
            self.register(key, decorated, lifecycle=lifecycle)
            return decorated

        if constructor is not None:
            return decorator(constructor)
        return decorator

    # Resolution

    def resolve(self, *refs: Ref[Any]) -> None:
        """Resolve each reference, in order, writing the instance into ``ref.value``.

        Resolution stops at the first failing reference; references resolved
        before it keep their values.

        Raises:
            KatanaNotAReferenceError: If an argument is not a ``Ref``.
            KatanaNilReferenceError: If a ``Ref`` carries no key.
            KatanaNoProviderError: If a key in the dependency graph has no provider.
            KatanaCyclicDependencyError: If a key transitively depends on itself.

        """
        for ref in refs:
            if not isinstance(ref, Ref):
                raise KatanaNotAReferenceError(ref)
            if ref.key is None:
                raise KatanaNilReferenceError(ref)

            with self._resolution():
                ref.value = self._resolve_key(ref.key)

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: Any) -> Any: ...

    def get(self, key: Any) -> Any:
        """Resolve and return a single instance of ``key``."""
        ref: Ref[Any] = Ref(key)
        self.resolve(ref)
        return ref.value

    def inject(self, func: Callable[..., T]) -> Injected[T]:
        """Resolve every annotated parameter of ``func`` and bind them to it.

        Dependencies are resolved once, now; the returned callable reuses them
        on every call and returns whatever ``func`` returns. Parameters without
        an annotation (such as ``self`` when the result is used as a method)
        and parameters whose default is kept are passed at call time.

        Raises:
            KatanaNotCallableError: If ``func`` is not callable.

        """
        if not callable(func):
            raise KatanaNotCallableError(func)

        dependencies = self._dependencies_extractor.extract(func, require_annotations=False)
        with self._resolution():
            arguments = self._resolve_arguments(dependencies)
        return Injected(func, dependencies, arguments)

    def clone(self) -> Injector:
        """Return an injector sharing this one's providers and cached singletons.

        Registrations made afterwards on either injector are invisible to the
        other. The clone starts with its own empty resolution trace.
        """
        cloned = Injector(
            default_lifecycle=self._default_lifecycle,
            use_parameter_defaults=self._use_parameter_defaults,
        )
        cloned._providers = self._providers.copy()
        cloned._instances = self._instances.copy()
        logger.debug(
            "Cloned injector with %d providers and %d cached singletons",
            len(cloned._providers),
            len(cloned._instances),
        )
        return cloned

    def __contains__(self, key: DependencyKey) -> bool:
        return key in self._providers

    def __repr__(self) -> str:
        return (
            f"Injector(providers={len(self._providers)}, "
            f"cached_singletons={len(self._instances)})"
        )

    @contextmanager
    def _resolution(self) -> Iterator[None]:
        # Only the outermost call clears the trace, so providers that call back
        # into the injector keep cycle detection across the callback.
        is_outermost = self._trace.empty
        try:
            yield
        finally:
            if is_outermost:
                self._trace.reset()

    def _resolve_key(self, key: DependencyKey) -> Any:
        cached = self._instances.get(key)
        if cached is not MISSING:
            return cached

        entry = self._providers.lookup(key)
        self._trace.push(key)
        try:
            arguments = self._resolve_arguments(entry.dependencies)
            args, kwargs = build_call_arguments(entry.dependencies, arguments)
            logger.debug("Invoking %s provider for %s", entry.lifecycle.value, describe_key(key))
            instance = entry.constructor(*args, **kwargs)
        finally:
            self._trace.pop()

        if entry.lifecycle is Lifecycle.SINGLETON:
            self._instances.put(key, instance)
        return instance

    def _resolve_arguments(self, dependencies: tuple[ProviderDependency, ...]) -> dict[str, Any]:
        arguments: dict[str, Any] = {}
        for dependency in dependencies:
            if self._falls_back_to_default(dependency):
                continue
            arguments[dependency.parameter.name] = self._resolve_key(dependency.key)
        return arguments

    def _falls_back_to_default(self, dependency: ProviderDependency) -> bool:
        return (
            self._use_parameter_defaults
            and dependency.has_default
            and dependency.key not in self._providers
            and dependency.key not in self._instances
        )

    def _register_value(self, key: DependencyKey, value: Any) -> None:
        self._ensure_hashable(key)

        def provide_value() -> Any:
            return value

        provide_value.__qualname__ = f"provide_value[{describe_key(key)}]"
        self._providers.register(
            ProviderEntry(key=key, lifecycle=Lifecycle.SINGLETON, constructor=provide_value),
        )

    def _concrete_constructor(self, key: DependencyKey) -> Constructor:
        if not inspect.isclass(key):
            raise KatanaInvalidProviderError(
                key,
                "a constructor is required when the dependency key is not a class",
            )
        if inspect.isabstract(key) or is_protocol(key):
            raise KatanaInvalidProviderError(
                key,
                "abstract classes and protocols need an explicit constructor",
            )
        return key

    def _ensure_implements(self, key: DependencyKey, constructor: Constructor) -> None:
        if (
            _is_plain_class(key)
            and inspect.isclass(constructor)
            and not _safe_check(issubclass, constructor, key)
        ):
            raise KatanaInvalidProviderError(
                constructor,
                f"{constructor.__qualname__} is not a subclass of {describe_key(key)}",
            )

    def _ensure_hashable(self, key: DependencyKey) -> None:
        try:
            hash(key)
        except TypeError as error:
            raise KatanaInvalidProviderError(key, "dependency keys must be hashable") from error


def _is_plain_class(key: DependencyKey) -> bool:
    return inspect.isclass(key) and not is_protocol(key)


def _safe_check(check: Callable[[Any, Any], bool], obj: Any, key: DependencyKey) -> bool:
    # Parameterized generics report themselves as classes on some Python versions
    # but reject isinstance/issubclass checks.
    try:
        return check(obj, key)
    except TypeError:
        return True
