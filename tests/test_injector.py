import abc
from dataclasses import dataclass
from typing import Annotated, NewType, Protocol

import pytest

from katana import (
    Injector,
    KatanaInvalidProviderError,
    KatanaNilReferenceError,
    KatanaNoProviderError,
    KatanaNotAReferenceError,
    KatanaProviderAlreadyRegisteredError,
    Lifecycle,
    Ref,
)


class ServiceA:
    pass


class ServiceB:
    def __init__(self, service_a: ServiceA) -> None:
        self.service_a = service_a


class ServiceC:
    def __init__(self, service_a: ServiceA, service_b: ServiceB) -> None:
        self.service_a = service_a
        self.service_b = service_b


class Greeter(Protocol):
    def greet(self) -> str: ...


class EnglishGreeter:
    def greet(self) -> str:
        return "hello"


class Repository(abc.ABC):
    @abc.abstractmethod
    def find(self, key: str) -> str: ...


class MemoryRepository(Repository):
    def find(self, key: str) -> str:
        return f"memory:{key}"


UserId = NewType("UserId", int)


def test_register_returns_injector_for_chaining(injector: Injector) -> None:
    result = injector.provide_new(ServiceA).provide_new(ServiceB)

    assert result is injector
    assert ServiceA in injector
    assert ServiceB in injector


def test_new_provider_builds_distinct_instances(injector: Injector) -> None:
    injector.provide_new(ServiceA)

    first, second = Ref(ServiceA), Ref(ServiceA)
    injector.resolve(first, second)

    assert isinstance(first.value, ServiceA)
    assert first.value is not second.value


def test_singleton_provider_is_invoked_once() -> None:
    calls: list[ServiceA] = []

    def make_a() -> ServiceA:
        instance = ServiceA()
        calls.append(instance)
        return instance

    injector = Injector()
    injector.provide_singleton(ServiceA, make_a)

    first = injector.get(ServiceA)
    second = injector.get(ServiceA)

    assert first is second
    assert calls == [first]


def test_default_lifecycle_applies_to_register(injector_singleton: Injector) -> None:
    injector_singleton.register(ServiceA)

    assert injector_singleton.get(ServiceA) is injector_singleton.get(ServiceA)


def test_explicit_lifecycle_overrides_default(injector_singleton: Injector) -> None:
    injector_singleton.register(ServiceA, lifecycle=Lifecycle.NEW)

    assert injector_singleton.get(ServiceA) is not injector_singleton.get(ServiceA)


def test_constructor_dependencies_are_resolved_recursively(injector: Injector) -> None:
    injector.provide_singleton(ServiceA).provide_new(ServiceB).provide_new(ServiceC)

    service_c = injector.get(ServiceC)

    assert isinstance(service_c.service_b, ServiceB)
    assert service_c.service_a is service_c.service_b.service_a


def test_new_dependencies_are_rebuilt_per_parameter(injector: Injector) -> None:
    injector.provide_new(ServiceA).provide_new(ServiceB).provide_new(ServiceC)

    service_c = injector.get(ServiceC)

    assert service_c.service_a is not service_c.service_b.service_a


def test_function_constructor_receives_resolved_arguments(injector: Injector) -> None:
    def make_b(service_a: ServiceA) -> ServiceB:
        return ServiceB(service_a)

    injector.provide_singleton(ServiceA).provide_new(ServiceB, make_b)

    assert injector.get(ServiceB).service_a is injector.get(ServiceA)


def test_protocol_key_resolves_to_registered_implementation(injector: Injector) -> None:
    injector.provide_singleton(Greeter, EnglishGreeter)

    greeter = injector.get(Greeter)

    assert isinstance(greeter, EnglishGreeter)
    assert greeter.greet() == "hello"


def test_abstract_key_resolves_to_subclass(injector: Injector) -> None:
    injector.provide_new(Repository, MemoryRepository)

    assert injector.get(Repository).find("x") == "memory:x"


def test_newtype_and_annotated_keys_are_distinct(injector: Injector) -> None:
    ReadOnly = Annotated[ServiceA, "read-only"]
    read_only = ServiceA()

    injector.provide_new(ServiceA)
    injector.provide_as(ReadOnly, read_only)
    injector.provide_new(UserId, lambda: UserId(42))

    assert injector.get(ReadOnly) is read_only
    assert injector.get(ServiceA) is not read_only
    assert injector.get(UserId) == 42


def test_provide_registers_values_by_type(injector: Injector) -> None:
    service_a = ServiceA()
    greeter = EnglishGreeter()

    injector.provide(service_a, greeter)

    assert injector.get(ServiceA) is service_a
    assert injector.get(EnglishGreeter) is greeter


def test_provide_as_registers_value_under_interface(injector: Injector) -> None:
    repository = MemoryRepository()

    injector.provide_as(Repository, repository)

    assert injector.get(Repository) is repository
    assert MemoryRepository not in injector


def test_provide_as_rejects_value_of_wrong_type(injector: Injector) -> None:
    with pytest.raises(KatanaInvalidProviderError, match="not an instance of Repository"):
        injector.provide_as(Repository, ServiceA())


def test_provide_as_accepts_any_value_for_protocol(injector: Injector) -> None:
    greeter = EnglishGreeter()

    injector.provide_as(Greeter, greeter)

    assert injector.get(Greeter) is greeter


def test_provider_decorator_infers_key(injector: Injector) -> None:
    injector.provide_singleton(ServiceA)

    @injector.provider
    def make_b(service_a: ServiceA) -> ServiceB:
        return ServiceB(service_a)

    assert isinstance(injector.get(ServiceB), ServiceB)
    assert make_b(ServiceA()).service_a is not None


def test_provider_decorator_with_options(injector: Injector) -> None:
    @injector.provider(provides=Repository, lifecycle=Lifecycle.SINGLETON)
    class CachedRepository(Repository):
        def find(self, key: str) -> str:
            return f"cached:{key}"

    assert injector.get(Repository) is injector.get(Repository)
    assert isinstance(injector.get(Repository), CachedRepository)


def test_parameter_default_is_kept_without_provider(injector: Injector) -> None:
    @dataclass
    class Settings:
        service_a: ServiceA
        retries: int = 3

    injector.provide_new(ServiceA).provide_new(Settings)

    assert injector.get(Settings).retries == 3


def test_registered_provider_wins_over_parameter_default(injector: Injector) -> None:
    @dataclass
    class Settings:
        retries: int = 3

    injector.provide_as(int, 5).provide_new(Settings)

    assert injector.get(Settings).retries == 5


def test_parameter_defaults_can_be_disabled() -> None:
    @dataclass
    class Settings:
        retries: int = 3

    injector = Injector(use_parameter_defaults=False)
    injector.provide_new(Settings)

    with pytest.raises(KatanaNoProviderError):
        injector.get(Settings)


def test_batch_resolve_fills_every_ref(injector: Injector) -> None:
    injector.provide_singleton(ServiceA).provide_new(ServiceB)

    service_a, service_b = Ref(ServiceA), Ref(ServiceB)
    injector.resolve(service_a, service_b)

    assert service_b.value.service_a is service_a.value


def test_batch_resolve_stops_at_first_failure(injector: Injector) -> None:
    injector.provide_new(ServiceA)

    service_a, missing, after = Ref(ServiceA), Ref(ServiceB), Ref(ServiceA)
    with pytest.raises(KatanaNoProviderError):
        injector.resolve(service_a, missing, after)

    assert service_a.is_set
    assert not missing.is_set
    assert not after.is_set


def test_resolve_rejects_non_reference(injector: Injector) -> None:
    injector.provide_new(ServiceA)

    with pytest.raises(KatanaNotAReferenceError) as exc_info:
        injector.resolve(ServiceA)  # type: ignore[arg-type]

    assert exc_info.value.target is ServiceA


def test_resolve_rejects_nil_reference(injector: Injector) -> None:
    nil: Ref[ServiceA] = Ref()

    with pytest.raises(KatanaNilReferenceError):
        injector.resolve(nil)


def test_missing_provider_names_the_key(injector: Injector) -> None:
    with pytest.raises(KatanaNoProviderError) as exc_info:
        injector.get(ServiceA)

    assert exc_info.value.key is ServiceA
    assert str(exc_info.value) == "No providers registered for dependency type ServiceA"


def test_missing_transitive_provider_is_reported(injector: Injector) -> None:
    injector.provide_new(ServiceB)

    with pytest.raises(KatanaNoProviderError) as exc_info:
        injector.get(ServiceB)

    assert exc_info.value.key is ServiceA


def test_second_registration_is_rejected(injector: Injector) -> None:
    injector.provide_new(ServiceA)

    with pytest.raises(KatanaProviderAlreadyRegisteredError):
        injector.provide_singleton(ServiceA)


def test_value_registration_conflicts_with_constructor(injector: Injector) -> None:
    injector.provide_new(ServiceA)

    with pytest.raises(KatanaProviderAlreadyRegisteredError):
        injector.provide(ServiceA())


@pytest.mark.parametrize("key", [Repository, Greeter])
def test_abstract_key_requires_constructor(injector: Injector, key: type) -> None:
    with pytest.raises(KatanaInvalidProviderError, match="explicit constructor"):
        injector.provide_new(key)


def test_non_class_key_requires_constructor(injector: Injector) -> None:
    with pytest.raises(KatanaInvalidProviderError, match="constructor is required"):
        injector.provide_new(UserId)


def test_unhashable_key_is_invalid(injector: Injector) -> None:
    with pytest.raises(KatanaInvalidProviderError, match="hashable"):
        injector.provide_new([ServiceA], ServiceA)  # type: ignore[arg-type]


def test_constructor_must_implement_class_key(injector: Injector) -> None:
    with pytest.raises(KatanaInvalidProviderError, match="not a subclass of Repository"):
        injector.provide_new(Repository, ServiceA)


def test_invalid_constructor_is_not_registered(injector: Injector) -> None:
    async def make_a() -> ServiceA:
        return ServiceA()

    with pytest.raises(KatanaInvalidProviderError):
        injector.provide_new(ServiceA, make_a)

    assert ServiceA not in injector


def test_constructor_exception_propagates_unchanged(injector: Injector) -> None:
    error = RuntimeError("database unavailable")

    def make_a() -> ServiceA:
        raise error

    injector.provide_singleton(ServiceA, make_a).provide_new(ServiceB)

    with pytest.raises(RuntimeError) as exc_info:
        injector.get(ServiceB)

    assert exc_info.value is error


def test_failed_singleton_is_retried_on_next_resolution(injector: Injector) -> None:
    attempts: list[int] = []

    def make_a() -> ServiceA:
        attempts.append(1)
        if len(attempts) == 1:
            msg = "first attempt fails"
            raise RuntimeError(msg)
        return ServiceA()

    injector.provide_singleton(ServiceA, make_a)

    with pytest.raises(RuntimeError):
        injector.get(ServiceA)
    assert isinstance(injector.get(ServiceA), ServiceA)
    assert len(attempts) == 2


def test_provider_may_resolve_through_injector() -> None:
    injector = Injector()

    def make_b() -> ServiceB:
        return ServiceB(injector.get(ServiceA))

    injector.provide_singleton(ServiceA).provide_new(ServiceB, make_b)

    assert injector.get(ServiceB).service_a is injector.get(ServiceA)


def test_repr_reports_counts(injector: Injector) -> None:
    injector.provide_singleton(ServiceA).provide_new(ServiceB)
    injector.get(ServiceA)

    assert repr(injector) == "Injector(providers=2, cached_singletons=1)"
