"""pytest plugin resolving ``Resolved[...]`` test parameters from an injector.

Enable it with ``pytest_plugins = ["katana.integrations.pytest_plugin"]`` and
override the ``katana_injector`` fixture to register the providers your tests
need.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterator
from typing import Any, cast

import pytest

from katana.injection import ResolvedCallableInspector, ResolvedParameter
from katana.injector import Injector

_KATANA_INJECTOR_ATTR = "_katana_injector"
_KATANA_RESOLVED_PARAMETERS_ATTR = "__katana_pytest_resolved_parameters__"
_RESOLVED_CALLABLE_INSPECTOR = ResolvedCallableInspector()


@pytest.fixture()
def katana_injector() -> Injector:
    """Create the per-test injector ``Resolved[...]`` parameters are resolved from.

    The fixture is function-scoped, so registrations are isolated between
    tests. Override it in a ``conftest.py`` to register providers.

    Returns:
        A new, empty ``Injector``.

    """
    return Injector()


@pytest.fixture(autouse=True)
def _katana_state(request: pytest.FixtureRequest, katana_injector: Injector) -> None:
    """Store the test's injector on the test node for hook access."""
    node = cast("Any", request.node)
    setattr(node, _KATANA_INJECTOR_ATTR, katana_injector)


def pytest_pycollect_makeitem(collector: Any, name: str, obj: object) -> Any | None:
    """Hide ``Resolved[...]`` parameters from pytest fixture name matching.

    Args:
        collector: Pytest collector instance.
        name: Collected object name.
        obj: Candidate object.

    Returns:
        ``None`` to continue default collection flow.

    """
    if not callable(obj):
        return None
    if not collector.istestfunction(obj, name):
        return None

    inspection = _RESOLVED_CALLABLE_INSPECTOR.inspect_callable(cast("Callable[..., Any]", obj))
    if not inspection.resolved_parameters:
        return None

    obj_as_any = cast("Any", obj)
    obj_as_any.__dict__[_KATANA_RESOLVED_PARAMETERS_ATTR] = inspection.resolved_parameters
    obj_as_any.__signature__ = inspection.public_signature
    return None


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> Iterator[None]:
    """Run the test with its ``Resolved[...]`` parameters resolved from ``katana_injector``.

    The hook is a no-op for tests without resolved parameters or without the
    plugin's state on the test item.

    Args:
        pyfuncitem: Collected pytest function item.

    Yields:
        Control back to pytest around test execution.

    """
    original_callable = cast("Callable[..., Any]", pyfuncitem.obj)
    resolved_parameters = cast(
        "tuple[ResolvedParameter, ...] | None",
        getattr(original_callable, _KATANA_RESOLVED_PARAMETERS_ATTR, None),
    )
    injector = cast("Injector | None", getattr(pyfuncitem, _KATANA_INJECTOR_ATTR, None))
    if not resolved_parameters or injector is None:
        yield
        return

    pyfuncitem.obj = _bind_resolved(original_callable, injector, resolved_parameters)
    try:
        yield
    finally:
        pyfuncitem.obj = original_callable


def _bind_resolved(
    test_function: Callable[..., Any],
    injector: Injector,
    resolved_parameters: tuple[ResolvedParameter, ...],
) -> Callable[..., Any]:
    def fill(kwargs: dict[str, Any]) -> dict[str, Any]:
        for parameter in resolved_parameters:
            if parameter.name not in kwargs:
                kwargs[parameter.name] = injector.get(parameter.key)
        return kwargs

    if inspect.iscoroutinefunction(test_function):

        @functools.wraps(test_function)
        async def run_async_test(*args: Any, **kwargs: Any) -> Any:
            return await test_function(*args, **fill(kwargs))

        return run_async_test

    @functools.wraps(test_function)
    def run_test(*args: Any, **kwargs: Any) -> Any:
        return test_function(*args, **fill(kwargs))

    return run_test
