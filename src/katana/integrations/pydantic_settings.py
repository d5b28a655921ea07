"""Registration support for ``pydantic-settings`` configuration classes.

A settings class reads its values from the environment when it is
instantiated without arguments, which makes it a natural zero-argument
singleton provider. ``pydantic-settings`` is optional; the base classes are
looked up lazily so katana imports cleanly without it.
"""

from __future__ import annotations

import importlib
import warnings
from collections.abc import Callable
from functools import cache
from typing import Any

from katana.exceptions import KatanaInvalidProviderError

_PYDANTIC_V1_WARNING_PATTERN = (
    r"Core Pydantic V1 functionality isn't compatible with Python 3\.14 or greater\."
)
_SETTINGS_MODULES: tuple[str, ...] = ("pydantic_settings", "pydantic.v1")


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        with warnings.catch_warnings():
            warnings.filterwarnings(
                "ignore",
                message=_PYDANTIC_V1_WARNING_PATTERN,
                category=UserWarning,
            )
            module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


@cache
def settings_bases() -> tuple[type[Any], ...]:
    """Return the installed ``BaseSettings`` classes, without duplicates."""
    bases: list[type[Any]] = []
    for module_name in _SETTINGS_MODULES:
        candidate = _load_base_settings(module_name)
        if candidate is not None and candidate not in bases:
            bases.append(candidate)
    return tuple(bases)


def is_settings_class(candidate: object) -> bool:
    """Return true when ``candidate`` subclasses a supported settings base."""
    if not isinstance(candidate, type):
        return False
    try:
        return any(issubclass(candidate, base) for base in settings_bases())
    except TypeError:
        return False


def settings_constructor(settings_type: type[Any]) -> Callable[[], Any]:
    """Return a zero-argument constructor building ``settings_type`` from the environment.

    Raises:
        KatanaInvalidProviderError: If ``settings_type`` is not a settings class.

    """
    if not is_settings_class(settings_type):
        reason = "expected a pydantic-settings BaseSettings subclass"
        if not settings_bases():
            reason = f"{reason}; install katana[pydantic] to register settings"
        raise KatanaInvalidProviderError(settings_type, reason)

    def build_settings() -> Any:
        return settings_type()

    build_settings.__qualname__ = f"{settings_type.__qualname__}.from_environment"
    return build_settings


__all__ = ["is_settings_class", "settings_bases", "settings_constructor"]
