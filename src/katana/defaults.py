from katana.lifecycle import Lifecycle

DEFAULT_LIFECYCLE = Lifecycle.NEW
"""Lifecycle used by ``Injector.register`` and ``Injector.provider`` when none is given."""

DEFAULT_USE_PARAMETER_DEFAULTS = True
"""Let parameters with default values fall back to them when no provider is registered."""
