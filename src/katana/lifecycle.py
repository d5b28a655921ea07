from enum import Enum


class Lifecycle(str, Enum):
    """Defines how often a provider's constructor is invoked."""

    NEW = "new"
    """A new instance is created every time the dependency is requested."""

    SINGLETON = "singleton"
    """A single instance is created and shared for the lifetime of the injector."""
