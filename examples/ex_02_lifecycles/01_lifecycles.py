"""Lifecycles: ``NEW`` builds on every resolution, ``SINGLETON`` builds once.

A singleton keeps the dependencies it was built with, even when those are
``NEW`` providers that return fresh instances when resolved directly.
"""

from __future__ import annotations

from katana import Injector, Lifecycle, Ref


class Connection:
    pass


class Repository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection


def main() -> None:
    injector = Injector()
    injector.register(Connection, lifecycle=Lifecycle.NEW)
    injector.register(Repository, lifecycle=Lifecycle.SINGLETON)

    first, second = Ref(Connection), Ref(Connection)
    injector.resolve(first, second)
    print(f"new_is_distinct={first.value is not second.value}")  # => new_is_distinct=True

    repository = injector.get(Repository)
    print(f"singleton_is_shared={injector.get(Repository) is repository}")  # => singleton_is_shared=True

    same_connection = injector.get(Repository).connection is repository.connection
    print(f"singleton_keeps_dependencies={same_connection}")  # => singleton_keeps_dependencies=True

    defaults = Injector(default_lifecycle=Lifecycle.SINGLETON)
    defaults.register(Connection)
    print(f"default_singleton={defaults.get(Connection) is defaults.get(Connection)}")  # => default_singleton=True


if __name__ == "__main__":
    main()
