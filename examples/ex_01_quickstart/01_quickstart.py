"""Quickstart: constructor wiring from type hints.

Register a ready-made config value and the constructors that need it, then
resolve only the top-level service into a ``Ref`` slot.
"""

from __future__ import annotations

from dataclasses import dataclass

from katana import Injector, Ref


@dataclass(frozen=True)
class Config:
    url: str
    ttl: int


class Cache:
    def __init__(self, config: Config) -> None:
        self.ttl = config.ttl


class Datastore:
    def __init__(self, config: Config, cache: Cache) -> None:
        self.url = config.url
        self.cache = cache


class AccountService:
    def __init__(self, datastore: Datastore) -> None:
        self.datastore = datastore


def main() -> None:
    injector = (
        Injector()
        .provide(Config(url="https://x/db", ttl=20000))
        .provide_new(Cache)
        .provide_new(Datastore)
        .provide_singleton(AccountService)
    )

    service = Ref(AccountService)
    injector.resolve(service)

    print(f"url={service.value.datastore.url}")  # => url=https://x/db
    print(f"ttl={service.value.datastore.cache.ttl}")  # => ttl=20000

    chain = (
        f"{type(service.value).__name__}"
        f">{type(service.value.datastore).__name__}"
        f">{type(service.value.datastore.cache).__name__}"
    )
    print(f"chain={chain}")  # => chain=AccountService>Datastore>Cache


if __name__ == "__main__":
    main()
