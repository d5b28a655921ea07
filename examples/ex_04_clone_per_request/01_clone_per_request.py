"""Clone per request: share application singletons, isolate request values.

Each request takes a clone of the application injector and registers its own
values there. The application injector never sees them.
"""

from __future__ import annotations

from dataclasses import dataclass

from katana import Injector


class Settings:
    def __init__(self) -> None:
        self.greeting = "hello"


@dataclass(frozen=True)
class CurrentUser:
    name: str


class Greeter:
    def __init__(self, settings: Settings, user: CurrentUser) -> None:
        self.settings = settings
        self.user = user

    def greet(self) -> str:
        return f"{self.settings.greeting} {self.user.name}"


def handle(app: Injector, user_name: str) -> Greeter:
    request = app.clone()
    request.provide(CurrentUser(name=user_name))
    return request.get(Greeter)


def main() -> None:
    app = Injector().provide_singleton(Settings).provide_new(Greeter)
    settings = app.get(Settings)

    alice = handle(app, "alice")
    bob = handle(app, "bob")

    print(alice.greet())  # => hello alice
    print(bob.greet())  # => hello bob
    print(f"shared_settings={alice.settings is bob.settings is settings}")  # => shared_settings=True
    print(f"app_has_user={CurrentUser in app}")  # => app_has_user=False


if __name__ == "__main__":
    main()
