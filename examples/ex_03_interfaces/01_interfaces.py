"""Interfaces: resolve by capability instead of by concrete type.

Register a protocol or abstract base class as the key and a concrete
constructor (or a ready-made value) as its provider.
"""

from __future__ import annotations

import abc
from typing import Protocol

from katana import Injector


class Notifier(Protocol):
    def notify(self, message: str) -> str: ...


class EmailNotifier:
    def notify(self, message: str) -> str:
        return f"email:{message}"


class Clock(abc.ABC):
    @abc.abstractmethod
    def now(self) -> str: ...


class FixedClock(Clock):
    def now(self) -> str:
        return "2024-01-01T00:00:00"


class Reminder:
    def __init__(self, notifier: Notifier, clock: Clock) -> None:
        self.notifier = notifier
        self.clock = clock

    def send(self) -> str:
        return self.notifier.notify(self.clock.now())


def main() -> None:
    injector = Injector()
    injector.provide_singleton(Notifier, EmailNotifier)
    injector.provide_as(Clock, FixedClock())
    injector.provide_new(Reminder)

    reminder = injector.get(Reminder)
    print(f"notifier={type(reminder.notifier).__name__}")  # => notifier=EmailNotifier
    print(f"sent={reminder.send()}")  # => sent=email:2024-01-01T00:00:00
    print(f"concrete_registered={EmailNotifier in injector}")  # => concrete_registered=False


if __name__ == "__main__":
    main()
