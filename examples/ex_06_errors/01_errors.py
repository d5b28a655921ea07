"""Errors: recognize the failure categories raised by the injector.

Every error derives from ``KatanaError``. Constructor exceptions are not
wrapped; they reach the caller unchanged.
"""

from __future__ import annotations

from katana import (
    Injector,
    KatanaCyclicDependencyError,
    KatanaError,
    KatanaNoProviderError,
    KatanaNotAReferenceError,
    KatanaProviderAlreadyRegisteredError,
    Ref,
)


class Left:
    def __init__(self, right: Right) -> None:
        self.right = right


class Right:
    def __init__(self, left: Left) -> None:
        self.left = left


class Unregistered:
    pass


class Flaky:
    def __init__(self) -> None:
        msg = "backend offline"
        raise ConnectionError(msg)


def main() -> None:
    injector = Injector().provide_new(Left).provide_new(Right).provide_new(Flaky)

    try:
        injector.get(Left)
    except KatanaCyclicDependencyError as error:
        print(error)  # => Cyclic dependency detected: [Left -> Right -> Left]

    try:
        injector.get(Unregistered)
    except KatanaNoProviderError as error:
        print(error)  # => No providers registered for dependency type Unregistered

    try:
        injector.provide_singleton(Left)
    except KatanaProviderAlreadyRegisteredError as error:
        print(error)  # => Dependency Left already registered

    try:
        injector.resolve(Left)  # type: ignore[arg-type]
    except KatanaNotAReferenceError as error:
        print(f"base={isinstance(error, KatanaError)}")  # => base=True

    try:
        injector.resolve(Ref(Flaky))
    except ConnectionError as error:
        print(f"constructor_error={error}")  # => constructor_error=backend offline


if __name__ == "__main__":
    main()
