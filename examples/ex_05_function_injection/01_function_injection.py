"""Function injection: bind resolved dependencies to a plain function.

``Injector.inject`` resolves the annotated parameters once and returns a
callable that accepts only the remaining ones, by position or by keyword.
"""

from __future__ import annotations

import inspect

from katana import Injector


class Ledger:
    def __init__(self) -> None:
        self.entries: list[str] = []


def record(ledger: Ledger, entry: str = "opened") -> int:
    ledger.entries.append(entry)
    return len(ledger.entries)


def main() -> None:
    injector = Injector().provide_new(Ledger)

    injected_record = injector.inject(record)
    print(f"signature={inspect.signature(injected_record)}")  # => signature=(entry: 'str' = 'opened') -> 'int'

    injected_record()
    injected_record("deposit")
    print(f"entries={injected_record(entry='withdrawal')}")  # => entries=3


if __name__ == "__main__":
    main()
