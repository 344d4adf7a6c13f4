from __future__ import annotations

from typing import Any, Iterator

from .errors import NameNotFound


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# Returned by `BindingTable.get` for an absent name. Distinct from None, which
# is an ordinary value that can be bound.
MISSING: Any = _Missing()


def check_name(name: object) -> str:
    if not isinstance(name, str):
        raise TypeError(f"binding names must be text, got {type(name).__name__}")
    if not name:
        raise ValueError("binding names must not be empty")
    return name


class BindingTable:
    def __init__(self) -> None:
        self._key_values: dict[str, Any] = {}

    def get(self, name: str) -> Any:
        return self._key_values.get(name, MISSING)

    def get_strict(self, name: str) -> Any:
        try:
            return self._key_values[name]
        except KeyError:
            raise NameNotFound(name) from None

    def set(self, name: str, value: Any) -> None:
        self._key_values[check_name(name)] = value

    def remove(self, name: str) -> None:
        try:
            del self._key_values[name]
        except KeyError:
            raise NameNotFound(name) from None

    def has(self, name: str) -> bool:
        return name in self._key_values

    def names(self) -> set[str]:
        return set(self._key_values)

    def items(self) -> Iterator[tuple[str, Any]]:
        # insertion order, only so that tests and traces are reproducible
        return iter(list(self._key_values.items()))

    def values(self) -> list[Any]:
        return list(self._key_values.values())

    def __len__(self) -> int:
        return len(self._key_values)

    def __contains__(self, name: object) -> bool:
        return name in self._key_values
