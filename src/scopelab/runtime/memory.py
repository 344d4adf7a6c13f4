"""
Default stand-ins for the collaborators the runtime only talks to through
an interface: a size estimator and a string interning pool.
"""
from __future__ import annotations

import sys
from typing import Any, Iterable

from .values import Value, ValueStore


class InternPool:
    def __init__(self, store: ValueStore) -> None:
        self._store = store
        self._pool: dict[str, Value] = {}

    def intern(self, text: str) -> Value:
        if not isinstance(text, str):
            raise TypeError(f"only text can be interned, got {type(text).__name__}")
        value = self._pool.get(text)
        if value is None:
            value = self._store.create(text)
            self._pool[text] = value
        return value

    def get(self, text: str) -> Value | None:
        """The pooled value for `text`, without adding it to the pool."""
        return self._pool.get(text)

    def __contains__(self, text: str) -> bool:
        return text in self._pool

    def __len__(self) -> int:
        return len(self._pool)


class ObjectSizer:
    """
    Approximates the memory held by a group of values.

    Every object reachable from the group is counted once, no matter how many
    of the values share it, and text is counted once per distinct string.
    When an intern pool is attached, texts the pool maps to the same value
    count as one string.
    Environments and functions are counted as a node without descending into
    them: they belong to the scope graph, not to the value.
    """

    def __init__(
        self,
        opaque: tuple[type, ...] = (),
        pool: InternPool | None = None,
    ) -> None:
        self._opaque = opaque
        self.pool = pool

    def __call__(self, values: Iterable[Any]) -> int:
        seen_ids: set[int] = set()
        seen_text: set[object] = set()
        total = 0
        pending = list(values)
        while pending:
            item = pending.pop()
            if isinstance(item, str):
                text_key = self._text_key(item)
                if text_key in seen_text:
                    continue
                seen_text.add(text_key)
                total += sys.getsizeof(item)
                continue
            if id(item) in seen_ids:
                continue
            seen_ids.add(id(item))
            total += sys.getsizeof(item)
            if isinstance(item, self._opaque):
                continue
            pending.extend(_children(item))
        return total

    def _text_key(self, text: str) -> object:
        pooled = self.pool.get(text) if self.pool is not None else None
        if pooled is None:
            return ("text", text)
        return ("pooled", pooled.handle)


def _children(item: Any) -> list[Any]:
    if isinstance(item, Value):
        return [item.content]
    if isinstance(item, dict):
        return [*item.keys(), *item.values()]
    if isinstance(item, (list, tuple, set, frozenset)):
        return list(item)
    return []
