from __future__ import annotations

import itertools
from typing import Any, Iterable, Protocol


class SizeEstimator(Protocol):
    def __call__(self, values: Iterable[Any]) -> int: ...


class Value:
    """A unit of data with an identity that no name owns.

    The handle is allocated once and never reused, so two values holding
    equal content are still distinguishable.
    """

    __slots__ = ("handle", "content")

    def __init__(self, handle: int, content: Any) -> None:
        self.handle = handle
        self.content = content

    def __repr__(self) -> str:
        return f"<value#{self.handle} {self.content!r}>"


class ValueStore:
    def __init__(self, sizer: SizeEstimator) -> None:
        self._handles = itertools.count(1)
        self._sizer = sizer

    def create(self, content: Any) -> Value:
        return Value(next(self._handles), content)

    def identity_of(self, value: Value) -> int:
        return value.handle

    def size_of(self, values: Iterable[Value]) -> int:
        # all values go to the estimator together so shared parts count once
        return self._sizer(list(values))
