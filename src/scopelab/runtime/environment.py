from __future__ import annotations

import itertools
import threading
from typing import Any, Iterable, Iterator, Mapping

from .bindings import MISSING, BindingTable
from .errors import InvalidOperation, InvalidParent, NameNotFound
from .values import Value

_handles = itertools.count()

# Re-parenting checks a whole chain, so it is serialised across environments.
_relink_lock = threading.RLock()


class Environment:
    """
    A mutable frame of bindings with a single parent link.

    Environments have reference semantics: every holder sees every change,
    nothing is ever copied, and equality is identity. A binding may hold the
    environment that owns it.
    """

    def __init__(
        self,
        parent: Environment | None,
        bindings: Mapping[str, Any] | None = None,
        name: str = "",
    ) -> None:
        self.handle = next(_handles)
        self.name = name
        self._bindings = BindingTable()
        self._lock = threading.RLock()
        self._parent: Environment | None = None
        self._attach_parent(parent)

        if bindings is not None:
            for key, value in bindings.items():
                self.set(key, value)

    def _attach_parent(self, parent: Environment | None) -> None:
        if parent is None:
            raise InvalidParent("only the empty environment may be parentless")
        self.parent = parent

    @property
    def parent(self) -> Environment | None:
        return self._parent

    @parent.setter
    def parent(self, parent: Environment) -> None:
        if not isinstance(parent, Environment):
            raise InvalidParent(f"parent must be an environment, got {type(parent).__name__}")
        with _relink_lock, self._lock:
            ancestor: Environment | None = parent
            while ancestor is not None:
                if ancestor is self:
                    raise InvalidParent(f"making {parent!r} the parent of {self!r} creates a cycle")
                ancestor = ancestor.parent
            self._parent = parent

    @property
    def label(self) -> str:
        return self.name or f"#{self.handle}"

    def get(self, name: str) -> Any:
        return self._bindings.get(name)

    def get_strict(self, name: str) -> Any:
        value = self._bindings.get(name)
        if value is MISSING:
            raise NameNotFound(name, where=self.label)
        return value

    def set(self, name: str, value: Any) -> None:
        with self._lock:
            self._bindings.set(name, value)

    def remove(self, name: str) -> None:
        with self._lock:
            if not self._bindings.has(name):
                raise NameNotFound(name, where=self.label)
            self._bindings.remove(name)

    def has(self, name: str) -> bool:
        return self._bindings.has(name)

    def names(self) -> set[str]:
        return self._bindings.names()

    def items(self) -> Iterator[tuple[str, Any]]:
        return self._bindings.items()

    def values(self) -> list[Any]:
        return self._bindings.values()

    def as_dict(self) -> dict[str, Any]:
        return dict(self._bindings.items())

    def __repr__(self) -> str:
        return f"<environment {self.label}>"


class _EmptyEnvironment(Environment):
    def _attach_parent(self, parent: Environment | None) -> None:
        if parent is not None:
            raise InvalidParent("the empty environment cannot have a parent")

    @property
    def parent(self) -> Environment | None:
        return None

    @parent.setter
    def parent(self, parent: Environment) -> None:
        raise InvalidParent("the empty environment cannot have a parent")

    def set(self, name: str, value: Any) -> None:
        raise InvalidOperation("cannot bind values in the empty environment")

    def remove(self, name: str) -> None:
        raise NameNotFound(name, where=self.label)


EMPTY_ENV: Environment = _EmptyEnvironment(None, name="empty")


def new_env(
    parent: Environment,
    bindings: Mapping[str, Any] | None = None,
    name: str = "",
) -> Environment:
    return Environment(parent, bindings, name)


def is_empty(env: Environment) -> bool:
    return env is EMPTY_ENV


def identical(a: object, b: object) -> bool:
    return a is b


def parents(env: Environment) -> list[Environment]:
    """Ancestors of `env`, nearest first, ending with the empty environment."""
    chain: list[Environment] = []
    ancestor = env.parent
    while ancestor is not None:
        chain.append(ancestor)
        ancestor = ancestor.parent
    return chain


def held_references(item: Any) -> Iterator[Any]:
    """Objects directly held by `item` that can lead to an environment."""
    if isinstance(item, Environment):
        if item.parent is not None:
            yield item.parent
        yield from item.values()
        return

    # closures and call frames advertise what they hold on to
    held = getattr(item, "held_environments", None)
    if callable(held):
        yield from held()
        return

    if isinstance(item, Value):
        yield item.content
    elif isinstance(item, Mapping):
        yield from item.values()
    elif isinstance(item, (list, tuple, set, frozenset)):
        yield from item


def walk_reachable(roots: Iterable[Any]) -> list[Environment]:
    """
    Every environment reachable from `roots`, in discovery order.

    Environments are tracked by handle and everything else by id, so
    self-containing environments and cyclic containers terminate.
    """
    seen: set[int] = set()
    found: list[Environment] = []
    pending = list(roots)
    pending.reverse()
    while pending:
        item = pending.pop()
        key = _traversal_key(item)
        if key is None or key in seen:
            continue
        seen.add(key)
        if isinstance(item, Environment):
            found.append(item)
        children = list(held_references(item))
        children.reverse()
        pending.extend(children)
    return found


def count_references(roots: Iterable[Any], target: Any) -> int:
    """
    How many slots reachable from `roots` hold `target`: binding slots,
    value contents and container elements alike. Nothing held only by
    `target` itself is counted.
    """
    seen: set[int] = set()
    count = 0
    pending = list(roots)
    while pending:
        item = pending.pop()
        if item is target:
            continue
        key = _traversal_key(item)
        if key is None or key in seen:
            continue
        seen.add(key)
        for child in held_references(item):
            if child is target:
                count += 1
            else:
                pending.append(child)
    return count


def _traversal_key(item: Any) -> int | None:
    if isinstance(item, Environment):
        return item.handle
    if isinstance(item, (str, int, float, bool, bytes)) or item is None:
        return None
    return -id(item) - 1
