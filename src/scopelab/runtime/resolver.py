"""
Lexical name resolution.

Lookup follows parent links only. The call stack is never consulted here;
caller-context lookup lives in `frames.CallStack.dynamic_lookup`.
"""
from __future__ import annotations

from typing import Any

from .environment import EMPTY_ENV, Environment
from .errors import InvalidOperation, NameNotFound


def where(name: str, env: Environment) -> Environment:
    """The nearest environment at or above `env` that binds `name`."""
    current = env
    while current is not EMPTY_ENV:
        if current.has(name):
            return current
        assert current.parent is not None
        current = current.parent
    raise NameNotFound(name, where=env.label)


def where_recursive(name: str, env: Environment, start: Environment | None = None) -> Environment:
    """Same search as `where`, written as the textbook recursion.

    Depth is bounded by the interpreter's recursion limit, so `where` is the
    one used internally.
    """
    start = start or env
    if env is EMPTY_ENV:
        raise NameNotFound(name, where=start.label)
    if env.has(name):
        return env
    assert env.parent is not None
    return where_recursive(name, env.parent, start)


def lookup(name: str, env: Environment) -> Any:
    return where(name, env).get_strict(name)


def lookup_function(name: str, env: Environment) -> Any:
    """Like `lookup`, but bindings that are not callable are skipped."""
    current = env
    while current is not EMPTY_ENV:
        value = current.get(name)
        if current.has(name) and callable(value):
            return value
        assert current.parent is not None
        current = current.parent
    raise NameNotFound(name, where=env.label)


def exists(name: str, env: Environment, inherits: bool = True) -> bool:
    if not inherits:
        return env.has(name)
    try:
        where(name, env)
    except NameNotFound:
        return False
    return True


def rebind(name: str, value: Any, env: Environment) -> Environment:
    """Overwrite the nearest existing binding; never creates one."""
    target = where(name, env)
    target.set(name, value)
    return target


def assign_nearest(
    name: str,
    value: Any,
    env: Environment,
    global_env: Environment,
) -> Environment:
    """
    Super-assignment: update `name` in the nearest ancestor of `env` that
    already binds it, or create it in `global_env` when none does. `env`
    itself is skipped.
    """
    if env.parent is None:
        raise InvalidOperation("the empty environment has no enclosing scope")
    try:
        target = where(name, env.parent)
    except NameNotFound:
        target = global_env
    target.set(name, value)
    return target
