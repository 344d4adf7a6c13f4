from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from ..frontend.symbols import parse_symbol
from .closures import Builtin, Closure, Code, Invocation, invoke, make_closure
from .core import Bindable, RuntimeContext
from .environment import EMPTY_ENV, Environment, count_references, parents, walk_reachable
from .errors import InvalidOperation, NameNotFound
from .frames import CallFrame
from .memory import InternPool, ObjectSizer
from .resolver import lookup
from .stdlib import install_stdlib
from .values import SizeEstimator, Value, ValueStore


class _Current:
    def __repr__(self) -> str:
        return "CURRENT"


# Default for parameters meaning "the active environment at call time".
CURRENT: Any = _Current()


@dataclass
class Package:
    name: str
    namespace: Environment
    exports: frozenset[str]
    attached: Environment | None = None

    def define_function(
        self,
        name: str,
        code: Code,
        params: Sequence[str] = (),
    ) -> Closure:
        closure = make_closure(code, self.namespace, params, name=name)
        self.namespace.set(name, closure)
        return closure


class Runtime:
    """
    The scope graph of one interpreter session.

    The search path runs global -> attached packages -> base -> empty, and
    every environment created through this object is tracked so that
    unreachable ones can be reported.
    """

    def __init__(
        self,
        context: RuntimeContext | None = None,
        sizer: SizeEstimator | None = None,
        interner: Callable[[ValueStore], InternPool] = InternPool,
    ) -> None:
        self.context = context or RuntimeContext()
        self.empty_env = EMPTY_ENV
        self.base_env = self.context.track(Environment(EMPTY_ENV, name="base"))
        install_stdlib(self.base_env)
        self.global_env = self.context.track(Environment(self.base_env, name="global"))
        self.context.stack.top_level_env = self.global_env

        sizer = sizer or ObjectSizer(opaque=(Environment, Closure, Builtin))
        self.store = ValueStore(sizer)
        self.interner = interner(self.store)
        if isinstance(sizer, ObjectSizer) and sizer.pool is None:
            sizer.pool = self.interner
        self.packages: dict[str, Package] = {}

    # ===== Environments =====
    def current_env(self) -> Environment:
        return self.context.current_env()

    def new_env(
        self,
        parent: Environment = CURRENT,
        bindings: Mapping[str, Bindable] | None = None,
        name: str = "",
    ) -> Environment:
        if parent is CURRENT:
            parent = self.current_env()
        env = Environment(parent, bindings, name)
        self.context.writer.debugln(f"new {env!r} (parent {parent!r})")
        return self.context.track(env)

    def search_path(self) -> list[Environment]:
        return [self.global_env, *parents(self.global_env)[:-1]]

    # ===== Functions =====
    def make_closure(
        self,
        code: Code,
        params: Sequence[str] = (),
        enclosing: Environment = CURRENT,
        name: str = "",
    ) -> Closure:
        if enclosing is CURRENT:
            enclosing = self.current_env()
        return make_closure(code, enclosing, params, name=name)

    def invoke(self, function: Bindable, args: Sequence[Bindable] = ()) -> Invocation:
        return invoke(function, args, self.context)

    def call(self, function: Bindable, *args: Bindable) -> Bindable:
        return invoke(function, args, self.context).value

    # ===== Call frames =====
    def current_frame(self) -> CallFrame | None:
        return self.context.stack.current_frame()

    def caller_env(self, of: CallFrame | None = None) -> Environment:
        return self.context.stack.caller_env(of)

    def dynamic_lookup(self, name: str) -> Bindable:
        return self.context.stack.dynamic_lookup(name)

    # ===== Packages =====
    def define_package(
        self,
        name: str,
        bindings: Mapping[str, Bindable] | None = None,
        exports: Iterable[str] | None = None,
    ) -> Package:
        if name in self.packages:
            raise InvalidOperation(f"package {name!r} is already loaded")
        namespace = self.context.track(Environment(self.base_env, bindings, name=f"namespace:{name}"))
        package = Package(
            name=name,
            namespace=namespace,
            exports=frozenset(exports if exports is not None else namespace.names()),
        )
        self.packages[name] = package
        return package

    def attach(self, name: str) -> Environment:
        package = self._package(name)
        if package.attached is not None:
            raise InvalidOperation(f"package {name!r} is already attached")

        missing = sorted(package.exports - package.namespace.names())
        if missing:
            raise NameNotFound(missing[0], where=package.namespace.label)
        exported = {key: package.namespace.get_strict(key) for key in sorted(package.exports)}

        below = self.global_env.parent
        if below is None:
            raise InvalidOperation("the global environment has no parent to attach below")
        attached = Environment(below, exported, name=f"package:{name}")
        self.global_env.parent = attached
        package.attached = self.context.track(attached)
        self.context.writer.debugln(f"attached {attached!r}")
        return attached

    def detach(self, name: str) -> None:
        package = self._package(name)
        attached = package.attached
        if attached is None:
            raise InvalidOperation(f"package {name!r} is not attached")

        child = self.global_env
        while child.parent is not attached:
            if child.parent is None:
                raise InvalidOperation(f"{attached!r} is no longer on the search path")
            child = child.parent
        if attached.parent is None:
            raise InvalidOperation(f"{attached!r} has lost its parent")
        child.parent = attached.parent
        package.attached = None
        self.context.writer.debugln(f"detached {attached!r}")

    def lookup_symbol(self, text: str, env: Environment = CURRENT) -> Bindable:
        symbol = parse_symbol(text)
        if symbol.namespace is None:
            return lookup(symbol.name, self.current_env() if env is CURRENT else env)

        package = self._package(symbol.namespace)
        if not symbol.internal and symbol.name not in package.exports:
            raise NameNotFound(symbol.name, where=f"exports of {symbol.namespace}")
        return package.namespace.get_strict(symbol.name)

    def _package(self, name: str) -> Package:
        try:
            return self.packages[name]
        except KeyError:
            raise NameNotFound(name, where="the package library") from None

    # ===== Reachability =====
    def roots(self) -> list[Any]:
        roots: list[Any] = [self.global_env, self.base_env]
        roots.extend(package.namespace for package in self.packages.values())
        roots.extend(self.context.stack.frames())
        return roots

    def reachable_roots(self) -> set[Environment]:
        """Every environment the collector must keep alive."""
        return set(walk_reachable(self.roots()))

    def reclaimable(self) -> list[Environment]:
        reachable = self.reachable_roots()
        candidates = [env for env in self.context.tracked if env not in reachable]
        return sorted(candidates, key=lambda env: env.handle)

    # ===== Values =====
    def value(self, content: Any) -> Value:
        return self.store.create(content)

    def identity_of(self, value: Value) -> int:
        return self.store.identity_of(value)

    def estimate_size(self, values: Iterable[Value]) -> int:
        return self.store.size_of(values)

    def intern(self, text: str) -> Value:
        return self.interner.intern(text)

    def referrers(self, value: Value, *extra_roots: Environment) -> int:
        """
        How many places hold `value`: binding slots of reachable environments,
        plus the contents of values and containers bound there.
        """
        return count_references([*self.roots(), *extra_roots], value)

    def modify(
        self,
        env: Environment,
        name: str,
        update: Callable[[Any], Any],
    ) -> Value:
        """
        Apply `update` to the content of the value bound to `name` in `env`.

        A value nothing else holds is changed in place and keeps its identity.
        A shared value is left alone: `update` runs on a shallow copy and the
        result is bound to `name` as a new value.
        """
        value = env.get_strict(name)
        if not isinstance(value, Value):
            raise TypeError(f"{name!r} is bound to {value!r}, which is not a value")

        if self.referrers(value, env) <= 1:
            value.content = update(value.content)
            return value

        fresh = self.store.create(update(copy.copy(value.content)))
        env.set(name, fresh)
        self.context.writer.debugln(f"copied {value!r} -> {fresh!r} on modify")
        return fresh
