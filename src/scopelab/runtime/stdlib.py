from __future__ import annotations

from .closures import Builtin, Closure
from .core import Bindable, RuntimeContext
from .environment import EMPTY_ENV, Environment
from .errors import InvalidOperation
from .resolver import exists, lookup


class EmptyEnvBuiltin(Builtin):
    name = "emptyenv"

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment:
        return EMPTY_ENV


class GlobalEnvBuiltin(Builtin):
    name = "globalenv"

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment:
        top_level = context.stack.top_level_env
        if top_level is None:
            raise InvalidOperation("no global environment has been installed")
        return top_level


class NewEnvBuiltin(Builtin):
    name = "new.env"
    arity = (0, 1)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment:
        parent = _env_arg(args, 0, self.name) if args else context.current_env()
        return context.track(Environment(parent))


class ParentEnvBuiltin(Builtin):
    name = "parent.env"
    arity = (1, 1)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment:
        env = _env_arg(args, 0, self.name)
        if env.parent is None:
            raise InvalidOperation("the empty environment has no parent")
        return env.parent


class EnvironmentBuiltin(Builtin):
    name = "environment"
    arity = (0, 1)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment | None:
        if not args:
            return context.current_env()
        [function] = args
        if isinstance(function, Closure):
            return function.enclosing
        if isinstance(function, Builtin):
            return None
        raise ValueError(f"environment expects a function, got {function!r}")


class ParentFrameBuiltin(Builtin):
    name = "parent.frame"

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Environment:
        return context.stack.caller_env()


class IdenticalBuiltin(Builtin):
    name = "identical"
    arity = (2, 2)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> bool:
        [a, b] = args
        if isinstance(a, (Environment, Closure)) or isinstance(b, (Environment, Closure)):
            return a is b
        return bool(a == b)


class ExistsBuiltin(Builtin):
    name = "exists"
    arity = (1, 3)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> bool:
        name = _name_arg(args, self.name)
        env = _env_arg(args, 1, self.name) if len(args) > 1 else context.current_env()
        inherits = bool(args[2]) if len(args) > 2 else True
        return exists(name, env, inherits=inherits)


class GetBuiltin(Builtin):
    name = "get"
    arity = (1, 2)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Bindable:
        name = _name_arg(args, self.name)
        env = _env_arg(args, 1, self.name) if len(args) > 1 else context.current_env()
        return lookup(name, env)


class AssignBuiltin(Builtin):
    name = "assign"
    arity = (2, 3)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Bindable:
        name = _name_arg(args, self.name)
        value = args[1]
        env = _env_arg(args, 2, self.name) if len(args) > 2 else context.current_env()
        env.set(name, value)
        return value


BUILTINS: tuple[type[Builtin], ...] = (
    EmptyEnvBuiltin,
    GlobalEnvBuiltin,
    NewEnvBuiltin,
    ParentEnvBuiltin,
    EnvironmentBuiltin,
    ParentFrameBuiltin,
    IdenticalBuiltin,
    ExistsBuiltin,
    GetBuiltin,
    AssignBuiltin,
)


def install_stdlib(env: Environment) -> None:
    for builtin_class in BUILTINS:
        builtin = builtin_class()
        env.set(builtin.name, builtin)


def _env_arg(args: list[Bindable], index: int, function_name: str) -> Environment:
    candidate = args[index]
    if not isinstance(candidate, Environment):
        raise ValueError(f"{function_name} expects an environment, got {candidate!r}")
    return candidate


def _name_arg(args: list[Bindable], function_name: str) -> str:
    candidate = args[0]
    if not isinstance(candidate, str):
        raise ValueError(f"{function_name} expects a name, got {candidate!r}")
    return candidate
