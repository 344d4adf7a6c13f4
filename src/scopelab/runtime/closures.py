from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple, Sequence

from ..writer import indented_output
from .core import Bindable, RuntimeContext
from .environment import Environment
from .errors import DepthExceeded
from .frames import CallFrame

Code = Callable[[Environment, RuntimeContext], Bindable]


class Invocation(NamedTuple):
    value: Bindable
    frame: CallFrame | None


@dataclass(frozen=True, slots=True, eq=False)
class Closure:
    """Code paired for good with the environment it was created in."""

    code: Code
    enclosing: Environment
    params: tuple[str, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.enclosing, Environment):
            raise TypeError(
                f"closures enclose environments, got {type(self.enclosing).__name__}"
            )
        duplicates = sorted({p for p in self.params if self.params.count(p) > 1})
        if duplicates:
            raise ValueError(f"duplicate parameter names: {duplicates}")

    @property
    def label(self) -> str:
        return self.name or "<anonymous>"

    def held_environments(self) -> tuple[Environment, ...]:
        return (self.enclosing,)

    def __call__(self, args: Sequence[Bindable], context: RuntimeContext) -> Bindable:
        return invoke(self, args, context).value

    def __repr__(self) -> str:
        return f"<closure {self.label} in {self.enclosing!r}>"


class Builtin:
    """A host function. Calling one does not push a frame."""

    name = ""
    arity: tuple[int, int] = (0, 0)

    def __call__(self, args: Sequence[Bindable], context: RuntimeContext) -> Bindable:
        low, high = self.arity
        if not low <= len(args) <= high:
            expected = str(low) if low == high else f"{low} to {high}"
            raise ValueError(
                f"wrong number of arguments for {self.name}: "
                f"expected {expected}, got {len(args)}"
            )
        return self.apply(list(args), context)

    def apply(self, args: list[Bindable], context: RuntimeContext) -> Bindable:
        raise NotImplementedError

    @property
    def label(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def make_closure(
    code: Code,
    enclosing: Environment,
    params: Sequence[str] = (),
    name: str = "",
) -> Closure:
    return Closure(code=code, enclosing=enclosing, params=tuple(params), name=name)


def invoke(
    function: Bindable,
    args: Sequence[Bindable],
    context: RuntimeContext,
) -> Invocation:
    if isinstance(function, Closure):
        return _invoke_closure(function, args, context)
    if callable(function):
        return Invocation(function(args, context), None)
    raise ValueError(f"{function!r} is not callable")


def _invoke_closure(
    closure: Closure,
    args: Sequence[Bindable],
    context: RuntimeContext,
) -> Invocation:
    if len(args) != len(closure.params):
        raise ValueError(
            f"wrong number of arguments for {closure.label}: "
            f"expected {len(closure.params)}, got {len(args)}"
        )
    if len(context.stack) >= context.max_depth:
        raise DepthExceeded(context.max_depth)

    call_env = context.track(Environment(closure.enclosing, name=closure.name))
    for param, value in zip(closure.params, args, strict=True):
        call_env.set(param, value)

    frame = context.stack.push(closure, call_env)
    context.writer.debugln(f"-> {closure.label} (depth {frame.depth})")
    try:
        with indented_output(context.writer):
            value = closure.code(call_env, context)
    finally:
        context.stack.pop(frame)
        context.writer.debugln(f"<- {closure.label}")
    return Invocation(value, frame)
