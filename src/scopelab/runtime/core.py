from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..writer import IndentingWriter
from .environment import Environment
from .frames import CallStack

Bindable = Any

DEFAULT_MAX_DEPTH = 128


class CallableValue(Protocol):
    def __call__(self, args: list[Bindable], context: RuntimeContext) -> Bindable: ...


@dataclass
class RuntimeContext:
    writer: IndentingWriter = field(default_factory=IndentingWriter)
    max_depth: int = DEFAULT_MAX_DEPTH
    stack: CallStack = field(default_factory=CallStack)
    tracked: weakref.WeakSet[Environment] = field(default_factory=weakref.WeakSet)

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    def track(self, env: Environment) -> Environment:
        self.tracked.add(env)
        return env

    def current_env(self) -> Environment:
        return self.stack.current_env()
