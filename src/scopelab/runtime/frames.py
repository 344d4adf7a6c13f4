from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .environment import Environment
from .errors import InvalidOperation, NameNotFound
from .resolver import lookup


@dataclass(eq=False, slots=True)
class CallFrame:
    function: Any
    env: Environment
    called_from: CallFrame | None
    depth: int

    def held_environments(self) -> tuple[Any, ...]:
        return (self.env, self.function)

    def __repr__(self) -> str:
        name = getattr(self.function, "label", repr(self.function))
        return f"<frame {self.depth} {name}>"


class CallStack:
    """
    The chain of active calls, most recent last.

    This is the dynamic chain: a frame points at whoever called it, which in
    general is unrelated to the parent of its environment.
    """

    def __init__(self, top_level_env: Environment | None = None) -> None:
        self.top_level_env = top_level_env
        self._frames: list[CallFrame] = []

    def push(self, function: Any, env: Environment) -> CallFrame:
        frame = CallFrame(
            function=function,
            env=env,
            called_from=self.current_frame(),
            depth=len(self._frames) + 1,
        )
        self._frames.append(frame)
        return frame

    def pop(self, frame: CallFrame) -> None:
        if not self._frames:
            raise InvalidOperation("cannot pop from an empty call stack")
        if self._frames[-1] is not frame:
            raise InvalidOperation(f"{frame!r} is not the innermost frame")
        self._frames.pop()

    def unwind(self, depth: int = 0) -> list[CallFrame]:
        """Discard every frame above `depth`, returning them innermost first."""
        discarded: list[CallFrame] = []
        while len(self._frames) > depth:
            discarded.append(self._frames.pop())
        return discarded

    def current_frame(self) -> CallFrame | None:
        return self._frames[-1] if self._frames else None

    def caller_frame(self, of: CallFrame) -> CallFrame | None:
        return of.called_from

    def caller_env(self, of: CallFrame | None = None) -> Environment:
        if of is None:
            of = self.current_frame()
            if of is None:
                return self._require_top_level()
        caller = self.caller_frame(of)
        if caller is None:
            return self._require_top_level()
        return caller.env

    def current_env(self) -> Environment:
        frame = self.current_frame()
        if frame is None:
            return self._require_top_level()
        return frame.env

    def frames(self) -> list[CallFrame]:
        return list(self._frames)

    def dynamic_lookup(self, name: str) -> Any:
        """
        Resolve `name` through the callers instead of the parent chain:
        each active frame's own bindings, innermost first, then ordinary
        lookup from the top level.
        """
        for frame in reversed(self._frames):
            if frame.env.has(name):
                return frame.env.get_strict(name)
        top_level = self._require_top_level()
        try:
            return lookup(name, top_level)
        except NameNotFound:
            raise NameNotFound(name, where="the call stack") from None

    def _require_top_level(self) -> Environment:
        if self.top_level_env is None:
            raise InvalidOperation("call stack has no top-level environment")
        return self.top_level_env

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[CallFrame]:
        return iter(list(self._frames))
