class NameNotFound(KeyError):
    """A strict lookup found no binding for the name."""

    def __init__(self, name: str, where: str = "") -> None:
        super().__init__(name)
        self.name = name
        self.where = where

    def __str__(self) -> str:
        suffix = f" in {self.where}" if self.where else ""
        return f"object '{self.name}' not found{suffix}"


class InvalidParent(ValueError):
    """The requested parent link would break the single-parent invariant."""


class DepthExceeded(RecursionError):
    """The call-frame stack grew past the configured limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"call depth exceeded the limit of {limit} frames")
        self.limit = limit


class InvalidOperation(Exception):
    """The object is in a state that does not allow this operation."""
