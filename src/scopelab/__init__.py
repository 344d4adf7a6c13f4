"""Environments, lexical scope resolution, closures and call frames."""

from .runtime import (
    EMPTY_ENV,
    Closure,
    DepthExceeded,
    Environment,
    InvalidOperation,
    InvalidParent,
    NameNotFound,
    Runtime,
    RuntimeContext,
)

__all__ = [
    "EMPTY_ENV",
    "Closure",
    "DepthExceeded",
    "Environment",
    "InvalidOperation",
    "InvalidParent",
    "NameNotFound",
    "Runtime",
    "RuntimeContext",
]
