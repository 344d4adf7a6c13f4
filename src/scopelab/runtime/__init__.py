from .bindings import MISSING, BindingTable
from .closures import Builtin, Closure, Invocation, invoke, make_closure
from .core import Bindable, CallableValue, RuntimeContext
from .environment import (
    EMPTY_ENV,
    Environment,
    count_references,
    identical,
    is_empty,
    new_env,
    parents,
    walk_reachable,
)
from .errors import DepthExceeded, InvalidOperation, InvalidParent, NameNotFound
from .frames import CallFrame, CallStack
from .interpreter import CURRENT, Package, Runtime
from .memory import InternPool, ObjectSizer
from .resolver import assign_nearest, exists, lookup, lookup_function, rebind, where, where_recursive
from .values import Value, ValueStore

__all__ = [
    "MISSING",
    "BindingTable",
    "Builtin",
    "Closure",
    "Invocation",
    "invoke",
    "make_closure",
    "Bindable",
    "CallableValue",
    "RuntimeContext",
    "EMPTY_ENV",
    "Environment",
    "count_references",
    "identical",
    "is_empty",
    "new_env",
    "parents",
    "walk_reachable",
    "DepthExceeded",
    "InvalidOperation",
    "InvalidParent",
    "NameNotFound",
    "CallFrame",
    "CallStack",
    "CURRENT",
    "Package",
    "Runtime",
    "InternPool",
    "ObjectSizer",
    "assign_nearest",
    "exists",
    "lookup",
    "lookup_function",
    "rebind",
    "where",
    "where_recursive",
    "Value",
    "ValueStore",
]
