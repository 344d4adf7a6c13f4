import pytest

from scopelab.runtime import (
    EMPTY_ENV,
    CallStack,
    Environment,
    InvalidOperation,
    NameNotFound,
    Runtime,
    RuntimeContext,
    lookup,
    lookup_function,
    new_env,
)


# ===== Stack Shape =====
def test_top_level_has_no_current_frame() -> None:
    runtime = Runtime()

    assert runtime.current_frame() is None
    assert runtime.current_env() is runtime.global_env
    assert runtime.caller_env() is runtime.global_env


def test_frames_link_to_the_frame_active_at_the_call_site() -> None:
    runtime = Runtime()
    seen: dict[str, object] = {}

    def inner(env: Environment, context: RuntimeContext) -> None:
        seen["frames"] = context.stack.frames()

    def outer(env: Environment, context: RuntimeContext) -> None:
        lookup_function("inner", env)([], context)

    runtime.global_env.set("inner", runtime.make_closure(inner, name="inner"))
    outer_fn = runtime.make_closure(outer, name="outer")
    runtime.call(outer_fn)

    bottom, top = seen["frames"]  # type: ignore[misc]
    assert bottom.function is outer_fn
    assert bottom.depth == 1
    assert top.depth == 2
    assert runtime.context.stack.caller_frame(top) is bottom
    assert runtime.context.stack.caller_frame(bottom) is None


def test_caller_env_of_bottom_frame_is_the_top_level() -> None:
    runtime = Runtime()
    seen: dict[str, Environment] = {}

    def body(env: Environment, context: RuntimeContext) -> None:
        seen["caller"] = context.stack.caller_env(context.stack.current_frame())

    runtime.call(runtime.make_closure(body))

    assert seen["caller"] is runtime.global_env


# ===== Dynamic Versus Lexical =====
def test_caller_env_follows_calls_while_lookup_follows_parents() -> None:
    runtime = Runtime()
    runtime.global_env.set("x", "global")
    seen: dict[str, object] = {}

    def callee(env: Environment, context: RuntimeContext) -> None:
        frame = context.stack.current_frame()
        seen["lexical"] = lookup("x", env)
        seen["caller_env"] = context.stack.caller_env(frame)
        seen["dynamic"] = context.stack.dynamic_lookup("x")

    def caller(env: Environment, context: RuntimeContext) -> None:
        env.set("x", "caller")
        seen["caller_own_env"] = env
        lookup_function("callee", env)([], context)

    runtime.global_env.set("callee", runtime.make_closure(callee, name="callee"))
    runtime.call(runtime.make_closure(caller, name="caller"))

    assert seen["lexical"] == "global"
    assert seen["caller_env"] is seen["caller_own_env"]
    assert seen["caller_env"] is not runtime.global_env
    assert seen["dynamic"] == "caller"


def test_dynamic_lookup_prefers_the_innermost_frame() -> None:
    runtime = Runtime()
    seen: list[object] = []

    def innermost(env: Environment, context: RuntimeContext) -> None:
        seen.append(context.stack.dynamic_lookup("x"))
        seen.append(context.stack.dynamic_lookup("y"))

    def middle(env: Environment, context: RuntimeContext) -> None:
        env.set("x", "middle")
        lookup_function("innermost", env)([], context)

    def outer(env: Environment, context: RuntimeContext) -> None:
        env.set("x", "outer")
        env.set("y", "outer")
        lookup_function("middle", env)([], context)

    runtime.global_env.set("innermost", runtime.make_closure(innermost))
    runtime.global_env.set("middle", runtime.make_closure(middle))
    runtime.call(runtime.make_closure(outer))

    assert seen == ["middle", "outer"]


def test_dynamic_lookup_falls_back_to_the_top_level() -> None:
    runtime = Runtime()
    runtime.global_env.set("setting", "global")

    assert runtime.dynamic_lookup("setting") == "global"
    with pytest.raises(NameNotFound, match="call stack"):
        runtime.dynamic_lookup("unset")


# ===== Stack Discipline =====
def test_pop_must_match_the_innermost_frame() -> None:
    stack = CallStack(top_level_env=new_env(EMPTY_ENV))
    first = stack.push("f", new_env(EMPTY_ENV))
    stack.push("g", new_env(EMPTY_ENV))

    with pytest.raises(InvalidOperation):
        stack.pop(first)

    assert len(stack) == 2


def test_pop_from_empty_stack_is_invalid() -> None:
    stack = CallStack()
    frame = stack.push("f", new_env(EMPTY_ENV))
    stack.pop(frame)

    with pytest.raises(InvalidOperation):
        stack.pop(frame)


def test_unwind_discards_frames_above_depth() -> None:
    stack = CallStack()
    first = stack.push("f", new_env(EMPTY_ENV))
    second = stack.push("g", new_env(EMPTY_ENV))
    third = stack.push("h", new_env(EMPTY_ENV))

    assert stack.unwind(1) == [third, second]
    assert stack.frames() == [first]


def test_stack_without_top_level_reports_invalid_operation() -> None:
    stack = CallStack()

    with pytest.raises(InvalidOperation):
        stack.current_env()


# ===== Reachability =====
def test_active_frames_keep_their_environments_reachable() -> None:
    runtime = Runtime()
    seen: dict[str, object] = {}

    def body(env: Environment, context: RuntimeContext) -> None:
        seen["env"] = env
        seen["reachable_during_call"] = env in runtime.reachable_roots()

    runtime.call(runtime.make_closure(body))

    assert seen["reachable_during_call"] is True
    assert seen["env"] not in runtime.reachable_roots()
