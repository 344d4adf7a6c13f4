import pytest

from scopelab.runtime import (
    EMPTY_ENV,
    InvalidOperation,
    NameNotFound,
    assign_nearest,
    exists,
    lookup,
    lookup_function,
    new_env,
    rebind,
    where,
    where_recursive,
)


# ===== Helpers =====
def build_chain():
    e1 = new_env(EMPTY_ENV, {"a": 1, "x": "e1"}, name="e1")
    e2 = new_env(e1, {"b": 2}, name="e2")
    e3 = new_env(e2, {"x": "e3"}, name="e3")
    return e1, e2, e3


# ===== Where =====
@pytest.mark.parametrize("search", [where, where_recursive])
def test_resolution_finds_nearest_binding_environment(search) -> None:
    e1, e2, e3 = build_chain()

    assert search("a", e3) is e1
    assert search("b", e3) is e2
    with pytest.raises(NameNotFound, match="'c' not found in e3"):
        search("c", e3)


@pytest.mark.parametrize("search", [where, where_recursive])
def test_nearest_binding_shadows_ancestors(search) -> None:
    e1, _, e3 = build_chain()

    assert search("x", e3) is e3
    assert search("x", e1) is e1


@pytest.mark.parametrize("search", [where, where_recursive])
def test_resolution_from_empty_environment_fails_immediately(search) -> None:
    with pytest.raises(NameNotFound):
        search("a", EMPTY_ENV)


def test_resolution_reflects_mutations_immediately() -> None:
    e1, e2, e3 = build_chain()
    assert where("x", e3) is e3

    e3.remove("x")
    assert where("x", e3) is e1

    e2.set("x", "e2")
    assert where("x", e3) is e2
    assert lookup("x", e3) == "e2"


def test_iterative_resolution_handles_deep_chains() -> None:
    root = new_env(EMPTY_ENV, {"deep": "found"})
    env = root
    for _ in range(2000):
        env = new_env(env)

    assert where("deep", env) is root


def test_resolution_ignores_bindings_in_unrelated_environments() -> None:
    e1, _, e3 = build_chain()
    sibling = new_env(e1, {"only_here": True})

    assert not exists("only_here", e3)
    assert exists("only_here", sibling)


# ===== Lookup Variants =====
def test_lookup_returns_bound_value() -> None:
    _, _, e3 = build_chain()

    assert lookup("a", e3) == 1
    assert lookup("x", e3) == "e3"


def test_lookup_function_skips_non_callable_bindings() -> None:
    def length(args, context):
        return len(args)

    outer = new_env(EMPTY_ENV, {"c": length})
    inner = new_env(outer, {"c": 10})

    assert lookup("c", inner) == 10
    assert lookup_function("c", inner) is length
    with pytest.raises(NameNotFound):
        lookup_function("d", inner)


def test_exists_without_inheritance_checks_only_the_given_environment() -> None:
    _, _, e3 = build_chain()

    assert exists("a", e3)
    assert not exists("a", e3, inherits=False)
    assert exists("x", e3, inherits=False)


# ===== Rebinding =====
def test_rebind_updates_nearest_existing_binding() -> None:
    e1, e2, e3 = build_chain()

    target = rebind("a", 100, e3)

    assert target is e1
    assert e1.get("a") == 100
    assert not e3.has("a")


def test_rebind_never_creates_a_binding() -> None:
    _, _, e3 = build_chain()

    with pytest.raises(NameNotFound):
        rebind("fresh", 1, e3)

    assert not exists("fresh", e3)


def test_assign_nearest_skips_the_starting_environment() -> None:
    e1, _, e3 = build_chain()
    global_env = new_env(EMPTY_ENV, name="global")

    target = assign_nearest("x", "updated", e3, global_env)

    assert target is e1
    assert e1.get("x") == "updated"
    assert e3.get("x") == "e3"


def test_assign_nearest_falls_back_to_global() -> None:
    _, _, e3 = build_chain()
    global_env = new_env(EMPTY_ENV, name="global")

    target = assign_nearest("fresh", 1, e3, global_env)

    assert target is global_env
    assert global_env.get("fresh") == 1
    assert not exists("fresh", e3)


def test_assign_nearest_from_empty_environment_is_invalid() -> None:
    with pytest.raises(InvalidOperation):
        assign_nearest("x", 1, EMPTY_ENV, new_env(EMPTY_ENV))
