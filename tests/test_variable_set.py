from __future__ import annotations

import pytest

from varmsg.core.errors import InvalidArgumentError, NotFoundError, UnsupportedError
from varmsg.core.models import VariableSet
from varmsg.core.resolver import resolve_variable_set


def test_variable_set_keeps_order_and_drops_duplicates() -> None:
    variable_set = VariableSet(initial_size=2, grow_by=3)

    assert variable_set.add(5)
    assert variable_set.add(1)
    assert not variable_set.add(5)
    assert variable_set.add(9)

    assert list(variable_set) == [5, 1, 9]
    assert len(variable_set) == 3
    assert 1 in variable_set
    assert variable_set.capacity == 5


def test_name_list_resolves_in_input_order(store) -> None:
    a = store.add("a")
    b = store.add("b")
    c = store.add("c")

    variable_set = resolve_variable_set(["c", "a", "b", "a"], store)

    assert list(variable_set) == [c, a, b]
    assert variable_set.capacity == 4


def test_unknown_name_aborts_the_list(store) -> None:
    a = store.add("a")
    store.add("b")
    existing = VariableSet()

    with pytest.raises(NotFoundError):
        resolve_variable_set(["a", "missing", "b"], store, existing)

    # Items before the failure stay; items after it are never processed.
    assert list(existing) == [a]


def test_non_string_entry_is_unsupported(store) -> None:
    store.add("a")
    with pytest.raises(UnsupportedError):
        resolve_variable_set(["a", 3], store)


def test_empty_list_and_bad_node_are_invalid(store) -> None:
    with pytest.raises(InvalidArgumentError):
        resolve_variable_set([], store)
    with pytest.raises(InvalidArgumentError):
        resolve_variable_set("a", store)


def test_query_and_equivalent_list_have_same_members(store) -> None:
    store.add("temp1", tags=("test",))
    store.add("other", tags=("prod",))
    store.add("temp2", tags=("test", "prod"))

    from_query = resolve_variable_set({"tags": "test"}, store)
    from_list = resolve_variable_set(["temp2", "temp1"], store)

    assert set(from_query) == set(from_list)
    assert len(from_query) == len(set(from_query))


def test_existing_set_is_reused(store) -> None:
    a = store.add("a", tags=("x",))
    b = store.add("b", tags=("x",))
    existing = VariableSet()
    existing.add(a)

    result = resolve_variable_set({"tags": "x"}, store, existing)

    assert result is existing
    assert list(result) == [a, b]
