"""
Tests for the in-memory entity store.
"""

import pytest

from registrar.core.exceptions import DuplicateEntityError, NotFoundError
from registrar.persistence import EntityStore


@pytest.fixture
def store():
    return EntityStore("Thing")


def test_put_and_get(store):
    store.put("a", 1)
    assert store.get("a") == 1
    assert store.exists("a")
    assert "a" in store
    assert len(store) == 1


def test_get_missing_returns_none(store):
    assert store.get("missing") is None


def test_put_duplicate_key_fails(store):
    store.put("a", 1)
    with pytest.raises(DuplicateEntityError):
        store.put("a", 2)
    assert store.get("a") == 1


def test_replace_and_remove(store):
    store.put("a", 1)
    store.replace("a", 5)
    assert store.get("a") == 5
    assert store.remove("a") == 5
    assert not store.exists("a")


def test_replace_or_remove_missing_fails(store):
    with pytest.raises(NotFoundError):
        store.replace("x", 1)
    with pytest.raises(NotFoundError):
        store.remove("x")


def test_values_is_a_copy_in_insertion_order(store):
    for key, value in (("b", 2), ("a", 1), ("c", 3)):
        store.put(key, value)
    values = store.values()
    values.append(99)
    assert store.values() == [2, 1, 3]


def test_find_filters(store):
    for i in range(5):
        store.put(str(i), i)
    assert store.find(lambda v: v % 2 == 0) == [0, 2, 4]


def test_load_swaps_contents(store):
    store.put("old", 0)
    store.load([10, 20], key_func=str)
    assert store.keys() == ["10", "20"]
    assert not store.exists("old")
