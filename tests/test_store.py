"""Tests for the record store: identity, uniqueness and durability."""

import threading

import pytest

from app.analysis import analyze_string
from app.errors import DuplicateError, InvalidTypeError, NotFoundError, PersistenceError, ValidationError
from app.store import RecordStore


def test_insert_normalizes_value(store: RecordStore) -> None:
    record = store.insert("Racecar")
    assert record.value == "racecar"
    assert record.properties.is_palindrome is True
    assert record.properties.length == 7
    assert record.properties.word_count == 1
    assert record.properties.unique_characters == 4


def test_insert_then_get_round_trip(store: RecordStore) -> None:
    store.insert("Hello World")
    record = store.get("HELLO WORLD")
    assert record.properties == analyze_string("hello world")


def test_duplicate_is_rejected_once(store: RecordStore, fake_persistence) -> None:
    store.insert("racecar")
    with pytest.raises(DuplicateError):
        store.insert("RaceCar")
    assert len(store) == 1
    assert len(fake_persistence.saves) == 1


def test_missing_value_is_a_validation_error(store: RecordStore) -> None:
    with pytest.raises(ValidationError) as exc_info:
        store.insert(None)
    assert not isinstance(exc_info.value, InvalidTypeError)


@pytest.mark.parametrize("value", [123, 1.5, True, ["a"], {"v": "a"}])
def test_non_string_value_is_rejected(store: RecordStore, value) -> None:
    with pytest.raises(InvalidTypeError):
        store.insert(value)
    assert len(store) == 0


def test_list_keeps_insertion_order(store: RecordStore) -> None:
    for value in ("banana", "apple", "cherry"):
        store.insert(value)
    assert [record.value for record in store.list()] == ["banana", "apple", "cherry"]


def test_list_is_a_snapshot(store: RecordStore) -> None:
    store.insert("one")
    snapshot = store.list()
    store.insert("two")
    assert len(snapshot) == 1
    assert len(store.list()) == 2


def test_get_missing_raises(store: RecordStore) -> None:
    with pytest.raises(NotFoundError):
        store.get("nothing")


def test_delete_removes_and_persists(store: RecordStore, fake_persistence) -> None:
    store.insert("keep")
    store.insert("Drop")
    store.delete("DROP")
    assert "drop" not in store
    assert [record.value for record in fake_persistence.records] == ["keep"]


def test_delete_missing_does_not_write(store: RecordStore, fake_persistence) -> None:
    store.insert("keep")
    with pytest.raises(NotFoundError):
        store.delete("absent")
    assert len(store) == 1
    assert len(fake_persistence.saves) == 1


def test_failed_insert_leaves_store_unchanged(store: RecordStore, fake_persistence) -> None:
    store.insert("first")
    fake_persistence.fail = True
    with pytest.raises(PersistenceError):
        store.insert("second")
    assert "second" not in store
    assert [record.value for record in store.list()] == ["first"]


def test_failed_delete_leaves_store_unchanged(store: RecordStore, fake_persistence) -> None:
    store.insert("first")
    fake_persistence.fail = True
    with pytest.raises(PersistenceError):
        store.delete("first")
    assert store.get("first").value == "first"


def test_open_loads_persisted_records(fake_persistence) -> None:
    original = RecordStore.open(fake_persistence)
    original.insert("zebra")
    original.insert("apple")

    reopened = RecordStore.open(fake_persistence)
    assert [record.value for record in reopened.list()] == ["zebra", "apple"]
    assert reopened.get("zebra") == original.get("zebra")


def test_contains_ignores_case_and_non_strings(store: RecordStore) -> None:
    store.insert("Mixed")
    assert "MIXED" in store
    assert 42 not in store


def test_concurrent_inserts_of_one_value_store_it_once(store: RecordStore, fake_persistence) -> None:
    outcomes = []

    def attempt() -> None:
        try:
            store.insert("Same")
            outcomes.append("ok")
        except DuplicateError:
            outcomes.append("duplicate")

    threads = [threading.Thread(target=attempt) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == 15
    assert len(fake_persistence.saves) == 1
