import pytest

from jsonvault.core.errors import StorageError, ValidationError
from jsonvault.infra.db import Database
from jsonvault.services.record_service import RecordStore, normalize_payload


@pytest.fixture()
def store(tmp_path):
    with Database(tmp_path / "data.db") as db:
        s = RecordStore(db)
        s.init_schema()
        yield s


@pytest.mark.parametrize(
    "payload, expected",
    [
        ([{"a": 1}], [{"a": 1}]),
        ([], []),
        ([1, "two", None], [1, "two", None]),
        ({"a": 1}, [{"a": 1}]),
        ({}, []),
        (None, []),
        ("text", []),
        (42, []),
        (True, []),
    ],
)
def test_normalize_payload(payload, expected):
    assert normalize_payload(payload) == expected


def test_empty_store_reads_empty_list(store):
    assert store.get() == []


def test_put_then_get_overwrites(store):
    assert store.put([{"a": 1}]) == [{"a": 1}]
    assert store.get() == [{"a": 1}]
    store.put({"b": 2})
    assert store.get() == [{"b": 2}]


def test_put_is_idempotent(store):
    store.put([{"a": 1}, {"b": [1, 2]}])
    once = store.get()
    store.put([{"a": 1}, {"b": [1, 2]}])
    assert store.get() == once
    with store.db.connect() as conn:
        assert conn.execute("SELECT COUNT(*) FROM store").fetchone()[0] == 1


def test_foreign_non_list_document_reads_as_empty(store):
    with store.db.connect() as conn:
        conn.execute("INSERT INTO store (id, data) VALUES (1, ?)", ('{"a": 1}',))
    assert store.get() == []


def test_unopened_database_raises_storage_error(tmp_path):
    s = RecordStore(Database(tmp_path / "data.db"))
    with pytest.raises(StorageError):
        s.get()
    with pytest.raises(StorageError):
        s.put([1])


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_are_refused(store, value):
    store.put([{"keep": True}])
    with pytest.raises(ValidationError):
        store.put([value])
    assert store.get() == [{"keep": True}]


def test_foreign_non_finite_document_reads_as_empty(store):
    with store.db.connect() as conn:
        conn.execute("INSERT INTO store (id, data) VALUES (1, ?)", ("[NaN]",))
    assert store.get() == []
