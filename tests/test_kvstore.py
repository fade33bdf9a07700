import pytest

from miningsvc.kvstore import KeyValueStore, StorageError


@pytest.fixture
def store(tmp_path):
    kv = KeyValueStore.open(tmp_path / "kv")
    yield kv
    kv.close()


def test_write_then_read_round_trip(store):
    store.write({"key": "alpha", "data": "payload"})
    assert store.read({"key": "alpha"}) == b"payload"


def test_overwrite_replaces_value(store):
    store.write({"key": "alpha", "data": "one"})
    store.write({"key": "alpha", "data": "two"})
    assert store.read({"key": "alpha"}) == b"two"


@pytest.mark.parametrize(
    "call",
    [{}, {"key": "", "data": "x"}, {"key": "k", "data": ""}, {"key": 5, "data": "x"}, {"key": "k", "data": 3}],
)
def test_write_rejects_invalid_call(store, call):
    with pytest.raises(StorageError, match="invalid key or data"):
        store.write(call)


def test_read_requires_key(store):
    with pytest.raises(StorageError, match="Key not found"):
        store.read({})


def test_read_missing_key_raises(store):
    with pytest.raises(StorageError):
        store.read({"key": "absent"})


def test_delete_removes_key(store):
    store.write({"key": "gone", "data": "soon"})
    assert store.delete({"key": "gone"}) == {"success": True}
    with pytest.raises(StorageError):
        store.read({"key": "gone"})


def test_delete_without_key_reports_error(store):
    assert store.delete({"key": ""}) == {"error": "EDKS-001", "message": "Key is required"}


def test_values_persist_across_reopen(tmp_path):
    path = tmp_path / "kv"
    with KeyValueStore.open(path) as kv:
        kv.write({"key": "persist", "data": "value"})
    with KeyValueStore.open(path) as kv:
        assert kv.read({"key": "persist"}) == b"value"