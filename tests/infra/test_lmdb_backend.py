import pytest

from wideindex.infra.lmdb_store.backend import LMDBBackend
from wideindex.infra.msgpack_serializer import MsgPackSerializer


def setup_backend(tmp_path):
    backend = LMDBBackend(path=str(tmp_path), serializer=MsgPackSerializer(), map_size=1 << 20)
    table = b"t"
    return backend, table


def insert(backend, table, keys):
    for key in keys:
        backend.apply(table, key, [("f", b"c", key)])


@pytest.mark.it
def test_apply_merges_cells(tmp_path):
    backend, table = setup_backend(tmp_path)
    backend.apply(table, b"row", [("f", b"a", b"1")])
    backend.apply(table, b"row", [("f", b"b", b"2"), ("g", b"a", b"3")])
    backend.apply(table, b"row", [("f", b"a", b"4")])

    assert backend.get(table, b"row") == {
        "f": {b"a": b"4", b"b": b"2"},
        "g": {b"a": b"3"},
    }


@pytest.mark.it
def test_get_missing_row(tmp_path):
    backend, table = setup_backend(tmp_path)
    assert backend.get(table, b"missing") is None


@pytest.mark.it
def test_scan_is_half_open(tmp_path):
    backend, table = setup_backend(tmp_path)
    insert(backend, table, [b"a", b"b", b"b\x00", b"c", b"d"])

    out = backend.scan(table, start=b"b", end=b"d")
    assert [key for key, _ in out] == [b"b", b"b\x00", b"c"]


@pytest.mark.it
def test_scan_unbounded_and_limited(tmp_path):
    backend, table = setup_backend(tmp_path)
    insert(backend, table, [b"c", b"a", b"b"])

    assert [key for key, _ in backend.scan(table, start=b"")] == [b"a", b"b", b"c"]
    assert [key for key, _ in backend.scan(table, start=b"b", limit=1)] == [b"b"]
    assert backend.scan(table, start=b"a", limit=0) == []


@pytest.mark.it
def test_scan_empty_and_past_end(tmp_path):
    backend, table = setup_backend(tmp_path)
    assert backend.scan(table, start=b"") == []

    insert(backend, table, [b"a"])
    assert backend.scan(table, start=b"z") == []


@pytest.mark.it
def test_get_many_sorted_and_skips_missing(tmp_path):
    backend, table = setup_backend(tmp_path)
    insert(backend, table, [b"a", b"c"])

    out = backend.get_many(table, [b"c", b"b", b"a", b"c"])
    assert [key for key, _ in out] == [b"a", b"c"]


@pytest.mark.it
def test_tables_are_isolated(tmp_path):
    backend, _ = setup_backend(tmp_path)
    backend.apply(b"t1", b"row", [("f", b"c", b"1")])

    assert backend.get(b"t2", b"row") is None
    assert backend.get(b"t1", b"row") == {"f": {b"c": b"1"}}
