from types import SimpleNamespace

import pytest

pytest.importorskip("google.cloud.bigtable.data")

from google.cloud.bigtable.data import RowMutationEntry, SetCell, row_filters
from google.cloud.bigtable.data.exceptions import FailedMutationEntryError, MutationsExceptionGroup

from wideindex.core.models.row import ColumnRange, Mutation, ReadFilter, RowRange
from wideindex.infra.bigtable_store import BigtableTable, to_query, to_row, to_row_filter


class FakeBigtable:
    def __init__(self, error=None):
        self.error = error
        self.entries = None

    async def bulk_mutate_rows(self, entries):
        self.entries = entries
        if self.error is not None:
            raise self.error


def mutation(value):
    m = Mutation()
    m.set("f", b"c", value)
    return m


@pytest.mark.ut
def test_row_filter_without_family_keeps_latest_cell_only():
    out = to_row_filter(None)
    assert isinstance(out, row_filters.CellsColumnLimitFilter)


@pytest.mark.ut
def test_row_filter_with_family_and_columns():
    out = to_row_filter(ReadFilter(family="f", columns=ColumnRange(b"a", b"a\xff")))

    assert isinstance(out, row_filters.RowFilterChain)
    kinds = [type(f) for f in out.filters]
    assert kinds == [
        row_filters.CellsColumnLimitFilter,
        row_filters.FamilyNameRegexFilter,
        row_filters.ColumnRangeFilter,
    ]
    column_filter = out.filters[2]
    assert column_filter.start_qualifier == b"a"
    assert column_filter.end_qualifier == b"a\xff"
    assert column_filter.inclusive_end is False


@pytest.mark.ut
def test_query_from_keys_and_range():
    by_keys = to_query([b"a", b"b"], None)
    assert by_keys.row_keys == [b"a", b"b"]

    by_range = to_query(RowRange(b"a", b"b"), ReadFilter(family="f"))
    assert len(by_range.row_ranges) == 1


@pytest.mark.ut
def test_to_row_groups_cells_by_family():
    cells = [
        SimpleNamespace(family="f", qualifier=b"1", value=b"x"),
        SimpleNamespace(family="f", qualifier=b"2", value=b"y"),
    ]
    bt_row = type("BtRow", (), {"row_key": b"A", "__iter__": lambda self: iter(cells)})()

    row = to_row(bt_row)
    assert row.key == b"A"
    assert [(i.column, i.value) for i in row.cells["f"]] == [(b"f:1", b"x"), (b"f:2", b"y")]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_apply_bulk_success():
    fake = FakeBigtable()
    errs = await BigtableTable(fake).apply_bulk([b"A", b"B"], [mutation(b"1"), mutation(b"2")])

    assert errs == [None, None]
    assert [e.row_key for e in fake.entries] == [b"A", b"B"]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_apply_bulk_maps_failed_entries_to_rows():
    cause = RuntimeError("quota")
    entry = RowMutationEntry(b"B", [SetCell("f", b"c", b"2")])
    failed = FailedMutationEntryError(1, entry, cause)
    fake = FakeBigtable(MutationsExceptionGroup([failed], 2))

    errs = await BigtableTable(fake).apply_bulk([b"A", b"B"], [mutation(b"1"), mutation(b"2")])

    assert errs[0] is None
    assert errs[1] is cause


@pytest.mark.ut
@pytest.mark.asyncio
async def test_apply_bulk_request_error_propagates():
    fake = FakeBigtable(ConnectionError("down"))

    with pytest.raises(ConnectionError):
        await BigtableTable(fake).apply_bulk([b"A"], [mutation(b"1")])
