from typing import AsyncIterator

from google.cloud.bigtable.data import (
    BigtableDataClientAsync,
    ReadRowsQuery,
    RowMutationEntry,
    SetCell,
)
from google.cloud.bigtable.data import RowRange as BigtableRowRange
from google.cloud.bigtable.data import row_filters
from google.cloud.bigtable.data.exceptions import FailedMutationEntryError, MutationsExceptionGroup

from wideindex.core.models.row import Mutation, ReadFilter, ReadItem, Row, RowRange
from wideindex.core.ports.store import Table

# Cells are always written at the same timestamp, so a write replaces the
# previous value instead of stacking versions.
CELL_TIMESTAMP = 0


def to_row_filter(read_filter: ReadFilter | None) -> row_filters.RowFilter:
    filters: list[row_filters.RowFilter] = [row_filters.CellsColumnLimitFilter(1)]

    if read_filter is not None and read_filter.family is not None:
        filters.append(row_filters.FamilyNameRegexFilter(read_filter.family))
        columns = read_filter.columns
        if columns is not None:
            # qualifier ranges are half-open: [start, end)
            bounds: dict = {"start_qualifier": columns.start, "inclusive_start": True}
            if columns.end is not None:
                bounds.update(end_qualifier=columns.end, inclusive_end=False)
            filters.append(row_filters.ColumnRangeFilter(read_filter.family, **bounds))

    if len(filters) == 1:
        return filters[0]
    return row_filters.RowFilterChain(filters=filters)


def to_query(rows: RowRange | list[bytes], read_filter: ReadFilter | None) -> ReadRowsQuery:
    row_filter = to_row_filter(read_filter)
    if isinstance(rows, RowRange):
        row_range = BigtableRowRange(start_key=rows.start or None, end_key=rows.end)
        return ReadRowsQuery(row_ranges=[row_range], row_filter=row_filter)
    return ReadRowsQuery(row_keys=list(rows), row_filter=row_filter)


def to_row(bt_row) -> Row:
    row = Row(key=bt_row.row_key)
    for cell in bt_row:
        column = cell.family.encode() + b":" + cell.qualifier
        row.cells.setdefault(cell.family, []).append(
            ReadItem(row=bt_row.row_key, column=column, value=cell.value)
        )
    return row


class BigtableTable:
    def __init__(self, table) -> None:
        self._table = table

    async def apply_bulk(
        self,
        row_keys: list[bytes],
        mutations: list[Mutation],
    ) -> list[Exception | None]:
        entries = [
            RowMutationEntry(
                row_key,
                [
                    SetCell(family, qualifier, value, timestamp_micros=CELL_TIMESTAMP)
                    for family, qualifier, value in mutation.cells
                ],
            )
            for row_key, mutation in zip(row_keys, mutations)
        ]

        errs: list[Exception | None] = [None] * len(entries)
        try:
            await self._table.bulk_mutate_rows(entries)
        except MutationsExceptionGroup as group:
            for exc in group.exceptions:
                if not isinstance(exc, FailedMutationEntryError) or exc.index is None:
                    raise
                cause = exc.__cause__
                errs[exc.index] = cause if isinstance(cause, Exception) else exc
        return errs

    async def read_row(
        self,
        row_key: bytes,
        read_filter: ReadFilter | None = None,
    ) -> Row | None:
        bt_row = await self._table.read_row(row_key, row_filter=to_row_filter(read_filter))
        if bt_row is None:
            return None
        return to_row(bt_row)

    async def read_rows(
        self,
        rows: RowRange | list[bytes],
        read_filter: ReadFilter | None = None,
    ) -> AsyncIterator[Row]:
        if isinstance(rows, list) and not rows:
            return

        stream = await self._table.read_rows_stream(to_query(rows, read_filter))
        async for bt_row in stream:
            yield to_row(bt_row)


class BigtableStore:
    """
    Wide-column store backed by Cloud Bigtable. The client must be created
    from within a running event loop. Set BIGTABLE_EMULATOR_HOST to target
    a local emulator.
    """

    def __init__(
        self,
        project: str,
        instance: str,
        app_profile_id: str | None = None,
        api_endpoint: str | None = None,
    ) -> None:
        client_options = {"api_endpoint": api_endpoint} if api_endpoint else None
        self._client = BigtableDataClientAsync(project=project, client_options=client_options)
        self._instance = instance
        self._app_profile_id = app_profile_id
        self._tables: dict[str, BigtableTable] = {}

    def open_table(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            bt_table = self._client.get_table(
                self._instance, name, app_profile_id=self._app_profile_id
            )
            table = self._tables[name] = BigtableTable(bt_table)
        return table

    async def close(self) -> None:
        await self._client.close()
        self._tables.clear()
