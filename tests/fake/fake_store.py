import asyncio
from typing import AsyncIterator

from wideindex.core.models.row import Mutation, ReadFilter, Row, RowRange, build_row


class FakeTable:
    """
    In-memory table returning rows in key order. Supports failure
    injection on writes (per row key) and reads (per requested row key).
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.rows: dict[bytes, dict[str, dict[bytes, bytes]]] = {}
        self.fail_writes: dict[bytes, Exception] = {}
        self.fail_reads: dict[bytes, Exception] = {}
        self.request_error: Exception | None = None
        self.read_rows_calls: list[RowRange | list[bytes]] = []
        self.read_row_calls: list[tuple[bytes, ReadFilter | None]] = []
        self.extra_rows: list[Row] = []
        self.delay: float = 0

    def put(self, row_key: bytes, family: str, qualifier: bytes, value: bytes) -> None:
        self.rows.setdefault(row_key, {}).setdefault(family, {})[qualifier] = value

    def value(self, row_key: bytes, family: str, qualifier: bytes) -> bytes | None:
        return self.rows.get(row_key, {}).get(family, {}).get(qualifier)

    async def apply_bulk(
        self,
        row_keys: list[bytes],
        mutations: list[Mutation],
    ) -> list[Exception | None]:
        if self.request_error is not None:
            raise self.request_error

        errs: list[Exception | None] = []
        for row_key, mutation in zip(row_keys, mutations):
            err = self.fail_writes.get(row_key)
            if err is None:
                for family, qualifier, value in mutation.cells:
                    self.put(row_key, family, qualifier, value)
            errs.append(err)
        return errs

    async def read_row(
        self,
        row_key: bytes,
        read_filter: ReadFilter | None = None,
    ) -> Row | None:
        self.read_row_calls.append((row_key, read_filter))
        if row_key in self.fail_reads:
            raise self.fail_reads[row_key]

        cells = self.rows.get(row_key)
        if cells is None:
            return None
        return build_row(row_key, cells, read_filter)

    async def read_rows(
        self,
        rows: RowRange | list[bytes],
        read_filter: ReadFilter | None = None,
    ) -> AsyncIterator[Row]:
        self.read_rows_calls.append(rows)
        if self.delay:
            await asyncio.sleep(self.delay)

        if isinstance(rows, RowRange):
            keys = [key for key in sorted(self.rows) if key in rows]
        else:
            for key in rows:
                if key in self.fail_reads:
                    await asyncio.sleep(0)
                    raise self.fail_reads[key]
            keys = sorted(key for key in set(rows) if key in self.rows)

        for row in self.extra_rows:
            yield row

        for key in keys:
            await asyncio.sleep(0)
            row = build_row(key, self.rows[key], read_filter)
            if row is not None:
                yield row


class FakeStore:
    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}
        self.closed = False

    def open_table(self, name: str) -> FakeTable:
        table = self.tables.get(name)
        if table is None:
            table = self.tables[name] = FakeTable(name)
        return table

    async def close(self) -> None:
        self.closed = True
