import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import AsyncIterator

import lmdb

from wideindex.core.models.row import Mutation, ReadFilter, Row, RowRange, build_row
from wideindex.core.ports.serializer import Serializer
from wideindex.core.ports.store import Table
from wideindex.infra.lmdb_store.backend import LMDBBackend


class LMDBTable:
    def __init__(self, store: "LMDBStore", name: str) -> None:
        self._store = store
        self._db = name.encode()

    async def apply_bulk(
        self,
        row_keys: list[bytes],
        mutations: list[Mutation],
    ) -> list[Exception | None]:
        if len(row_keys) != len(mutations):
            raise ValueError("apply_bulk requires one mutation per row key")

        backend = self._store.backend

        def apply_all() -> list[Exception | None]:
            errs: list[Exception | None] = []
            for row_key, mutation in zip(row_keys, mutations):
                try:
                    backend.apply(self._db, row_key, mutation.cells)
                except lmdb.Error as ex:
                    errs.append(ex)
                else:
                    errs.append(None)
            return errs

        return await self._store.run_write(apply_all)

    async def read_row(
        self,
        row_key: bytes,
        read_filter: ReadFilter | None = None,
    ) -> Row | None:
        cells = await self._store.run_read(self._store.backend.get, self._db, row_key)
        if cells is None:
            return None
        return build_row(row_key, cells, read_filter)

    async def read_rows(
        self,
        rows: RowRange | list[bytes],
        read_filter: ReadFilter | None = None,
    ) -> AsyncIterator[Row]:
        batch_size = self._store.batch_size

        if isinstance(rows, RowRange):
            next_key = rows.start
            while True:
                batch = await self._store.run_read(
                    self._store.backend.scan,
                    self._db,
                    next_key,
                    rows.end,
                    batch_size,
                )
                for key, cells in batch:
                    row = build_row(key, cells, read_filter)
                    if row is not None:
                        yield row

                if len(batch) < batch_size:
                    return

                # smallest key strictly greater than the last one
                next_key = batch[-1][0] + b"\x00"
        else:
            keys = sorted(set(rows))
            for i in range(0, len(keys), batch_size):
                batch = await self._store.run_read(
                    self._store.backend.get_many,
                    self._db,
                    keys[i:i + batch_size],
                )
                for key, cells in batch:
                    row = build_row(key, cells, read_filter)
                    if row is not None:
                        yield row


class LMDBStore:
    """
    Wide-column store backed by a single LMDB environment.

    LMDB is fully synchronous: reads are offloaded to a pool of reader
    threads and writes to a dedicated writer pool, so the event loop is
    never blocked. Row scans proceed in short batches, each inside its own
    read transaction.
    """

    def __init__(
        self,
        path: str,
        serializer: Serializer,
        map_size: int = 1 << 30,
        max_dbs: int = 256,
        readahead: bool = True,
        writemap: bool = False,
        sync: bool = True,
        lock: bool = True,
        max_readers: int = 4,
        max_writers: int = 1,
        batch_size: int = 256,
    ) -> None:
        self.backend = LMDBBackend(
            path=path,
            serializer=serializer,
            map_size=map_size,
            max_dbs=max_dbs,
            readahead=readahead,
            writemap=writemap,
            sync=sync,
            lock=lock,
        )
        self.batch_size = batch_size
        self._read_pool = ThreadPoolExecutor(max_workers=max_readers)
        self._write_pool = ThreadPoolExecutor(max_workers=max_writers)
        self._tables: dict[str, LMDBTable] = {}
        self._closed = False

    @classmethod
    def open(cls, data_dir: Path, serializer: Serializer, **kwargs) -> "LMDBStore":
        data_dir.mkdir(parents=True, exist_ok=True)
        return cls(path=str(data_dir), serializer=serializer, **kwargs)

    def open_table(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            table = self._tables[name] = LMDBTable(self, name)
        return table

    async def run_read(self, fn, *args):
        self._check_open()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._read_pool, fn, *args)

    async def run_write(self, fn, *args):
        self._check_open()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._write_pool, fn, *args)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        def shutdown() -> None:
            self._read_pool.shutdown(wait=True)
            self._write_pool.shutdown(wait=True)
            self.backend.close()

        await asyncio.to_thread(shutdown)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("LMDB store is closed")
