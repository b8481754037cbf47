import threading

import lmdb

from wideindex.core.ports.serializer import Serializer

RowCells = dict[str, dict[bytes, bytes]]


class LMDBBackend:
    """
    Synchronous wide-column layout on top of LMDB.

    Each table is a named LMDB database. Each physical row is one LMDB
    record: the key is the raw row key, so LMDB's lexicographic key order
    is the physical row order, and the value is the serialized
    {family: {qualifier: value}} map of the row's cells.
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
    ) -> None:
        self._env = lmdb.open(
            path,
            map_size=map_size,
            max_dbs=max_dbs,
            lock=lock,
            writemap=writemap,
            sync=sync,
            readahead=readahead,
        )
        self._serializer = serializer
        self._dbis: dict[bytes, object] = {}
        self._dbis_lock = threading.Lock()

    def get(self, table: bytes, row_key: bytes) -> RowCells | None:
        dbi = self._get_dbi(table)
        with self._env.begin(db=dbi, write=False) as txn:
            raw = txn.get(row_key)
        if raw is None:
            return None
        return self._serializer.deserialize(raw)

    def get_many(self, table: bytes, row_keys: list[bytes]) -> list[tuple[bytes, RowCells]]:
        """
        Fetch the given rows in key order, skipping missing ones.
        """
        dbi = self._get_dbi(table)
        items: list[tuple[bytes, RowCells]] = []
        with self._env.begin(db=dbi, write=False) as txn:
            for row_key in sorted(set(row_keys)):
                raw = txn.get(row_key)
                if raw is not None:
                    items.append((row_key, self._serializer.deserialize(raw)))
        return items

    def apply(self, table: bytes, row_key: bytes, cells: list[tuple[str, bytes, bytes]]) -> None:
        """
        Set the given cells of one row in a single write transaction,
        keeping the other cells of the row.
        """
        dbi = self._get_dbi(table)
        with self._env.begin(db=dbi, write=True) as txn:
            raw = txn.get(row_key)
            row: RowCells = {} if raw is None else self._serializer.deserialize(raw)
            for family, qualifier, value in cells:
                row.setdefault(family, {})[qualifier] = value
            txn.put(row_key, self._serializer.serialize(row))

    def scan(
        self,
        table: bytes,
        start: bytes,
        end: bytes | None = None,
        limit: int | None = None,
    ) -> list[tuple[bytes, RowCells]]:
        """
        Return the rows whose key lies in [start, end), in key order.

        Parameters
        ----------
        start : bytes
            Inclusive lower bound. An empty start begins at the first row.

        end : bytes | None
            Exclusive upper bound. None scans to the end of the table.

        limit : int | None
            Maximum number of rows to return. Callers page through large
            ranges by restarting from just after the last returned key.
        """
        if limit is not None and limit <= 0:
            return []

        dbi = self._get_dbi(table)
        items: list[tuple[bytes, RowCells]] = []

        with self._env.begin(write=False) as txn:
            with txn.cursor(db=dbi) as cursor:
                if not cursor.set_range(start):
                    return []

                while True:
                    key = cursor.key()
                    if end is not None and key >= end:
                        break

                    items.append((key, self._serializer.deserialize(cursor.value())))
                    if limit is not None and len(items) >= limit:
                        break

                    if not cursor.next():
                        break

        return items

    def close(self) -> None:
        self._dbis.clear()
        self._env.close()

    def _get_dbi(self, name: bytes) -> object:
        with self._dbis_lock:
            dbi = self._dbis.get(name)
            if dbi is None:
                dbi = self._env.open_db(name)
                self._dbis[name] = dbi
            return dbi
