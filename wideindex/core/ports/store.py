from typing import AsyncIterator, Protocol

from wideindex.core.models.row import Mutation, ReadFilter, Row, RowRange


class Table(Protocol):
    """
    Handle on one table of a sorted wide-column store.

    Rows are addressed by a byte row key and hold, per column family, a
    mapping from column qualifier to a single live value. The interface
    exposes no versioning: the latest written value of a cell is the only
    one ever returned.
    """

    async def apply_bulk(
        self,
        row_keys: list[bytes],
        mutations: list[Mutation],
    ) -> list[Exception | None]:
        """
        Apply `mutations[i]` to row `row_keys[i]` for every i, in one request.

        Each row mutation is applied independently: there is no atomicity
        across rows. The returned list holds, for every row, None on success
        or the exception that prevented that row from being written.
        Failures affecting the whole request are raised instead.
        """

    async def read_row(
        self,
        row_key: bytes,
        read_filter: ReadFilter | None = None,
    ) -> Row | None:
        """
        Read a single row, restricted to the cells accepted by `read_filter`.
        Returns None if the row does not exist or no cell matches.
        """

    def read_rows(
        self,
        rows: RowRange | list[bytes],
        read_filter: ReadFilter | None = None,
    ) -> AsyncIterator[Row]:
        """
        Stream the rows selected by a row range or an explicit list of row
        keys, in physical key order (never in the order of the given list).
        Rows with no cell accepted by `read_filter` are skipped.

        Stopping iteration early (closing the iterator) stops the scan.
        """


class WideColumnStore(Protocol):
    """
    Entry point to a wide-column store. A store hands out Table handles by
    name; opening a handle is cheap and does not perform any I/O.
    """

    def open_table(self, name: str) -> Table:
        """
        Return a handle on the named table.
        """

    async def close(self) -> None:
        """
        Release every resource held by the store (connections, environments,
        thread pools). The store must not be used after close().
        """
