"""Error types raised by the index client."""


class IndexStoreError(Exception):
    """Base error for all index client errors."""


class UnknownRowError(IndexStoreError):
    """Raised when a multi-row read returns a row that was never requested."""

    def __init__(self, table_name: str, row_key: bytes) -> None:
        self.table_name = table_name
        self.row_key = row_key
        super().__init__(f"Got row for unknown query in table {table_name!r}: {row_key!r}")


class BulkWriteError(IndexStoreError):
    """
    Raised when at least one row of a bulk write failed. Only the first
    failing row is reported; other rows of the same request may have been
    applied.
    """

    def __init__(self, table_name: str, row_key: bytes, cause: Exception) -> None:
        self.table_name = table_name
        self.row_key = row_key
        self.cause = cause
        super().__init__(f"Failed to write row {row_key!r} to table {table_name!r}: {cause}")


class CorruptRowFault(BaseException):
    """
    A legacy-encoded row does not carry exactly one cell under the index
    column family. Returning any of its cells could hand wrong data to the
    caller, so this derives from BaseException and is not caught by
    `except Exception` handlers.
    """

    def __init__(self, row_key: bytes, cell_count: int) -> None:
        self.row_key = row_key
        self.cell_count = cell_count
        super().__init__(f"Bad response from store: row {row_key!r} has {cell_count} index cells, expected 1")
