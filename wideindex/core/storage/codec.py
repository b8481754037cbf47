from typing import Protocol

from wideindex.core.models.entry import IndexQuery
from wideindex.core.models.row import ColumnRange, ReadFilter, RowRange
from wideindex.core.storage.planner import ReadPlan, bounded_range, prefix_bounds


class KeyCodec(Protocol):
    """
    Maps logical (hash value, range value) keys onto the physical
    (row key, column qualifier) addressing of the store, and turns logical
    queries into physical read plans.

    A codec is selected once per client. Data written with one codec cannot
    be read with the other.
    """

    column_family: str

    def encode(self, hash_value: str, range_value: bytes) -> tuple[bytes, bytes]:
        """Return the (row key, column qualifier) of an index entry."""

    def row_key(self, hash_value: str) -> bytes:
        """Return the row key, or row key prefix, holding a hash value."""

    def plan(self, query: IndexQuery) -> ReadPlan:
        """Build the physical read plan of a logical query."""


class LegacyKeyCodec:
    """
    Composite-row layout:

        row key   = hash_value || 0x00 || range_value
        qualifier = b"c"

    Every index entry lives in its own physical row holding a single cell.
    Hash values must not contain the 0x00 separator.
    """
    SEPARATOR: bytes = b"\x00"
    COLUMN: bytes = b"c"

    def __init__(self, column_family: str = "f") -> None:
        self.column_family = column_family

    def encode(self, hash_value: str, range_value: bytes) -> tuple[bytes, bytes]:
        return self.row_key(hash_value) + range_value, self.COLUMN

    def row_key(self, hash_value: str) -> bytes:
        return hash_value.encode() + self.SEPARATOR

    @classmethod
    def decode(cls, row_key: bytes) -> tuple[str, bytes]:
        """
        Split a composite row key into (hash value, range value). The
        range value may itself contain the separator byte.
        """
        hash_part, sep, range_value = row_key.partition(cls.SEPARATOR)
        if not sep:
            raise ValueError(f"Row key {row_key!r} has no hash/range separator")
        return hash_part.decode(), range_value

    def plan(self, query: IndexQuery) -> ReadPlan:
        base = self.row_key(query.hash_value)

        if query.range_value_prefix:
            row_range = RowRange.prefix(base + query.range_value_prefix)
        elif query.range_value_start:
            start, end = bounded_range(query.range_value_start)
            row_range = RowRange(start=base + start, end=base + end)
        else:
            row_range = RowRange.prefix(base)

        return ReadPlan(table_name=query.table_name, row_range=row_range)


class ColumnKeyCodec:
    """
    Column-key layout:

        row key   = hash_value
        qualifier = range_value

    All entries of a hash value share one physical row, one column per
    range value. Range values may hold arbitrary bytes.
    """

    def __init__(self, column_family: str = "f") -> None:
        self.column_family = column_family

    def encode(self, hash_value: str, range_value: bytes) -> tuple[bytes, bytes]:
        # We could hash the row key for better distribution, but that would
        # make migrating between row key layouts impractical.
        return self.row_key(hash_value), range_value

    def row_key(self, hash_value: str) -> bytes:
        return hash_value.encode()

    def plan(self, query: IndexQuery) -> ReadPlan:
        columns = None
        if query.range_value_prefix:
            columns = ColumnRange(*prefix_bounds(query.range_value_prefix))
        elif query.range_value_start:
            columns = ColumnRange(*bounded_range(query.range_value_start))

        return ReadPlan(
            table_name=query.table_name,
            row_key=self.row_key(query.hash_value),
            read_filter=ReadFilter(family=self.column_family, columns=columns),
        )
