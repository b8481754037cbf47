from dataclasses import dataclass

from wideindex.core.models.row import ReadFilter, RowRange

NULL = b"\xff"


@dataclass(frozen=True)
class ReadPlan:
    """
    Physical fetch descriptor for one logical query.

    Exactly one of `row_key` (single-row read) and `row_range` (row scan)
    is set. The value-equality filter is never part of a plan: it is
    applied to the values once they have been read.
    """
    table_name: str
    read_filter: ReadFilter | None = None
    row_key: bytes | None = None
    row_range: RowRange | None = None

    def __post_init__(self) -> None:
        if (self.row_key is None) == (self.row_range is None):
            raise ValueError("ReadPlan requires exactly one of row_key and row_range")


def bounded_range(start: bytes) -> tuple[bytes, bytes]:
    """
    Bounds of an open-ended range starting at `start`, closed by the
    maximal byte used as sentinel.
    """
    return start, NULL


def prefix_bounds(prefix: bytes) -> tuple[bytes, bytes]:
    return prefix, prefix + NULL
