from dataclasses import dataclass, field


@dataclass(frozen=True)
class ReadItem:
    row: bytes
    column: bytes
    """
    Fully qualified column: family + b":" + qualifier.
    """
    value: bytes


@dataclass
class Row:
    key: bytes
    cells: dict[str, list[ReadItem]] = field(default_factory=dict)


class Mutation:
    """
    Pending cell writes for a single physical row. Setting the same
    (family, qualifier) twice keeps only the latest value.
    """

    def __init__(self) -> None:
        self._cells: dict[tuple[str, bytes], bytes] = {}

    def set(self, family: str, qualifier: bytes, value: bytes) -> None:
        self._cells[(family, qualifier)] = value

    @property
    def cells(self) -> list[tuple[str, bytes, bytes]]:
        return [(family, qualifier, value) for (family, qualifier), value in self._cells.items()]

    def __len__(self) -> int:
        return len(self._cells)


@dataclass(frozen=True)
class RowRange:
    """Half-open range of row keys, [start, end). `end=None` is unbounded."""
    start: bytes
    end: bytes | None = None

    @classmethod
    def prefix(cls, prefix: bytes) -> "RowRange":
        return cls(start=prefix, end=prefix_successor(prefix))

    def __contains__(self, key: bytes) -> bool:
        return key >= self.start and (self.end is None or key < self.end)


@dataclass(frozen=True)
class ColumnRange:
    """Half-open range of column qualifiers, [start, end)."""
    start: bytes
    end: bytes | None = None

    def __contains__(self, qualifier: bytes) -> bool:
        return qualifier >= self.start and (self.end is None or qualifier < self.end)


@dataclass(frozen=True)
class ReadFilter:
    family: str | None = None
    columns: ColumnRange | None = None

    def accepts(self, family: str, qualifier: bytes) -> bool:
        if self.family is not None and family != self.family:
            return False
        if self.columns is not None:
            # column ranges are scoped to the filtered family
            return qualifier in self.columns
        return True


def prefix_successor(prefix: bytes) -> bytes | None:
    """
    Smallest key greater than every key starting with `prefix`,
    or None when no such key exists (empty or all-0xFF prefix).
    """
    for i in range(len(prefix) - 1, -1, -1):
        if prefix[i] != 0xFF:
            return prefix[:i] + bytes([prefix[i] + 1])
    return None


def build_row(key: bytes, cells: dict[str, dict[bytes, bytes]], read_filter: ReadFilter | None) -> Row | None:
    """
    Build a Row from a {family: {qualifier: value}} map, keeping only the
    cells accepted by `read_filter`. Returns None when nothing is left.
    """
    row = Row(key=key)
    for family in sorted(cells):
        items = [
            ReadItem(row=key, column=family.encode() + b":" + qualifier, value=value)
            for qualifier, value in sorted(cells[family].items())
            if read_filter is None or read_filter.accepts(family, qualifier)
        ]
        if items:
            row.cells[family] = items

    if not row.cells:
        return None
    return row
