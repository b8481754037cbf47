from abc import ABC, abstractmethod
from typing import Iterator

from wideindex.core.errors import CorruptRowFault
from wideindex.core.models.row import ReadItem, Row
from wideindex.core.storage.codec import LegacyKeyCodec


class _IterableBatch(ABC):
    @abstractmethod
    def iterator(self): ...

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        it = self.iterator()
        while it.next():
            yield it.range_value(), it.value()


class ColumnKeyBatch(_IterableBatch):
    """Columns of one column-key row, each column being one index entry."""

    def __init__(self, items: list[ReadItem], column_family: str) -> None:
        self.items = items
        self.column_prefix = column_family.encode() + b":"

    def iterator(self) -> "ColumnKeyIterator":
        return ColumnKeyIterator(self)


class ColumnKeyIterator:
    def __init__(self, batch: ColumnKeyBatch) -> None:
        self._batch = batch
        self._i = -1

    def next(self) -> bool:
        if self._i < len(self._batch.items):
            self._i += 1
        return self._i < len(self._batch.items)

    def range_value(self) -> bytes:
        return self._batch.items[self._i].column.removeprefix(self._batch.column_prefix)

    def value(self) -> bytes:
        return self._batch.items[self._i].value


class RowBatch(_IterableBatch):
    """
    A single legacy-encoded row. Rows are read one at a time, so a batch
    always holds exactly one index entry.
    """

    def __init__(self, row: Row, column_family: str) -> None:
        self.row = row
        self.column_family = column_family

    def iterator(self) -> "RowBatchIterator":
        return RowBatchIterator(self)

    def value(self) -> bytes:
        cells = self.row.cells.get(self.column_family, [])
        if len(cells) != 1:
            raise CorruptRowFault(self.row.key, len(cells))
        return cells[0].value


class RowBatchIterator:
    def __init__(self, batch: RowBatch) -> None:
        self._batch = batch
        self._consumed = False

    def next(self) -> bool:
        if self._consumed:
            return False
        self._consumed = True
        return True

    def range_value(self) -> bytes:
        # everything before the first separator is the hash value
        _, range_value = LegacyKeyCodec.decode(self._batch.row.key)
        return range_value

    def value(self) -> bytes:
        return self._batch.value()
