from collections.abc import Callable
from typing import Iterator

from wideindex.core.models.entry import IndexQuery
from wideindex.core.ports.batch import ReadBatch

QueryCallback = Callable[[IndexQuery, ReadBatch], bool]


class FilteredBatch:
    """Materialized (range value, value) pairs that passed a query's constraints."""

    def __init__(self, items: list[tuple[bytes, bytes]]) -> None:
        self.items = items

    def iterator(self) -> "FilteredIterator":
        return FilteredIterator(self.items)

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        return iter(self.items)


class FilteredIterator:
    def __init__(self, items: list[tuple[bytes, bytes]]) -> None:
        self._items = items
        self._i = -1

    def next(self) -> bool:
        if self._i < len(self._items):
            self._i += 1
        return self._i < len(self._items)

    def range_value(self) -> bytes:
        return self._items[self._i][0]

    def value(self) -> bytes:
        return self._items[self._i][1]


def query_filter(callback: QueryCallback) -> QueryCallback:
    """
    Wrap a query callback so that each batch is restricted to the entries
    matching the query's range prefix, range start and value constraints.

    Reads that can only fetch whole rows rely on this to honour the query
    bounds. Batches left empty by the filter are not passed on.
    """
    def filtered(query: IndexQuery, batch: ReadBatch) -> bool:
        if not query.is_filtered:
            return callback(query, batch)

        items = [
            (range_value, value)
            for range_value, value in batch
            if query.matches(range_value, value)
        ]
        if not items:
            return True

        return callback(query, FilteredBatch(items))

    return filtered
