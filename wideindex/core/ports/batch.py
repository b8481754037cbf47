from typing import Iterator, Protocol


class ReadBatchIterator(Protocol):
    """
    Forward-only cursor over the (range value, value) pairs of a ReadBatch.

    `range_value()` and `value()` are only valid after `next()` returned
    True. Once exhausted, `next()` keeps returning False. Iterators are
    neither restartable nor safe for concurrent use.
    """

    def next(self) -> bool:
        ...

    def range_value(self) -> bytes:
        ...

    def value(self) -> bytes:
        ...


class ReadBatch(Protocol):
    def iterator(self) -> ReadBatchIterator:
        ...

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        ...
