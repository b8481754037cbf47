from wideindex.core.models.row import Mutation
from wideindex.core.storage.codec import KeyCodec


class IndexWriteBatch:
    """
    Accumulates index writes grouped by table and physical row.

    A batch is built by one caller (no internal locking), committed once
    through IndexClient.batch_write() and then discarded. Adding the same
    (table, hash, range) twice keeps the value of the latest call.
    """

    def __init__(self, codec: KeyCodec) -> None:
        self._codec = codec
        self.tables: dict[str, dict[bytes, Mutation]] = {}
        self._committed = False

    def add(self, table_name: str, hash_value: str, range_value: bytes, value: bytes) -> None:
        self._check_open()

        rows = self.tables.get(table_name)
        if rows is None:
            rows = self.tables[table_name] = {}

        row_key, column_key = self._codec.encode(hash_value, range_value)
        mutation = rows.get(row_key)
        if mutation is None:
            mutation = rows[row_key] = Mutation()

        mutation.set(self._codec.column_family, column_key, value)

    def seal(self) -> None:
        """Mark the batch as committed. Sealing twice is an error."""
        self._check_open()
        self._committed = True

    def _check_open(self) -> None:
        if self._committed:
            raise ValueError("Write batch was already committed")

    def __len__(self) -> int:
        return sum(len(m) for rows in self.tables.values() for m in rows.values())
