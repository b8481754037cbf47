import logging
from collections.abc import Sequence

from wideindex.core.errors import BulkWriteError
from wideindex.core.helpers.filter import QueryCallback
from wideindex.core.helpers.parallel import BatchCallback
from wideindex.core.models.config import ClientConfig
from wideindex.core.models.entry import IndexEntry, IndexQuery
from wideindex.core.ports.store import WideColumnStore
from wideindex.core.storage.batch import IndexWriteBatch
from wideindex.core.storage.codec import ColumnKeyCodec, KeyCodec, LegacyKeyCodec
from wideindex.core.storage.executor import ColumnKeyQueryExecutor, LegacyQueryExecutor


class IndexClient:
    """
    Index storage client over a wide-column store.

    The key encoding is chosen at construction from `config.column_key` and
    never changes afterwards.
    """

    def __init__(self, store: WideColumnStore, config: ClientConfig) -> None:
        self._store = store
        self._config = config
        self._logger = logging.getLogger("core.client")

        self._codec: KeyCodec
        self._executor: LegacyQueryExecutor | ColumnKeyQueryExecutor
        if config.column_key:
            codec = ColumnKeyCodec(config.column_family)
            self._executor = ColumnKeyQueryExecutor(store, codec, config)
        else:
            codec = LegacyKeyCodec(config.column_family)
            self._executor = LegacyQueryExecutor(store, codec, config)
        self._codec = codec

    @property
    def codec(self) -> KeyCodec:
        return self._codec

    @property
    def config(self) -> ClientConfig:
        return self._config

    def new_write_batch(self) -> IndexWriteBatch:
        return IndexWriteBatch(self._codec)

    async def batch_write(self, batch: IndexWriteBatch) -> None:
        """
        Commit a write batch with one bulk request per table.

        The first failing row, or request, aborts the commit. Tables and
        rows already written stay written. A batch is committed at most
        once; since writes are idempotent sets, a failed commit is retried
        by rebuilding the batch.
        """
        batch.seal()
        for table_name, rows in batch.tables.items():
            table = self._store.open_table(table_name)
            row_keys = list(rows)
            mutations = [rows[row_key] for row_key in row_keys]

            self._logger.debug(f"Writing {len(row_keys)} rows to {table_name}")
            errs = await table.apply_bulk(row_keys, mutations)

            for row_key, err in zip(row_keys, errs):
                if err is not None:
                    self._logger.error(f"Failed to write row {row_key!r} to {table_name}: {err}")
                    raise BulkWriteError(table_name, row_key, err) from err

    async def write(self, entries: Sequence[IndexEntry]) -> None:
        batch = self.new_write_batch()
        for entry in entries:
            batch.add(entry.table_name, entry.hash_value, entry.range_value, entry.value)
        await self.batch_write(batch)

    async def query(self, query: IndexQuery, callback: BatchCallback) -> None:
        """
        Run a single logical query, passing each non-empty result batch to
        `callback`. Returning False from the callback stops the read.
        """
        await self._executor.query(query, callback)

    async def query_pages(self, queries: Sequence[IndexQuery], callback: QueryCallback) -> None:
        """
        Run many logical queries concurrently. `callback(query, batch)` is
        called for every non-empty result batch; results already delivered
        stay delivered if an error is raised afterwards.
        """
        await self._executor.query_pages(queries, callback)

    async def close(self) -> None:
        await self._store.close()
