import asyncio
import logging
from collections.abc import Sequence
from contextlib import aclosing
from dataclasses import dataclass, field

from wideindex.core.errors import UnknownRowError
from wideindex.core.helpers.filter import QueryCallback, query_filter
from wideindex.core.helpers.parallel import BatchCallback, do_parallel_queries, drain
from wideindex.core.models.config import ClientConfig
from wideindex.core.models.entry import IndexQuery
from wideindex.core.models.row import ReadFilter
from wideindex.core.ports.store import Table, WideColumnStore
from wideindex.core.storage.codec import ColumnKeyCodec, LegacyKeyCodec
from wideindex.core.storage.iterators import ColumnKeyBatch, RowBatch


class LegacyQueryExecutor:
    """
    Reads legacy-encoded indexes: every logical query becomes one row
    range scan, each matching physical row being one result.
    """

    def __init__(self, store: WideColumnStore, codec: LegacyKeyCodec, config: ClientConfig) -> None:
        self._store = store
        self._codec = codec
        self._config = config
        self._logger = logging.getLogger("core.storage.executor")

    async def query(self, query: IndexQuery, callback: BatchCallback) -> None:
        plan = self._codec.plan(query)
        table = self._store.open_table(plan.table_name)

        try:
            async with aclosing(table.read_rows(plan.row_range, plan.read_filter)) as rows:
                async for row in rows:
                    batch = RowBatch(row, self._codec.column_family)
                    # the store can only filter values by regex, so compare here
                    if query.value_equal is not None and batch.value() != query.value_equal:
                        continue
                    if not callback(batch):
                        return
        except Exception as ex:
            self._logger.error(
                f"Row range read failed on {query.table_name}/{query.hash_value}: {ex}"
            )
            raise

    async def query_pages(self, queries: Sequence[IndexQuery], callback: QueryCallback) -> None:
        await do_parallel_queries(
            self.query,
            queries,
            callback,
            parallelism=self._config.query_parallelism,
        )


@dataclass
class _TableQueries:
    name: str
    queries: dict[bytes, list[IndexQuery]] = field(default_factory=dict)
    """
    Physical row key -> queries targeting that row. Built before any read
    is issued and only read by the page workers.
    """


class ColumnKeyQueryExecutor:
    """
    Reads column-key encoded indexes: every logical query targets exactly
    one physical row, the hash value, whose columns are the results.
    """

    def __init__(self, store: WideColumnStore, codec: ColumnKeyCodec, config: ClientConfig) -> None:
        self._store = store
        self._codec = codec
        self._config = config
        self._logger = logging.getLogger("core.storage.executor")

    async def query(self, query: IndexQuery, callback: BatchCallback) -> None:
        plan = self._codec.plan(query)
        table = self._store.open_table(plan.table_name)

        try:
            row = await table.read_row(plan.row_key, plan.read_filter)
        except Exception as ex:
            self._logger.error(f"Row read failed on {query.table_name}/{query.hash_value}: {ex}")
            raise

        if row is None:
            return

        items = row.cells.get(self._codec.column_family)
        if not items:
            return

        if query.value_equal is not None:
            items = [item for item in items if item.value == query.value_equal]
            if not items:
                return

        callback(ColumnKeyBatch(items, self._codec.column_family))

    async def query_pages(self, queries: Sequence[IndexQuery], callback: QueryCallback) -> None:
        # Pages fetch whole rows; range and value constraints are applied
        # on the client.
        callback = query_filter(callback)

        tables: dict[str, _TableQueries] = {}
        for query in queries:
            tq = tables.get(query.table_name)
            if tq is None:
                tq = tables[query.table_name] = _TableQueries(name=query.table_name)
            row_key = self._codec.row_key(query.hash_value)
            tq.queries.setdefault(row_key, []).append(query)

        page_size = max(self._config.max_row_reads, 1)
        results: asyncio.Queue[BaseException | None] = asyncio.Queue()
        tasks: list[asyncio.Task] = []

        for tq in tables.values():
            table = self._store.open_table(tq.name)
            rows = list(tq.queries)
            for i in range(0, len(rows), page_size):
                page = rows[i:i + page_size]
                tasks.append(asyncio.create_task(
                    self._read_page(table, tq, page, callback, results)
                ))

        self._logger.debug(
            f"Fanning out {len(queries)} queries over {len(tasks)} pages "
            f"in {len(tables)} tables"
        )

        err = await drain(results, len(tasks), tasks)
        if err is not None:
            raise err

    async def _read_page(
        self,
        table: Table,
        tq: _TableQueries,
        page: list[bytes],
        callback: QueryCallback,
        results: asyncio.Queue[BaseException | None],
    ) -> None:
        try:
            await self._scan_page(table, tq, page, callback)
        except Exception as ex:
            self._logger.error(f"Page of {len(page)} rows failed on {tq.name}: {ex}", exc_info=ex)
            results.put_nowait(ex)
        except BaseException as ex:
            results.put_nowait(ex)
            raise
        else:
            results.put_nowait(None)

    async def _scan_page(
        self,
        table: Table,
        tq: _TableQueries,
        page: list[bytes],
        callback: QueryCallback,
    ) -> None:
        family = self._codec.column_family
        read_filter = ReadFilter(family=family)

        # rows come back in key order, not in page order
        async with aclosing(table.read_rows(page, read_filter)) as rows:
            async for row in rows:
                queries = tq.queries.get(row.key)
                if queries is None:
                    raise UnknownRowError(tq.name, row.key)

                items = row.cells.get(family)
                if not items:
                    continue

                for query in queries:
                    if not callback(query, ColumnKeyBatch(items, family)):
                        return
