import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Sequence

from wideindex.core.helpers.filter import QueryCallback
from wideindex.core.models.entry import IndexQuery
from wideindex.core.ports.batch import ReadBatch

DEFAULT_PARALLELISM = 100

BatchCallback = Callable[[ReadBatch], bool]
QueryFn = Callable[[IndexQuery, BatchCallback], Awaitable[None]]

logger = logging.getLogger("core.helpers.parallel")


async def drain(
    results: asyncio.Queue[BaseException | None],
    count: int,
    tasks: Sequence[asyncio.Task],
) -> Exception | None:
    """
    Wait for exactly `count` completion reports and return the first error
    reported (in completion order), if any.

    A report that is not an Exception (a fault or a cancellation) aborts
    the wait: every task is cancelled and the report is raised. The same
    happens when the waiting coroutine is itself cancelled.
    """
    first_err: Exception | None = None
    try:
        for _ in range(count):
            err = await results.get()
            if err is None:
                continue
            if not isinstance(err, Exception):
                raise err
            if first_err is None:
                first_err = err
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    await asyncio.gather(*tasks, return_exceptions=True)
    return first_err


async def do_parallel_queries(
    query_fn: QueryFn,
    queries: Sequence[IndexQuery],
    callback: QueryCallback,
    parallelism: int = DEFAULT_PARALLELISM,
) -> None:
    """
    Run `query_fn` once per query, on at most `parallelism` concurrent
    workers pulling from a shared work queue. Every batch produced for a
    query is passed to `callback(query, batch)`.

    All queries are run to completion even when some fail; the first
    error by completion order is then raised.
    """
    if not queries:
        return

    if len(queries) == 1:
        query = queries[0]
        await query_fn(query, functools.partial(callback, query))
        return

    queue: asyncio.Queue[IndexQuery] = asyncio.Queue()
    for query in queries:
        queue.put_nowait(query)

    results: asyncio.Queue[BaseException | None] = asyncio.Queue()

    async def worker() -> None:
        while not queue.empty():
            query = queue.get_nowait()
            try:
                await query_fn(query, functools.partial(callback, query))
            except Exception as ex:
                logger.debug(f"Query on {query.table_name}/{query.hash_value} failed: {ex}")
                results.put_nowait(ex)
            except BaseException as ex:
                results.put_nowait(ex)
                raise
            else:
                results.put_nowait(None)

    workers = [
        asyncio.create_task(worker())
        for _ in range(min(len(queries), max(parallelism, 1)))
    ]

    err = await drain(results, len(queries), workers)
    if err is not None:
        raise err
