"""Worker pools: run one function over many inputs and collect results in call order

Three strategies are offered:

- ``process``: a ``multiprocessing.Pool``; the input is chunked across
  independent worker processes and ``Pool.map`` returns results in input order.
- ``thread`` / ``futures``: ``concurrent.futures`` executors over threads or
  processes with the same map semantics.
- ``asyncio``: a single event loop on one thread. Coroutine functions are
  awaited directly; plain callables are handed to ``asyncio.to_thread``.
"""

import asyncio
import inspect
import logging
import multiprocessing
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Sequence


logger = logging.getLogger(__name__)


class ExecutorKind(str, Enum):
    process = "process"
    thread = "thread"
    futures = "futures"
    asyncio = "asyncio"


def resolve_workers(workers: int, n_items: int) -> int:
    """Worker count for a run: 0 means one per CPU, capped by the number of items."""
    if workers < 0:
        raise ValueError(f"workers must be >= 0, got {workers}")
    count = workers or os.cpu_count() or 1
    return max(1, min(count, n_items))


def _chunksize(n_items: int, workers: int) -> int:
    """Same heuristic as Pool.map: about four chunks per worker."""
    size, extra = divmod(n_items, workers * 4)
    return size + 1 if extra else max(size, 1)


def _make_executor(kind: ExecutorKind, workers: int) -> Executor:
    if kind == ExecutorKind.thread:
        return ThreadPoolExecutor(max_workers=workers)
    return ProcessPoolExecutor(max_workers=workers)


async def _gather(func: Callable, items: Sequence, workers: int) -> list:
    """Run func over items on the current loop with at most `workers` in flight."""
    limit = asyncio.Semaphore(workers)
    is_coro = inspect.iscoroutinefunction(func)

    async def _one(item):
        async with limit:
            if is_coro:
                return await func(item)
            return await asyncio.to_thread(func, item)

    return list(await asyncio.gather(*(_one(item) for item in items)))


def run_tasks(
    func: Callable[[Any], Any],
    items: Iterable,
    kind: ExecutorKind | str = ExecutorKind.process,
    workers: int = 0,
    ) -> list:
    """Apply func to every item and return the results in input order.

    The first exception raised by a task propagates to the caller. Process
    strategies require func and items to be picklable.
    """
    kind = ExecutorKind(kind)
    items = list(items)
    if not items:
        return []
    n = resolve_workers(workers, len(items))
    logger.debug("running %d task(s) with %s x%d", len(items), kind.value, n)

    if kind == ExecutorKind.asyncio:
        return asyncio.run(_gather(func, items, n))

    if n == 1:
        if inspect.iscoroutinefunction(func):
            raise TypeError(f"{kind.value} strategy cannot run coroutine function {func.__name__}")
        return [func(item) for item in items]

    if kind == ExecutorKind.process:
        with multiprocessing.Pool(processes=n) as pool:
            return pool.map(func, items, chunksize=_chunksize(len(items), n))

    with _make_executor(kind, n) as executor:
        return list(executor.map(func, items))


def iter_completed(
    func: Callable[[Any], Any],
    items: Iterable,
    kind: ExecutorKind | str = ExecutorKind.futures,
    workers: int = 0,
    ) -> Iterator[tuple[int, Any]]:
    """Yield (index, result) pairs as tasks finish.

    Only the executor strategies can report completion order; ``process`` and
    ``asyncio`` yield in input order once every task is done. A single
    worker runs inline and yields as each task returns.
    """
    kind = ExecutorKind(kind)
    items = list(items)
    if not items:
        return
    n = resolve_workers(workers, len(items))
    if kind not in (ExecutorKind.thread, ExecutorKind.futures):
        yield from enumerate(run_tasks(func, items, kind, workers))
        return
    if n == 1:
        if inspect.iscoroutinefunction(func):
            raise TypeError(f"{kind.value} strategy cannot run coroutine function {func.__name__}")
        for i, item in enumerate(items):
            yield i, func(item)
        return

    with _make_executor(kind, n) as executor:
        futures = {executor.submit(func, item): i for i, item in enumerate(items)}
        for future in as_completed(futures):
            yield futures[future], future.result()
