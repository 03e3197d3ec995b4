__all__ = ['BatchLoader']

import asyncio
from collections.abc import Hashable, Iterable, Sequence
from functools import partial
from typing import Literal, overload

from loguru import logger

from ._cache import ResultCache
from ._futures import Deferred, adispatch
from ._keys import make_key
from ._schedule import defer
from ._types import BatchFn, KeyFn, Schedule

# Cache key (None if cache is disabled), load key, result handle
type _Entry[K, R] = tuple[Hashable | None, K, Deferred[R]]


class BatchLoader[K, R]:
    """Coalesce individual loads into batched calls, and cache results.

    Every `load` issued before the scheduled flush fires ends up in a single
    call of `batch_fn`. Results are cached per key as `Deferred` handles, so
    repeated loads of the same key share the same handle and never reach
    `batch_fn` again until the key is cleared.

    Parameters:
    - batch_fn - gets ordered keys, returns (or resolves to) sequence of
      the same length, where each item is either result or exception.
    - batch_size - max keys per `batch_fn` call, or None for no limit.
    - cache - set to False to disable result caching.
    - key_fn - maps load key to cache key.
    - schedule - arranges deferred flush, see `defer` and `defer_by`.

    Must be used from within running event loop.
    """

    def __init__(
        self,
        batch_fn: BatchFn[K, R],
        /,
        *,
        batch_size: int | None = None,
        cache: bool = True,
        key_fn: KeyFn = make_key,
        schedule: Schedule = defer,
    ) -> None:
        if not callable(batch_fn):
            msg = f'batch_fn must be callable. Got {type(batch_fn)}'
            raise TypeError(msg)
        if batch_size is not None and batch_size < 1:
            msg = f'batch_size must be None or positive. Got {batch_size}'
            raise ValueError(msg)

        self.batch_fn = batch_fn
        self.batch_size = batch_size
        self.key_fn = key_fn
        self.schedule = schedule
        self.cache: ResultCache[Hashable, Deferred[R]] | None = (
            ResultCache() if cache else None
        )
        self._queue: list[_Entry[K, R]] = []
        self._tasks = set[asyncio.Task]()

    def __repr__(self) -> str:
        args = [f'queued={len(self._queue)}', f'running={len(self._tasks)}']
        if self.cache is not None:
            args.append(f'cache={self.cache}')
        return f'{type(self).__name__}({", ".join(args)})'

    # ---------------------------------- loads -------------------------------

    def load(self, key: K) -> Deferred[R]:
        """Get handle of result for `key`, scheduling fetch if necessary."""
        ckey = self.key_fn(key) if self.cache is not None else None
        if (
            self.cache is not None
            and (d := self.cache.get(ckey)) is not None
        ):
            return d

        f = asyncio.get_running_loop().create_future()
        d = Deferred(f)
        self._queue.append((ckey, key, d))
        if self.cache is not None:
            self.cache.set(ckey, d)
            f.add_done_callback(partial(self._drop_cancelled, ckey, d))

        # First job of this epoch, arm flush
        if len(self._queue) == 1:
            self.schedule(partial(self._flush, self._queue))
        return d

    @overload
    def load_many(
        self, keys: Iterable[K], *, return_exceptions: Literal[False] = ...
    ) -> asyncio.Future[list[R]]: ...

    @overload
    def load_many(
        self, keys: Iterable[K], *, return_exceptions: Literal[True]
    ) -> asyncio.Future[list[R | BaseException]]: ...

    def load_many(
        self, keys: Iterable[K], *, return_exceptions: bool = False
    ) -> asyncio.Future[list]:
        """Load all `keys`, and join their results preserving order.

        Fails with the first failure, unless `return_exceptions` is set,
        then exceptions are returned in place of results.
        Cancellation of returned future does not affect cached results.
        """
        ds = [self.load(k) for k in keys]
        return asyncio.gather(*ds, return_exceptions=return_exceptions)

    # ---------------------------------- cache -------------------------------

    def clear(self, key: K) -> None:
        """Forget cached result for `key`. Running batch is unaffected."""
        if self.cache is not None:
            self.cache.delete(self.key_fn(key))

    def clear_all(self) -> None:
        """Forget all cached results."""
        if self.cache is not None:
            self.cache.clear()

    def prime(self, key: K, value: R | BaseException) -> None:
        """Put `value` into cache, unless `key` is already there.

        If `value` is an exception, subsequent loads of `key` fail with it.
        """
        if self.cache is None:
            return
        ckey = self.key_fn(key)
        if ckey in self.cache:
            return

        f = asyncio.get_running_loop().create_future()
        if isinstance(value, BaseException):
            f.set_exception(value)
            f.exception()  # Mark exception as retrieved
        else:
            f.set_result(value)
        self.cache.set(ckey, Deferred(f))

    # --------------------------------- dispatch -----------------------------

    def dispatch(self) -> asyncio.Task[None] | None:
        """Flush queue now, without waiting for scheduled flush.

        Returns task resolving all currently queued loads, if any.
        """
        return self._flush(self._queue)

    def _flush(
        self, queue: list[_Entry[K, R]]
    ) -> asyncio.Task[None] | None:
        # Epoch was already flushed manually, or nothing to do
        if queue is not self._queue or not queue:
            return None

        self._queue = []  # Following loads start new epoch
        t = asyncio.get_running_loop().create_task(self._run(queue))
        self._tasks.add(t)
        t.add_done_callback(self._tasks.discard)
        return t

    async def _run(self, entries: list[_Entry[K, R]]) -> None:
        step = self.batch_size or len(entries)
        try:
            for i in range(0, len(entries), step):
                chunk = entries[i : i + step]
                jobs = [(k, d._fut) for _, k, d in chunk]
                logger.debug('Dispatching batch of {} keys', len(jobs))
                if await adispatch(self.batch_fn, jobs) is not None:
                    self._evict(chunk)
        except asyncio.CancelledError:
            # Unblock waiters of not yet dispatched chunks
            for _, _, d in entries:
                d._fut.cancel()
            raise

    def _evict(self, entries: Sequence[_Entry[K, R]]) -> None:
        # Allow retry of whole failed batch, but keep newer entries if any
        for ckey, _, d in entries:
            self._drop(ckey, d)

    def _drop_cancelled(
        self, ckey: Hashable, d: Deferred[R], f: asyncio.Future[R]
    ) -> None:
        if f.cancelled():
            self._drop(ckey, d)

    def _drop(self, ckey: Hashable, d: Deferred[R]) -> None:
        if self.cache is not None and self.cache.store.get(ckey) is d:
            self.cache.delete(ckey)
