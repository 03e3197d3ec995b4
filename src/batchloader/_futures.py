__all__ = ['Deferred', 'adispatch']

import asyncio
from collections.abc import Generator, Sequence
from inspect import isawaitable
from types import TracebackType
from typing import Any

from loguru import logger

from ._types import BatchFn, Some

type Job[K, R] = tuple[K, asyncio.Future[R]]


class _HideFrame:
    """Drop frame of `with` block from traceback of escaping exception"""

    def __enter__(self) -> None:
        pass

    def __exit__(
        self, tp, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        if exc is not None and (tb := exc.__traceback__ or tb):
            exc.__traceback__ = tb.tb_next


hide_frame = _HideFrame()


class Deferred[R]:
    """Shared handle of a single load result.

    Can be awaited by any number of independent waiters. Cancellation of
    a waiter only stops that waiter, the result itself is settled by
    the loader alone.
    """

    __slots__ = ('_fut',)

    def __init__(self, fut: asyncio.Future[R]) -> None:
        self._fut = fut

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._fut!r})'

    def __await__(self) -> Generator[Any, None, R]:
        return self._wait().__await__()

    async def _wait(self) -> R:
        # asyncio.wait does not propagate cancellation into awaited futures
        if not self._fut.done():
            await asyncio.wait({self._fut})
        with hide_frame:
            return self._fut.result()

    def done(self) -> bool:
        return self._fut.done()

    def result(self) -> R:
        return self._fut.result()

    def exception(self) -> BaseException | None:
        return self._fut.exception()


async def adispatch[K, R](
    fn: BatchFn[K, R], jobs: Sequence[Job[K, R]]
) -> BaseException | None:
    """Call `fn` once for all `jobs` and settle their futures in order.

    Returns exception if whole batch failed, otherwise None.
    Per-item exceptions are delivered to their futures only.
    """
    if not jobs:
        return None

    obj: Some[Sequence] | BaseException
    try:
        with hide_frame:
            ret = fn([k for k, _ in jobs])
            if isawaitable(ret):
                ret = await ret
    except asyncio.CancelledError:
        for _, f in jobs:
            f.cancel()
        raise
    except BaseException as exc:  # noqa: BLE001
        obj = exc
    else:
        obj = _check_protocol(ret, len(jobs))

    if isinstance(obj, Some):
        for (_, f), res in zip(jobs, obj.x):
            if isinstance(res, BaseException):
                _fail(f, res)
            elif not f.done():
                f.set_result(res)
        return None

    logger.debug(
        'Batch of {} keys failed with {}', len(jobs), type(obj).__name__
    )
    for _, f in jobs:
        _fail(f, obj)
    return obj


def _fail(f: asyncio.Future, exc: BaseException) -> None:
    if f.done():  # Dispatch was cancelled
        return
    f.set_exception(exc)
    f.exception()  # Mark exception as retrieved


def _check_protocol(ret: object, n: int) -> Some[Sequence] | BaseException:
    if not isinstance(ret, Sequence) or isinstance(ret, str | bytes):
        return TypeError(
            f'Call returned non-sequence. Got {type(ret).__name__}'
        )
    if len(ret) != n:
        return RuntimeError(
            f'Call with {n} arguments '
            f'incorrectly returned {len(ret)} results'
        )
    return Some(ret)
