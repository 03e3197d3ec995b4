__all__ = ['defer', 'defer_by']

import asyncio

from ._types import Get, Schedule


def defer(callback: Get[object]) -> None:
    """Run `callback` after the next full iteration of the running loop.

    First `call_soon` lets all callbacks already in the ready queue run
    (i.e. tasks woken in this iteration), second one lets everything they
    scheduled in turn also run. Any `load` issued meanwhile joins the batch.

    Window is exactly two loop iterations: a task, that yields twice
    (e.g. two `await asyncio.sleep(0)`) before its `load`, gets into the
    next batch. Use `defer_by` for wider window.
    """
    loop = asyncio.get_running_loop()
    loop.call_soon(loop.call_soon, callback)


def defer_by(delay: float) -> Schedule:
    """Collect batch during `delay` seconds since the first `load`."""
    if delay < 0:
        msg = f'Delay must be non-negative. Got {delay}'
        raise ValueError(msg)

    def schedule(callback: Get[object]) -> None:
        asyncio.get_running_loop().call_later(delay, callback)

    return schedule
