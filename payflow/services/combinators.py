"""Outcome Combinators — all_of, race_first, all_settled over independent tasks.

Invariants:
    - Tasks start concurrently, in declaration order; none waits on another
    - Each combinator call settles at most once (one-shot guard future)
    - Late settlements of losing / short-circuited tasks are dropped, never
      re-trigger a continuation, and never raise into the event loop
    - Losing tasks are not cancelled: they run to completion in the background

Design Decisions:
    - Explicit done-callbacks over asyncio.gather/wait: the guard future makes
      the "settle once, discard the rest" rule visible in one place
    - Abandoned tasks kept in a module-level set until done: the event loop
      only holds weak references to tasks
    - A Task is a zero-argument callable returning an awaitable, so the
      combinator (not the caller) decides when work starts
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from payflow.core.outcome import Err, Ok, Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")
Task = Callable[[], Awaitable[T]]

_in_flight: set[asyncio.Future] = set()


async def _run(task: Task) -> Any:
    return await task()


def _release(fut: asyncio.Future) -> None:
    _in_flight.discard(fut)
    if not fut.cancelled():
        # Marks the exception as retrieved for tasks nobody awaits.
        fut.exception()


def _start(tasks: Sequence[Task]) -> list[asyncio.Future]:
    futures = []
    for task in tasks:
        fut = asyncio.ensure_future(_run(task))
        _in_flight.add(fut)
        fut.add_done_callback(_release)
        futures.append(fut)
    return futures


def in_flight_count() -> int:
    """Tasks started by a combinator that have not settled yet."""
    return len(_in_flight)


async def all_of(tasks: Sequence[Task[T]]) -> list[T]:
    """All values in declaration order, or the first error to settle."""
    futures = _start(tasks)
    if not futures:
        return []
    settled: asyncio.Future = asyncio.get_running_loop().create_future()
    remaining = len(futures)

    def on_done(fut: asyncio.Future) -> None:
        nonlocal remaining
        if settled.done():
            logger.debug("all_of: discarding late settlement")
            return
        if fut.cancelled():
            settled.cancel()
            return
        exc = fut.exception()
        if exc is not None:
            settled.set_exception(exc)
            return
        remaining -= 1
        if remaining == 0:
            settled.set_result([f.result() for f in futures])

    for fut in futures:
        fut.add_done_callback(on_done)
    return await settled


async def race_first(tasks: Sequence[Task[T]]) -> T:
    """Value or error of whichever task settles first."""
    if not tasks:
        raise ValueError("race_first needs at least one task")
    futures = _start(tasks)
    settled: asyncio.Future = asyncio.get_running_loop().create_future()

    def on_done(fut: asyncio.Future) -> None:
        if settled.done():
            logger.debug("race_first: discarding losing settlement")
            return
        if fut.cancelled():
            settled.cancel()
        elif fut.exception() is not None:
            settled.set_exception(fut.exception())
        else:
            settled.set_result(fut.result())

    for fut in futures:
        fut.add_done_callback(on_done)
    return await settled


async def all_settled(tasks: Sequence[Task[T]]) -> list[Outcome[T]]:
    """Every task's Outcome in declaration order. Never raises for task errors."""
    futures = _start(tasks)
    if not futures:
        return []
    settled: asyncio.Future = asyncio.get_running_loop().create_future()
    outcomes: list[Outcome | None] = [None] * len(futures)
    remaining = len(futures)

    def settle_at(index: int) -> Callable[[asyncio.Future], None]:
        def on_done(fut: asyncio.Future) -> None:
            nonlocal remaining
            if settled.done():
                return
            if fut.cancelled():
                outcomes[index] = Err(asyncio.CancelledError())
            elif fut.exception() is not None:
                outcomes[index] = Err(fut.exception())
            else:
                outcomes[index] = Ok(fut.result())
            remaining -= 1
            if remaining == 0:
                settled.set_result(list(outcomes))
        return on_done

    for i, fut in enumerate(futures):
        fut.add_done_callback(settle_at(i))
    return await settled
