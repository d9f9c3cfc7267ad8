"""
Cooperative cancellation for a single test run.

A ``CancelToken`` is created by ``PhaseController.start()`` and handed to
every probe and transport call.  ``guard()`` lets an in-flight request be
interrupted the moment the token fires rather than at the next poll.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import SampleFailure, TestCancelled

T = TypeVar("T")


class CancelToken:
    """Single-shot cancellation flag backed by an ``asyncio.Event``."""

    def __init__(self) -> None:
        self._event: Optional[asyncio.Event] = None
        self._cancelled = False

    def _get_event(self) -> asyncio.Event:
        # Created lazily so the token can be built outside a running loop.
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Fire the token.  Calling it again does nothing."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise TestCancelled()

    async def sleep(self, seconds: float) -> None:
        """Wait *seconds*, raising ``TestCancelled`` early if the token fires."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise TestCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token fires first.

        The inner task is cancelled when the token wins the race, so the
        underlying request is torn down instead of being left to time out.
        """
        if self._cancelled:
            # Close the coroutine so it is not reported as never awaited.
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            raise TestCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._get_event().wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not waiter.done():
                waiter.cancel()
            if not task.done():
                task.cancel()
                try:
                    await task
                except (asyncio.CancelledError, SampleFailure):
                    pass

        if self._cancelled:
            if task.done() and not task.cancelled():
                task.exception()  # mark retrieved; the run is discarded anyway
            raise TestCancelled()
        return task.result()
