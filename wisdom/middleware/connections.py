"""
Connection accounting and listener-level admission.

The counter feeds difficulty calibration; the limiter caps simultaneous
connections independently of PoW difficulty.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

import structlog

StreamHandler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]

logger = structlog.get_logger()


class ConnectionCounter:
    """Live connection count. Only touched from the event loop thread."""

    def __init__(self) -> None:
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    def increment(self) -> None:
        self._active += 1

    def decrement(self) -> None:
        self._active -= 1

    @contextmanager
    def track(self) -> Iterator[None]:
        self.increment()
        try:
            yield
        finally:
            self.decrement()


class ConnectionLimiter:
    """
    Wrap a stream handler so at most `limit` connections are served at once.

    Connections over the limit are closed without being read from, so no
    socket or task is held for them. Admitted connections are counted.
    """

    def __init__(self, app: StreamHandler, counter: ConnectionCounter, limit: int):
        if limit <= 0:
            raise ValueError("Connection limit must be positive")
        self._app = app
        self._counter = counter
        self._semaphore = asyncio.Semaphore(limit)

    async def __call__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        # No await between the check and the acquire, so a free slot cannot be taken
        if self._semaphore.locked():
            logger.warning("connection_refused", reason="limit", active=self._counter.active)
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()
            return

        async with self._semaphore:
            with self._counter.track():
                await self._app(reader, writer)
