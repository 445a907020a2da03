"""
Connection logging middleware with correlation ID support.

Generates a unique connection ID for each accepted connection, binds it to
the structlog context, and logs connection open/close with timing.

Privacy: never logs peer addresses, secrets, signatures or reward content.
"""

import asyncio
import secrets
import time

import structlog

from wisdom.middleware.connections import StreamHandler


def generate_connection_id() -> str:
    """Generate an 8-character connection ID."""
    return secrets.token_hex(4)


class LoggingMiddleware:
    """
    Middleware that logs connections and binds connection IDs.

    Logs:
    - connection_opened: connection_id
    - connection_closed: duration_ms, connection_id
    - connection_failed: error, duration_ms (unexpected handler errors)
    """

    def __init__(self, app: StreamHandler):
        self._app = app

    async def __call__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        start_time = time.perf_counter()

        # Each connection runs in its own task, so its context is isolated
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(connection_id=generate_connection_id())

        logger = structlog.get_logger()
        logger.debug("connection_opened")

        try:
            await self._app(reader, writer)
        except Exception as e:
            logger.error(
                "connection_failed",
                error=str(e),
                duration_ms=_elapsed_ms(start_time),
                exc_info=True,
            )
            raise
        logger.debug("connection_closed", duration_ms=_elapsed_ms(start_time))


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
