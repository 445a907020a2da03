"""Shared test utilities."""

import asyncio
import contextlib
import time

TEST_SECRET = "test-secret"
REWARD = "wisdom"


class FixedQuoteProvider:
    """Lightweight stub returning the same reward every time."""

    def __init__(self, quote: str = REWARD):
        self.quote = quote

    def random(self) -> str:
        return self.quote


def unix_now() -> int:
    return int(time.time())


async def exchange(host: str, port: int, data: bytes, timeout: float = 3.0) -> bytes:
    """
    Send raw bytes and read until the server closes the connection.

    A reset counts as a close without reply.
    """
    reader, writer = await asyncio.open_connection(host, port)
    try:
        writer.write(data)
        await writer.drain()
        return await asyncio.wait_for(reader.read(), timeout)
    except ConnectionError:
        return b""
    finally:
        writer.close()
        with contextlib.suppress(ConnectionError):
            await writer.wait_closed()
