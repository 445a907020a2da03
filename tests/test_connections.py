"""Tests for connection accounting and the listener-level cap."""

import asyncio
import contextlib

import pytest

from wisdom.middleware.connections import ConnectionCounter, ConnectionLimiter


class FakeWriter:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass


def test_counter_track():
    counter = ConnectionCounter()
    with counter.track():
        assert counter.active == 1
        with counter.track():
            assert counter.active == 2
    assert counter.active == 0


def test_counter_decrements_on_error():
    counter = ConnectionCounter()
    with pytest.raises(RuntimeError):
        with counter.track():
            raise RuntimeError("boom")
    assert counter.active == 0


def test_limit_must_be_positive():
    async def app(reader, writer):
        pass

    with pytest.raises(ValueError):
        ConnectionLimiter(app, ConnectionCounter(), 0)


@pytest.mark.asyncio
async def test_limiter_caps_concurrency():
    counter = ConnectionCounter()
    release = asyncio.Event()
    served = 0

    async def app(reader, writer):
        nonlocal served
        served += 1
        await release.wait()

    limiter = ConnectionLimiter(app, counter, limit=2)
    writers = [FakeWriter() for _ in range(5)]
    tasks = [asyncio.create_task(limiter(None, w)) for w in writers]
    await asyncio.sleep(0.05)

    assert counter.active == 2
    # Over-limit connections are refused right away, not queued
    assert sum(t.done() for t in tasks) == 3
    assert sum(w.closed for w in writers) == 3

    release.set()
    await asyncio.gather(*tasks)

    assert served == 2
    assert counter.active == 0


@pytest.mark.asyncio
async def test_slot_is_reusable_after_release():
    counter = ConnectionCounter()

    async def app(reader, writer):
        pass

    limiter = ConnectionLimiter(app, counter, limit=1)
    first, second = FakeWriter(), FakeWriter()
    await limiter(None, first)
    await limiter(None, second)

    assert not first.closed
    assert not second.closed


@pytest.mark.asyncio
async def test_over_limit_sockets_are_closed_not_queued():
    counter = ConnectionCounter()
    release = asyncio.Event()

    async def app(reader, writer):
        await release.wait()
        writer.close()

    limiter = ConnectionLimiter(app, counter, limit=1)
    srv = await asyncio.start_server(limiter, host="127.0.0.1", port=0)
    host, port = srv.sockets[0].getsockname()[:2]

    held_reader, held_writer = await asyncio.open_connection(host, port)
    await asyncio.sleep(0.05)
    assert counter.active == 1

    extra = [await asyncio.open_connection(host, port) for _ in range(20)]
    try:
        for reader, _ in extra:
            # Silent clients see EOF promptly instead of waiting for a slot
            with contextlib.suppress(ConnectionError):
                assert await asyncio.wait_for(reader.read(), 1.0) == b""
        assert counter.active == 1
    finally:
        release.set()
        for _, writer in [*extra, (held_reader, held_writer)]:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()
        srv.close()
        await srv.wait_closed()

    await asyncio.sleep(0.05)
    assert counter.active == 0
