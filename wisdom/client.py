#!/usr/bin/env python3
"""
Reference client for the Word of Wisdom server.

Flow:
1. CHALLENGE -> signed challenge
2. Solve locally (CPU bound, off the event loop)
3. QUOTE + signed challenge + solution -> quote

Usage:
    python -m wisdom.client --host localhost --port 4000
"""

import argparse
import asyncio
import contextlib
import sys
import time

import structlog

from wisdom.config import settings
from wisdom.logging_config import setup_logging
from wisdom.protocol import CMD_CHALLENGE, CMD_QUOTE
from wisdom.schemas.challenge import SignedChallenge, Solution, encode_line
from wisdom.services.algorithms import ALGORITHMS, get_algorithm
from wisdom.services.pow_service import Algorithm, PowError

DEFAULT_TIMEOUT_SECONDS = 30.0

logger = structlog.get_logger()


class ClientError(RuntimeError):
    pass


class QuoteRejectedError(ClientError):
    """The server closed the connection without a reward."""


async def _exchange(host: str, port: int, request: bytes, timeout: float) -> bytes:
    """Send one request and read one response line."""
    async with asyncio.timeout(timeout):
        reader, writer = await asyncio.open_connection(host, port)
        try:
            writer.write(request)
            await writer.drain()
            return await reader.readline()
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


async def request_challenge(
    host: str, port: int, timeout: float = DEFAULT_TIMEOUT_SECONDS
) -> SignedChallenge:
    line = await _exchange(host, port, f"{CMD_CHALLENGE}\n".encode(), timeout)
    if not line:
        raise ClientError("Server closed the connection without a challenge")
    return SignedChallenge.model_validate_json(line)


async def request_quote(
    host: str,
    port: int,
    signed: SignedChallenge,
    solution: Solution,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    request = f"{CMD_QUOTE}\n".encode() + encode_line(signed) + encode_line(solution)
    try:
        line = await _exchange(host, port, request, timeout)
    except ConnectionError as e:
        raise QuoteRejectedError(f"Connection dropped: {e}") from e

    # A complete reply is newline-terminated; anything else is a rejection
    if not line.endswith(b"\n"):
        raise QuoteRejectedError("Server closed the connection without a quote")
    return line.decode().rstrip("\r\n")


async def fetch_quote(
    host: str, port: int, algorithm: Algorithm, timeout: float = DEFAULT_TIMEOUT_SECONDS
) -> str:
    """Request, solve and redeem a challenge. Returns the reward."""
    signed = await request_challenge(host, port, timeout)
    logger.info(
        "challenge_received",
        challenge=signed.challenge.challenge,
        expires_at=signed.expires_at,
    )

    start = time.perf_counter()
    solution = await asyncio.to_thread(algorithm.solve, signed.challenge)
    logger.info(
        "challenge_solved",
        nonce=solution.nonce,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )

    return await request_quote(host, port, signed, solution, timeout)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch a quote from a Word of Wisdom server")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=settings.server_port)
    parser.add_argument("--algorithm", choices=ALGORITHMS, default=settings.pow_algorithm)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SECONDS)
    args = parser.parse_args(argv)

    setup_logging(settings)
    algorithm = get_algorithm(args.algorithm, settings.pow_max_iterations)

    try:
        quote = asyncio.run(fetch_quote(args.host, args.port, algorithm, args.timeout))
    except (ClientError, PowError, ValueError, OSError, TimeoutError) as e:
        logger.error("quote_failed", error=str(e))
        return 1

    print(f"Quote from server:\n{quote}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
