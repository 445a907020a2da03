"""
Session-less challenge/redeem protocol.

Line-oriented command, then JSON bodies, one command per connection:

1) Client sends "CHALLENGE\\n" -> server replies with a signed challenge
   JSON line and closes.
2) Client sends "QUOTE\\n", the signed challenge JSON and a solution JSON
   -> server verifies and replies with a single quote line.

There is no error frame. Every failure closes the connection silently so
clients cannot learn which check failed.
"""

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from wisdom.config import Settings
from wisdom.middleware.connections import ConnectionCounter
from wisdom.schemas.challenge import SignedChallenge, Solution, encode_line
from wisdom.services.difficulty_service import calibrate
from wisdom.services.pow_service import Algorithm, PowError
from wisdom.services.signing_service import ChallengeSigner

CMD_CHALLENGE = "CHALLENGE"
CMD_QUOTE = "QUOTE"

M = TypeVar("M", bound=BaseModel)

logger = structlog.get_logger()


class QuoteSource(Protocol):
    def random(self) -> str: ...


class ProtocolError(Exception):
    pass


class PayloadTooLargeError(ProtocolError):
    pass


class ChallengeRejectedError(ProtocolError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


async def read_line(reader: asyncio.StreamReader, max_bytes: int) -> bytes:
    """
    Read one newline-terminated line of at most `max_bytes` (newline included).

    Never buffers more than the stream's limit while looking for the newline.
    """
    try:
        line = await reader.readuntil(b"\n")
    except asyncio.LimitOverrunError as e:
        raise PayloadTooLargeError("Line exceeds read buffer") from e
    except asyncio.IncompleteReadError as e:
        raise ProtocolError("Connection closed before end of line") from e

    if len(line) > max_bytes:
        raise PayloadTooLargeError(f"Line of {len(line)} bytes exceeds {max_bytes}")
    return line


class PayloadReader:
    """Decode newline-delimited JSON bodies against a shared byte budget."""

    def __init__(self, reader: asyncio.StreamReader, limit: int):
        self._reader = reader
        self._remaining = limit

    async def read_model(self, model: type[M]) -> M:
        line = await read_line(self._reader, self._remaining)
        self._remaining -= len(line)
        # Models forbid extra fields, so unknown keys fail validation
        return model.model_validate_json(line)


class ProtocolHandler:
    """
    Serve exactly one command on a connection, then close it.

    All collaborators are injected so the handler can be exercised
    without a real listener.
    """

    def __init__(
        self,
        algorithm: Algorithm,
        signer: ChallengeSigner,
        quotes: QuoteSource,
        connections: ConnectionCounter,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        self._algorithm = algorithm
        self._signer = signer
        self._quotes = quotes
        self._connections = connections
        self._settings = settings
        self._clock = clock

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            async with asyncio.timeout(self._settings.connection_timeout_seconds):
                await self._serve(reader, writer)
        except ChallengeRejectedError as e:
            logger.info("quote_rejected", reason=e.reason)
        except ValidationError as e:
            logger.info("request_rejected", reason="malformed_payload", errors=e.error_count())
        except ProtocolError as e:
            logger.info("request_rejected", reason=type(e).__name__, error=str(e))
        except TimeoutError:
            logger.info("request_rejected", reason="timeout")
        except ConnectionError as e:
            logger.info("request_rejected", reason="connection_error", error=str(e))
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        command = await self._read_command(reader)

        if command == CMD_CHALLENGE:
            await self._issue_challenge(writer)
        elif command == CMD_QUOTE:
            await self._redeem(reader, writer)
        else:
            logger.warning("unknown_command", command=command)

    async def _read_command(self, reader: asyncio.StreamReader) -> str:
        # +1 for the newline itself
        line = await asyncio.wait_for(
            read_line(reader, self._settings.max_request_line_bytes + 1),
            timeout=self._settings.command_timeout_seconds,
        )
        return line.decode("utf-8", errors="replace").strip().upper()

    async def _issue_challenge(self, writer: asyncio.StreamWriter) -> None:
        difficulty = calibrate(self._connections.active)
        try:
            challenge = self._algorithm.new_challenge(difficulty)
        except PowError as e:
            logger.error("challenge_failed", algorithm=self._algorithm.name, error=str(e))
            return

        expires_at = int(self._clock()) + self._settings.challenge_ttl_seconds
        signed = SignedChallenge(
            challenge=challenge,
            expires_at=expires_at,
            sig=self._signer.sign(challenge, expires_at),
        )

        writer.write(encode_line(signed))
        await writer.drain()

        logger.info(
            "challenge_issued",
            algorithm=self._algorithm.name,
            difficulty=difficulty,
            active_connections=self._connections.active,
            expires_at=expires_at,
        )

    async def _redeem(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        payload = PayloadReader(reader, self._settings.max_payload_bytes)
        timeout = self._settings.payload_timeout_seconds

        # The solution is not even read until the challenge is authentic
        signed = await asyncio.wait_for(payload.read_model(SignedChallenge), timeout=timeout)

        if signed.expires_at <= 0 or int(self._clock()) > signed.expires_at:
            raise ChallengeRejectedError("expired")
        if not self._signer.verify(signed.challenge, signed.expires_at, signed.sig):
            raise ChallengeRejectedError("invalid_signature")

        solution = await asyncio.wait_for(payload.read_model(Solution), timeout=timeout)

        # Memory-hard verification must not stall other connections
        if not await asyncio.to_thread(self._algorithm.verify, signed.challenge, solution):
            raise ChallengeRejectedError("invalid_solution")

        writer.write(f"{self._quotes.random()}\n".encode())
        await writer.drain()

        logger.info("quote_served", algorithm=self._algorithm.name)
