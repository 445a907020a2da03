import asyncio

import structlog

from wisdom.config import Settings
from wisdom.config import settings as default_settings
from wisdom.logging_config import setup_logging
from wisdom.middleware.connections import ConnectionCounter, ConnectionLimiter, StreamHandler
from wisdom.middleware.logging import LoggingMiddleware
from wisdom.protocol import ProtocolHandler, QuoteSource
from wisdom.services.algorithms import get_algorithm
from wisdom.services.quote_service import QuoteProvider, load_quotes
from wisdom.services.signing_service import ChallengeSigner

logger = structlog.get_logger()


def create_handler(
    settings: Settings,
    connections: ConnectionCounter,
    quotes: QuoteSource | None = None,
) -> ProtocolHandler:
    """Wire the protocol handler from settings. Quote loading errors propagate."""
    if quotes is None:
        quotes = QuoteProvider(load_quotes(settings.quotes_file))

    return ProtocolHandler(
        algorithm=get_algorithm(settings.pow_algorithm, settings.pow_max_iterations),
        signer=ChallengeSigner(settings.hmac_secret.encode()),
        quotes=quotes,
        connections=connections,
        settings=settings,
    )


def create_app(
    settings: Settings,
    connections: ConnectionCounter | None = None,
    quotes: QuoteSource | None = None,
) -> StreamHandler:
    """Handler wrapped in connection logging and the listener-level cap."""
    if connections is None:
        connections = ConnectionCounter()
    handler = create_handler(settings, connections, quotes)
    return ConnectionLimiter(LoggingMiddleware(handler.handle), connections, settings.conn_limit)


async def start_server(settings: Settings, app: StreamHandler) -> asyncio.Server:
    server = await asyncio.start_server(
        app,
        host=settings.server_host,
        port=settings.server_port,
        limit=settings.stream_buffer_bytes,
    )
    logger.info(
        "server_listening",
        addresses=[f"{s.getsockname()[0]}:{s.getsockname()[1]}" for s in server.sockets],
        algorithm=settings.pow_algorithm,
        conn_limit=settings.conn_limit,
    )
    return server


async def serve(settings: Settings = default_settings) -> None:
    """Run the Word of Wisdom server until cancelled. Bind failures propagate."""
    server = await start_server(settings, create_app(settings))
    async with server:
        await server.serve_forever()


def main() -> None:
    setup_logging(default_settings)
    try:
        asyncio.run(serve(default_settings))
    except KeyboardInterrupt:
        logger.info("server_stopped")


if __name__ == "__main__":
    main()
