from dataclasses import dataclass

import pytest
import pytest_asyncio

from tests.test_utils import TEST_SECRET, FixedQuoteProvider
from wisdom.config import Settings
from wisdom.main import create_app, start_server
from wisdom.middleware.connections import ConnectionCounter
from wisdom.services.signing_service import ChallengeSigner


@dataclass
class RunningServer:
    host: str
    port: int
    connections: ConnectionCounter


@pytest.fixture
def test_settings():
    """Settings with a deterministic secret and short deadlines."""
    return Settings(
        server_host="127.0.0.1",
        server_port=0,
        hmac_secret=TEST_SECRET,
        pow_algorithm="hashcash-sha256",
        command_timeout_seconds=0.5,
        payload_timeout_seconds=0.5,
        connection_timeout_seconds=2.0,
    )


@pytest.fixture
def signer():
    return ChallengeSigner(TEST_SECRET.encode())


@pytest_asyncio.fixture
async def server(test_settings):
    """Start the TCP server on an ephemeral port with a fixed reward."""
    connections = ConnectionCounter()
    app = create_app(test_settings, connections=connections, quotes=FixedQuoteProvider())
    srv = await start_server(test_settings, app)
    host, port = srv.sockets[0].getsockname()[:2]

    yield RunningServer(host=host, port=port, connections=connections)

    srv.close()
    await srv.wait_closed()
