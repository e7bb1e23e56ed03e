"""Pytest configuration and fixtures for the frame opt-in test suite.

Provides:
- Mock Redis (fakeredis) and a SubscriptionStore on top of it
- Collaborator doubles (identity resolver, messaging client) built on AsyncMock
- Disabled rate limiting
- Async HTTP test clients with dependency overrides
"""

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from frame_optin.core.deps import get_identity_resolver, get_redis, get_xmtp_client
from frame_optin.core.rate_limit import limiter
from frame_optin.integrations.directory.client import IdentityResolver
from frame_optin.integrations.xmtp.client import ConversationHandle
from frame_optin.main import app
from frame_optin.schemas.subscriber import ConsentState
from frame_optin.services.optin_messenger import OptInMessenger
from frame_optin.services.presence_service import PresenceService
from frame_optin.services.subscription_service import SubscriptionService
from frame_optin.services.subscription_store import SubscriptionStore

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_FID = 10952
UNKNOWN_FID = 99999
SUBSCRIBER_ADDRESS = "0xAbC0000000000000000000000000000000000001"
SENDER_ADDRESS = "0x5e4d000000000000000000000000000000000002"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Redis / store
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Provide a fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(fake_redis: fakeredis.aioredis.FakeRedis) -> SubscriptionStore:
    return SubscriptionStore(fake_redis, claim_ttl=30)


@pytest.fixture
def address() -> str:
    return SUBSCRIBER_ADDRESS


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_resolver(address: str) -> AsyncMock:
    """IdentityResolver double resolving every fid to the subscriber address."""
    resolver = AsyncMock(spec=IdentityResolver)
    resolver.resolve_address.return_value = address
    return resolver


@pytest.fixture
def mock_presence() -> AsyncMock:
    presence = AsyncMock(spec=PresenceService)
    presence.is_on_network.return_value = True
    return presence


@pytest.fixture
def mock_messenger() -> AsyncMock:
    messenger = AsyncMock(spec=OptInMessenger)
    messenger.send_opt_in.return_value = "msg-1"
    return messenger


@pytest.fixture
def subscription_service(
    mock_resolver: AsyncMock,
    store: SubscriptionStore,
    mock_presence: AsyncMock,
    mock_messenger: AsyncMock,
) -> SubscriptionService:
    return SubscriptionService(
        resolver=mock_resolver,
        store=store,
        presence=mock_presence,
        messenger=mock_messenger,
    )


class FakeConsentList:
    """In-memory consent list shared by every identity of a mock client."""

    def __init__(self) -> None:
        self.states: dict[str, ConsentState] = {}

    async def consent_state(self, address: str) -> ConsentState:
        return self.states.get(address, ConsentState.UNKNOWN)

    async def allow(self, addresses: list[str]) -> None:
        for a in addresses:
            self.states[a] = ConsentState.ALLOWED

    async def deny(self, addresses: list[str]) -> None:
        for a in addresses:
            self.states[a] = ConsentState.DENIED


@pytest.fixture
def consent_list() -> FakeConsentList:
    return FakeConsentList()


@pytest.fixture
def mock_xmtp(consent_list: FakeConsentList) -> MagicMock:
    """XmtpClient double: on-network peers, successful sends, in-memory consent."""
    client = MagicMock()
    client.address = SENDER_ADDRESS
    client.is_on_network = AsyncMock(return_value=True)
    client.new_conversation = AsyncMock(
        side_effect=lambda peer: ConversationHandle(topic=f"dm-{peer.lower()}", peer_address=peer)
    )
    client.send = AsyncMock(return_value="msg-1")
    client.contacts.refresh_consent_list = AsyncMock(return_value=None)
    client.contacts.consent_state = AsyncMock(side_effect=consent_list.consent_state)
    client.contacts.allow = AsyncMock(side_effect=consent_list.allow)
    client.contacts.deny = AsyncMock(side_effect=consent_list.deny)

    def _with_identity(identity: str) -> MagicMock:
        client.address = identity
        return client

    client.with_identity = MagicMock(side_effect=_with_identity)
    return client


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    fake_redis: fakeredis.aioredis.FakeRedis,
    mock_resolver: AsyncMock,
    mock_xmtp: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with Redis and external collaborators overridden."""

    async def _override_redis() -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
        yield fake_redis

    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_identity_resolver] = lambda: mock_resolver
    app.dependency_overrides[get_xmtp_client] = lambda: mock_xmtp

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def frame_action() -> dict[str, Any]:
    """A subscribe click as POSTed by the frame host."""
    return {
        "untrustedData": {
            "fid": TEST_FID,
            "buttonIndex": 1,
            "url": "http://test/api/v1/frame",
            "messageHash": "0xd2b1",
            "timestamp": 1706243218,
            "network": 1,
            "castId": {"fid": 226, "hash": "0xa48d"},
        },
        "trustedData": {"messageBytes": "d2b1ddc6c88e865810"},
    }
