"""Dependency injection for FastAPI routes.

Process-wide handles (the shared httpx client and the Redis connection
pool) are created in the application lifespan and live on ``app.state``.
Everything else is built per request from them.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
import redis.asyncio as aioredis
from fastapi import Depends, Request

from frame_optin.core.config import settings
from frame_optin.integrations.directory.client import IdentityResolver
from frame_optin.integrations.xmtp.client import XmtpClient
from frame_optin.services.optin_messenger import OptInMessenger
from frame_optin.services.presence_service import PresenceService
from frame_optin.services.subscription_service import SubscriptionService
from frame_optin.services.subscription_store import SubscriptionStore


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound HTTP client created at startup."""
    client: httpx.AsyncClient = request.app.state.http_client
    return client


async def get_redis(request: Request) -> AsyncGenerator[aioredis.Redis, None]:
    """Yield a Redis client from the shared connection pool."""
    r = aioredis.Redis(connection_pool=request.app.state.redis_pool)
    try:
        yield r
    finally:
        await r.aclose()


HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
RedisClient = Annotated[aioredis.Redis, Depends(get_redis)]


def get_identity_resolver(http: HttpClient) -> IdentityResolver:
    return IdentityResolver(http, settings.directory_api_url, settings.directory_api_key)


def get_xmtp_client(http: HttpClient) -> XmtpClient:
    """Messaging client acting as the broadcasting (sender) identity."""
    return XmtpClient(
        http,
        settings.xmtp_gateway_url,
        settings.xmtp_sender_address,
        api_key=settings.xmtp_api_key,
        env=settings.xmtp_env,
    )


def get_subscription_store(redis: RedisClient) -> SubscriptionStore:
    return SubscriptionStore(redis, claim_ttl=settings.subscribe_claim_ttl_seconds)


def get_subscription_service(
    resolver: IdentityResolver = Depends(get_identity_resolver),
    store: SubscriptionStore = Depends(get_subscription_store),
    xmtp: XmtpClient = Depends(get_xmtp_client),
) -> SubscriptionService:
    """Subscription orchestrator wired to this request's collaborators."""
    return SubscriptionService(
        resolver=resolver,
        store=store,
        presence=PresenceService(xmtp),
        messenger=OptInMessenger(xmtp),
    )


__all__ = [
    "HttpClient",
    "RedisClient",
    "get_http_client",
    "get_identity_resolver",
    "get_redis",
    "get_subscription_service",
    "get_subscription_store",
    "get_xmtp_client",
]
