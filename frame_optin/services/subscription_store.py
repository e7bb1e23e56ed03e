"""Redis-backed subscription store keyed by wallet address."""

import asyncio
import logging
import secrets
from datetime import UTC, datetime

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError

from frame_optin.core.errors import SubscribeClaimLost, SubscriptionStoreError
from frame_optin.schemas.subscriber import ConsentState, Subscriber

logger = logging.getLogger(__name__)

SUBSCRIBER_KEY_PREFIX = "subscriber:"
CLAIM_KEY_PREFIX = "subscribe-claim:"

# Claim TTL when the caller does not configure one
DEFAULT_CLAIM_TTL = 30  # seconds


def _subscriber_key(address: str) -> str:
    return f"{SUBSCRIBER_KEY_PREFIX}{address.lower()}"


def _claim_key(address: str) -> str:
    return f"{CLAIM_KEY_PREFIX}{address.lower()}"


class SubscriptionStore:
    """Durable record of which addresses are subscribed.

    Concurrent clicks for one address are serialised by ``claim``: a
    ``SET NX`` on a per-address key, so the exclusion holds across every
    instance sharing the Redis database. The holder keeps the claim alive
    with ``keep_claim`` and commits with ``set_subscribed(token=...)``,
    which only writes while the claim still carries its token.

    Expects a client created with ``decode_responses=True``.
    """

    def __init__(self, redis: aioredis.Redis, claim_ttl: int = DEFAULT_CLAIM_TTL) -> None:
        self.redis = redis
        self.claim_ttl = claim_ttl

    async def get(self, address: str) -> Subscriber | None:
        """Load the subscriber record for ``address``, if any."""
        try:
            raw = await self.redis.get(_subscriber_key(address))
        except RedisError as exc:
            raise SubscriptionStoreError(f"Failed to read subscriber {address}") from exc
        return self._parse(raw, address)

    async def set_subscribed(self, address: str, *, token: str | None = None) -> Subscriber:
        """Mark ``address`` subscribed, keeping any recorded consent state.

        With ``token`` the write is conditional: it happens atomically with a
        check that the subscribe claim still holds that token.

        Raises:
            SubscribeClaimLost: The claim expired or another click took it.
            SubscriptionStoreError: Redis is unreachable.
        """
        if token is None:
            subscriber = self._subscribed_record(await self.get(address), address)
            await self._put(subscriber)
        else:
            subscriber = await self._commit_under_claim(address, token)
        logger.info("Marked %s subscribed", subscriber.address)
        return subscriber

    async def set_consent_state(self, address: str, state: ConsentState) -> Subscriber:
        """Record the consent state for ``address``, creating the record if needed."""
        existing = await self.get(address)
        subscriber = (
            existing.model_copy(update={"consent_state": state, "updated_at": datetime.now(UTC)})
            if existing
            else Subscriber(address=address, consent_state=state, updated_at=datetime.now(UTC))
        )
        await self._put(subscriber)
        return subscriber

    async def claim(self, address: str) -> str | None:
        """Take the per-address subscribe claim.

        Returns the claim token, or None when another click holds the claim.
        """
        token = secrets.token_hex(8)
        try:
            acquired = await self.redis.set(_claim_key(address), token, nx=True, ex=self.claim_ttl)
        except RedisError as exc:
            raise SubscriptionStoreError(f"Failed to claim {address}") from exc
        return token if acquired else None

    async def extend(self, address: str, token: str) -> bool:
        """Reset the claim TTL if the claim still belongs to ``token``."""
        key = _claim_key(address)

        async def _refresh(pipe: Pipeline) -> bool:
            if await pipe.get(key) != token:
                return False
            pipe.multi()
            pipe.expire(key, self.claim_ttl)
            return True

        try:
            return await self.redis.transaction(_refresh, key, value_from_callable=True)
        except RedisError as exc:
            raise SubscriptionStoreError(f"Failed to extend claim on {address}") from exc

    async def keep_claim(self, address: str, token: str) -> None:
        """Renew the claim every third of its TTL until cancelled or lost.

        Run as a background task for as long as the holder is working.
        """
        interval = self.claim_ttl / 3
        while True:
            await asyncio.sleep(interval)
            try:
                held = await self.extend(address, token)
            except SubscriptionStoreError:
                logger.warning("Could not renew subscribe claim for %s, retrying", address)
                continue
            if not held:
                logger.warning("Subscribe claim for %s expired while held", address)
                return

    async def release(self, address: str, token: str) -> None:
        """Drop the claim if it still belongs to ``token``.

        A failed release is logged and left to expire with its TTL.
        """
        key = _claim_key(address)

        async def _drop(pipe: Pipeline) -> None:
            if await pipe.get(key) != token:
                return
            pipe.multi()
            pipe.delete(key)

        try:
            await self.redis.transaction(_drop, key)
        except RedisError:
            logger.warning("Failed to release subscribe claim for %s; expires in %ss", address, self.claim_ttl)

    async def _commit_under_claim(self, address: str, token: str) -> Subscriber:
        claim_key = _claim_key(address)
        subscriber_key = _subscriber_key(address)

        async def _commit(pipe: Pipeline) -> Subscriber:
            if await pipe.get(claim_key) != token:
                raise SubscribeClaimLost(address)
            existing = self._parse(await pipe.get(subscriber_key), address)
            subscriber = self._subscribed_record(existing, address)
            pipe.multi()
            pipe.set(subscriber_key, subscriber.model_dump_json())
            return subscriber

        try:
            return await self.redis.transaction(
                _commit, claim_key, subscriber_key, value_from_callable=True
            )
        except RedisError as exc:
            raise SubscriptionStoreError(f"Failed to write subscriber {address}") from exc

    @staticmethod
    def _subscribed_record(existing: Subscriber | None, address: str) -> Subscriber:
        now = datetime.now(UTC)
        return Subscriber(
            address=existing.address if existing else address,
            subscribed=True,
            consent_state=existing.consent_state if existing else ConsentState.UNKNOWN,
            subscribed_at=now,
            updated_at=now,
        )

    @staticmethod
    def _parse(raw: str | None, address: str) -> Subscriber | None:
        if raw is None:
            return None
        try:
            return Subscriber.model_validate_json(raw)
        except ValidationError:
            logger.error("Corrupt subscriber record for %s, treating as absent", address)
            return None

    async def _put(self, subscriber: Subscriber) -> None:
        try:
            await self.redis.set(_subscriber_key(subscriber.address), subscriber.model_dump_json())
        except RedisError as exc:
            raise SubscriptionStoreError(f"Failed to write subscriber {subscriber.address}") from exc
