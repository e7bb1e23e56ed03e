"""Subscription orchestrator: one frame click in, one status label out."""

import asyncio
import enum
import logging
from dataclasses import dataclass

from frame_optin.core.errors import (
    DirectoryLookupFailed,
    IdentityNotFound,
    InvalidFrameRequest,
    MessageDeliveryFailed,
    OptInError,
    PresenceCheckFailed,
    SubscribeClaimLost,
    SubscriptionStoreError,
)
from frame_optin.core.logging_config import bind_subscriber
from frame_optin.integrations.directory.client import IdentityResolver
from frame_optin.services.optin_messenger import OptInMessenger
from frame_optin.services.presence_service import PresenceService
from frame_optin.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)


class SubscriptionState(str, enum.Enum):
    """Where a click is in the subscribe flow."""

    NEW = "new"
    RESOLVING = "resolving"
    CHECKING_NETWORK = "checking_network"
    MESSAGING = "messaging"
    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"
    NOT_ON_NETWORK = "not_on_network"
    IN_PROGRESS = "in_progress"
    FAILED = "failed"


class SubscribeOutcome(str, enum.Enum):
    """Terminal result of a click. Each maps to exactly one button label."""

    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"
    NOT_ON_NETWORK = "not_on_network"
    IN_PROGRESS = "in_progress"
    RATE_LIMITED = "rate_limited"
    IDENTITY_NOT_FOUND = "identity_not_found"
    PRESENCE_CHECK_FAILED = "presence_check_failed"
    MESSAGE_DELIVERY_FAILED = "message_delivery_failed"
    INVALID_REQUEST = "invalid_request"
    ERROR = "error"

    @property
    def label(self) -> str:
        return OUTCOME_LABELS[self]


OUTCOME_LABELS: dict[SubscribeOutcome, str] = {
    SubscribeOutcome.SUBSCRIBED: "Subscribed! Check your inbox for a confirmation link.",
    SubscribeOutcome.ALREADY_SUBSCRIBED: "You are already subscribed",
    SubscribeOutcome.NOT_ON_NETWORK: "Address is not on the XMTP network",
    SubscribeOutcome.IN_PROGRESS: "Subscription in progress, try again shortly",
    SubscribeOutcome.RATE_LIMITED: "Too many requests, try again in a minute",
    SubscribeOutcome.IDENTITY_NOT_FOUND: "No verified address found for this account",
    SubscribeOutcome.PRESENCE_CHECK_FAILED: "Could not reach the XMTP network, try again",
    SubscribeOutcome.MESSAGE_DELIVERY_FAILED: "Could not send the confirmation message, try again",
    SubscribeOutcome.INVALID_REQUEST: "Invalid request",
    SubscribeOutcome.ERROR: "Something went wrong, please try again",
}

_ERROR_OUTCOMES: dict[type[OptInError], SubscribeOutcome] = {
    IdentityNotFound: SubscribeOutcome.IDENTITY_NOT_FOUND,
    DirectoryLookupFailed: SubscribeOutcome.ERROR,
    PresenceCheckFailed: SubscribeOutcome.PRESENCE_CHECK_FAILED,
    MessageDeliveryFailed: SubscribeOutcome.MESSAGE_DELIVERY_FAILED,
    # Listed before its base class
    SubscribeClaimLost: SubscribeOutcome.IN_PROGRESS,
    SubscriptionStoreError: SubscribeOutcome.ERROR,
    InvalidFrameRequest: SubscribeOutcome.INVALID_REQUEST,
}


def outcome_for_error(error: OptInError) -> SubscribeOutcome:
    """Map a surfaced error kind to its terminal outcome."""
    for error_type, outcome in _ERROR_OUTCOMES.items():
        if isinstance(error, error_type):
            return outcome
    return SubscribeOutcome.ERROR


@dataclass(frozen=True)
class SubscriptionResult:
    """What a click produced."""

    outcome: SubscribeOutcome
    address: str | None = None
    error: OptInError | None = None

    @property
    def label(self) -> str:
        return self.outcome.label

    @classmethod
    def failed(cls, error: OptInError, address: str | None = None) -> "SubscriptionResult":
        return cls(outcome=outcome_for_error(error), address=address, error=error)


class SubscriptionService:
    """Runs the subscribe state machine for one button click.

    Order matters: the store is read before any network I/O beyond identity
    resolution, and ``subscribed`` is written only after the opt-in message
    went out. A crash between send and write means a duplicate message on
    the next click, never a subscription nobody was told about.

    Everything after the claim runs with the claim renewed in the
    background, and the final write only commits while the claim still
    carries this click's token.
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        store: SubscriptionStore,
        presence: PresenceService,
        messenger: OptInMessenger,
    ) -> None:
        self.resolver = resolver
        self.store = store
        self.presence = presence
        self.messenger = messenger

    async def subscribe(self, fid: int) -> SubscriptionResult:
        """Handle a subscribe click from social id ``fid``.

        Never raises: every failure is mapped to an outcome with a label.
        """
        address: str | None = None
        state = SubscriptionState.NEW
        try:
            state = self._transition(state, SubscriptionState.RESOLVING)
            address = await self.resolver.resolve_address(fid)
            bind_subscriber(address)
            return await self._subscribe_address(address, state)
        except OptInError as exc:
            logger.warning(
                "Subscription state -> %s fid=%s address=%s error=%s",
                SubscriptionState.FAILED.value,
                fid,
                address,
                exc,
            )
            return SubscriptionResult.failed(exc, address)
        except Exception:
            logger.exception("Unexpected error handling subscribe click for fid %s", fid)
            return SubscriptionResult(outcome=SubscribeOutcome.ERROR, address=address)

    async def _subscribe_address(
        self, address: str, state: SubscriptionState
    ) -> SubscriptionResult:
        existing = await self.store.get(address)
        if existing and existing.subscribed:
            self._transition(state, SubscriptionState.ALREADY_SUBSCRIBED, address)
            return SubscriptionResult(SubscribeOutcome.ALREADY_SUBSCRIBED, address)

        token = await self.store.claim(address)
        if token is None:
            self._transition(state, SubscriptionState.IN_PROGRESS, address)
            return SubscriptionResult(SubscribeOutcome.IN_PROGRESS, address)

        # Gateway calls can outlast the claim TTL; renew it until the click ends
        keeper = asyncio.create_task(self.store.keep_claim(address, token))
        try:
            # A concurrent click may have committed between the first read and the claim
            existing = await self.store.get(address)
            if existing and existing.subscribed:
                self._transition(state, SubscriptionState.ALREADY_SUBSCRIBED, address)
                return SubscriptionResult(SubscribeOutcome.ALREADY_SUBSCRIBED, address)

            state = self._transition(state, SubscriptionState.CHECKING_NETWORK, address)
            if not await self.presence.is_on_network(address):
                self._transition(state, SubscriptionState.NOT_ON_NETWORK, address)
                return SubscriptionResult(SubscribeOutcome.NOT_ON_NETWORK, address)

            state = self._transition(state, SubscriptionState.MESSAGING, address)
            await self.messenger.send_opt_in(address)

            try:
                await self.store.set_subscribed(address, token=token)
            except SubscriptionStoreError:
                logger.error("Opt-in message sent to %s but the subscribed flag was not stored", address)
                raise

            self._transition(state, SubscriptionState.SUBSCRIBED, address)
            return SubscriptionResult(SubscribeOutcome.SUBSCRIBED, address)
        finally:
            keeper.cancel()
            await self.store.release(address, token)

    @staticmethod
    def _transition(
        current: SubscriptionState,
        new: SubscriptionState,
        address: str | None = None,
    ) -> SubscriptionState:
        logger.info("Subscription state %s -> %s address=%s", current.value, new.value, address)
        return new
