"""Consent confirmation: the second half of the double opt-in."""

import logging

from frame_optin.core.errors import ConsentUpdateFailed, SubscriptionStoreError
from frame_optin.integrations.xmtp.client import XmtpClient, XmtpGatewayError
from frame_optin.schemas.subscriber import ConsentState
from frame_optin.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)

# Manual two-way toggle: unknown and denied both flip to allowed
_NEXT_STATE: dict[ConsentState, ConsentState] = {
    ConsentState.UNKNOWN: ConsentState.ALLOWED,
    ConsentState.DENIED: ConsentState.ALLOWED,
    ConsentState.ALLOWED: ConsentState.DENIED,
}


def next_consent_state(current: ConsentState) -> ConsentState:
    """State a toggle moves ``current`` to."""
    return _NEXT_STATE[current]


class ConsentService:
    """Reads and toggles the consent state an identity holds for itself."""

    def __init__(self, client: XmtpClient, store: SubscriptionStore | None = None) -> None:
        self.client = client
        self.store = store

    @property
    def address(self) -> str:
        return self.client.address

    async def current_state(self) -> ConsentState:
        """Refresh the consent list and read the state for self."""
        try:
            await self.client.contacts.refresh_consent_list()
            return await self.client.contacts.consent_state(self.address)
        except XmtpGatewayError as exc:
            raise ConsentUpdateFailed(self.address) from exc

    async def toggle(self) -> ConsentState:
        """Flip consent for self and return the new state.

        Raises:
            ConsentUpdateFailed: If the network read or write fails. A failed
                write carries the state read before it in ``state``.
        """
        current = await self.current_state()
        new_state = next_consent_state(current)
        try:
            if new_state is ConsentState.ALLOWED:
                await self.client.contacts.allow([self.address])
            else:
                await self.client.contacts.deny([self.address])
        except XmtpGatewayError as exc:
            raise ConsentUpdateFailed(self.address, state=current) from exc

        logger.info("Consent for %s: %s -> %s", self.address, current.value, new_state.value)
        await self._record(new_state)
        return new_state

    async def last_known_state(self) -> ConsentState:
        """Consent state mirrored in the store, without touching the network."""
        if self.store is None:
            return ConsentState.UNKNOWN
        try:
            subscriber = await self.store.get(self.address)
        except SubscriptionStoreError:
            logger.warning("Could not read stored consent state for %s", self.address)
            return ConsentState.UNKNOWN
        return subscriber.consent_state if subscriber else ConsentState.UNKNOWN

    async def _record(self, state: ConsentState) -> None:
        # The network is authoritative; the stored copy is best effort
        if self.store is None:
            return
        try:
            await self.store.set_consent_state(self.address, state)
        except SubscriptionStoreError:
            logger.warning("Consent for %s changed to %s but was not recorded", self.address, state.value)
