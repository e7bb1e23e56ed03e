"""Error kinds raised by the subscription and consent flows.

Collaborators translate transport failures (httpx, redis, malformed JSON)
into one of these before they reach the orchestrator, so every failure a
click can hit has a name and a user-facing label.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from frame_optin.schemas.subscriber import ConsentState


class OptInError(Exception):
    """Base class for all opt-in flow failures."""


class InvalidFrameRequest(OptInError):
    """The frame click payload failed validation."""


class IdentityNotFound(OptInError):
    """The directory has no verified address for a social id."""

    def __init__(self, fid: int) -> None:
        super().__init__(f"No verified address for fid {fid}")
        self.fid = fid


class DirectoryLookupFailed(OptInError):
    """The directory service could not be reached or answered garbage."""


class PresenceCheckFailed(OptInError):
    """Reachability on the messaging network could not be determined."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Presence check failed for {address}")
        self.address = address


class MessageDeliveryFailed(OptInError):
    """Opening the conversation or sending the opt-in message failed."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Opt-in message delivery failed for {address}")
        self.address = address


class ConsentUpdateFailed(OptInError):
    """Reading or changing consent state on the messaging network failed."""

    def __init__(self, address: str, *, state: "ConsentState | None" = None) -> None:
        super().__init__(f"Consent update failed for {address}")
        self.address = address
        # State read from the network before the failing write, if any
        self.state = state


class SubscriptionStoreError(OptInError):
    """The subscription store is unreachable."""


class SubscribeClaimLost(SubscriptionStoreError):
    """The per-address subscribe claim expired or changed hands before commit."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Subscribe claim for {address} is no longer held")
        self.address = address


class InvalidConsentToken(OptInError):
    """A consent-confirmation link is malformed, tampered with, or expired."""
