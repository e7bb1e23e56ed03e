"""Subscriber record persisted in the subscription store."""

import enum
from datetime import datetime

from frame_optin.schemas.common import BaseSchema


class ConsentState(str, enum.Enum):
    """Per-address consent state on the messaging network."""

    UNKNOWN = "unknown"
    ALLOWED = "allowed"
    DENIED = "denied"

    @classmethod
    def parse(cls, value: object) -> "ConsentState":
        """Map a gateway value onto a state; anything unrecognised is unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


class Subscriber(BaseSchema):
    """Subscription record keyed by wallet address.

    Holds no social-protocol identifier: the address is the only join key
    between the frame click and the messaging network.
    """

    address: str
    subscribed: bool = False
    consent_state: ConsentState = ConsentState.UNKNOWN
    subscribed_at: datetime | None = None
    updated_at: datetime | None = None
