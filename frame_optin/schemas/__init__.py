"""Pydantic schemas for API requests, responses, and stored records."""

from frame_optin.schemas.common import BaseSchema, HealthResponse
from frame_optin.schemas.frame import (
    FrameActionRequest,
    TrustedData,
    UntrustedData,
    parse_frame_action,
)
from frame_optin.schemas.subscriber import ConsentState, Subscriber

__all__ = [
    "BaseSchema",
    "ConsentState",
    "FrameActionRequest",
    "HealthResponse",
    "Subscriber",
    "TrustedData",
    "UntrustedData",
    "parse_frame_action",
]
