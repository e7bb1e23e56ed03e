"""Farcaster frame action payload schemas."""

from pydantic import Field, ValidationError

from frame_optin.core.errors import InvalidFrameRequest
from frame_optin.schemas.common import BaseSchema

# Frames render at most four buttons
MAX_BUTTONS = 4


class UntrustedData(BaseSchema):
    """Unsigned portion of a frame action, as forwarded by the frame host."""

    fid: int = Field(ge=1)
    button_index: int = Field(alias="buttonIndex", ge=1, le=MAX_BUTTONS)
    url: str | None = None
    message_hash: str | None = Field(default=None, alias="messageHash")
    timestamp: int | None = None
    network: int | None = None
    cast_id: dict[str, object] | None = Field(default=None, alias="castId")


class TrustedData(BaseSchema):
    """Signed portion of a frame action (hex-encoded protobuf message)."""

    message_bytes: str = Field(alias="messageBytes")


class FrameActionRequest(BaseSchema):
    """Body POSTed by the frame host when a button is clicked."""

    untrusted_data: UntrustedData = Field(alias="untrustedData")
    trusted_data: TrustedData | None = Field(default=None, alias="trustedData")

    @property
    def fid(self) -> int:
        return self.untrusted_data.fid

    @property
    def button_index(self) -> int:
        return self.untrusted_data.button_index


def parse_frame_action(body: bytes) -> FrameActionRequest:
    """Validate a raw frame action body.

    Raises:
        InvalidFrameRequest: If the body is not JSON or misses required fields.
    """
    try:
        return FrameActionRequest.model_validate_json(body)
    except ValidationError as exc:
        raise InvalidFrameRequest(
            "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
        ) from exc
