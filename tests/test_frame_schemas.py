"""Tests for frame action payload validation."""

import json

import pytest

from frame_optin.core.errors import InvalidFrameRequest
from frame_optin.schemas.frame import parse_frame_action
from tests.conftest import TEST_FID


class TestParseFrameAction:
    """parse_frame_action()."""

    def test_minimal_payload(self) -> None:
        body = json.dumps({"untrustedData": {"fid": TEST_FID, "buttonIndex": 1}}).encode()

        action = parse_frame_action(body)

        assert action.fid == TEST_FID
        assert action.button_index == 1
        assert action.trusted_data is None

    def test_full_payload(self, frame_action: dict[str, object]) -> None:
        action = parse_frame_action(json.dumps(frame_action).encode())

        assert action.fid == TEST_FID
        assert action.untrusted_data.message_hash == "0xd2b1"
        assert action.trusted_data is not None
        assert action.trusted_data.message_bytes == "d2b1ddc6c88e865810"

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"not json",
            b"[]",
            b"{}",
            b'{"untrustedData": {}}',
            b'{"untrustedData": {"buttonIndex": 1}}',
            b'{"untrustedData": {"fid": 10952}}',
            b'{"untrustedData": {"fid": 0, "buttonIndex": 1}}',
            b'{"untrustedData": {"fid": 10952, "buttonIndex": 5}}',
            b'{"untrustedData": {"fid": "alice", "buttonIndex": 1}}',
        ],
    )
    def test_invalid_payloads(self, body: bytes) -> None:
        with pytest.raises(InvalidFrameRequest):
            parse_frame_action(body)

    def test_error_names_the_field(self) -> None:
        with pytest.raises(InvalidFrameRequest, match="untrustedData.fid"):
            parse_frame_action(b'{"untrustedData": {"buttonIndex": 1}}')
