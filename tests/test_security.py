"""Tests for signed consent links."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from frame_optin.core.config import settings
from frame_optin.core.errors import InvalidConsentToken
from frame_optin.core.security import (
    build_consent_url,
    create_consent_token,
    decode_consent_token,
)
from tests.conftest import SUBSCRIBER_ADDRESS


class TestConsentToken:
    """create_consent_token / decode_consent_token."""

    def test_decodes_to_address(self) -> None:
        token = create_consent_token(SUBSCRIBER_ADDRESS)
        assert decode_consent_token(token) == SUBSCRIBER_ADDRESS

    def test_payload_has_no_social_id(self) -> None:
        token = create_consent_token(SUBSCRIBER_ADDRESS)
        payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
        assert set(payload) == {"sub", "purpose", "iat", "exp"}

    def test_expired(self) -> None:
        token = create_consent_token(SUBSCRIBER_ADDRESS, ttl=timedelta(seconds=-10))

        with pytest.raises(InvalidConsentToken):
            decode_consent_token(token)

    def test_wrong_secret(self) -> None:
        token = create_consent_token(SUBSCRIBER_ADDRESS, secret_key="other-secret")

        with pytest.raises(InvalidConsentToken):
            decode_consent_token(token)

    def test_tampered(self) -> None:
        header, _, signature = create_consent_token(SUBSCRIBER_ADDRESS).split(".")
        _, other_payload, _ = create_consent_token("0x0000000000000000000000000000000000000bad").split(".")

        with pytest.raises(InvalidConsentToken):
            decode_consent_token(f"{header}.{other_payload}.{signature}")

    def test_wrong_purpose(self) -> None:
        token = jwt.encode(
            {
                "sub": SUBSCRIBER_ADDRESS,
                "purpose": "unsubscribe",
                "exp": datetime.now(UTC) + timedelta(days=1),
            },
            settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(InvalidConsentToken):
            decode_consent_token(token)

    def test_garbage(self) -> None:
        with pytest.raises(InvalidConsentToken):
            decode_consent_token("not-a-token")


class TestBuildConsentUrl:
    def test_points_at_consent_page(self) -> None:
        url = build_consent_url(SUBSCRIBER_ADDRESS)

        prefix = f"{settings.public_url}{settings.api_v1_prefix}/consent?token="
        assert url.startswith(prefix)
        assert decode_consent_token(url.removeprefix(prefix)) == SUBSCRIBER_ADDRESS
