"""Signed consent-confirmation links.

The link embedded in the opt-in message carries the subscriber's wallet
address in an HS256 JWT. The social id never leaves the click handler.
"""

from datetime import UTC, datetime, timedelta

import jwt

from frame_optin.core.config import settings
from frame_optin.core.errors import InvalidConsentToken

CONSENT_TOKEN_PURPOSE = "consent"
_ALGORITHM = "HS256"


def create_consent_token(
    address: str,
    *,
    secret_key: str | None = None,
    ttl: timedelta | None = None,
) -> str:
    """Sign a consent token for a wallet address."""
    now = datetime.now(UTC)
    expires = now + (ttl if ttl is not None else timedelta(days=settings.consent_token_ttl_days))
    return jwt.encode(
        {
            "sub": address,
            "purpose": CONSENT_TOKEN_PURPOSE,
            "iat": now,
            "exp": expires,
        },
        secret_key or settings.secret_key,
        algorithm=_ALGORITHM,
    )


def decode_consent_token(token: str, *, secret_key: str | None = None) -> str:
    """Verify a consent token and return the address it was issued for.

    Raises:
        InvalidConsentToken: If the signature, expiry, or purpose is wrong.
    """
    try:
        payload = jwt.decode(token, secret_key or settings.secret_key, algorithms=[_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise InvalidConsentToken(str(exc)) from exc

    address = payload.get("sub")
    if payload.get("purpose") != CONSENT_TOKEN_PURPOSE or not isinstance(address, str) or not address:
        raise InvalidConsentToken("Token is not a consent token")
    return address


def build_consent_url(address: str) -> str:
    """Absolute consent-confirmation URL for the opt-in message."""
    token = create_consent_token(address)
    return f"{settings.api_base_url}/consent?token={token}"
