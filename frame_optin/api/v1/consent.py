"""Consent confirmation page reached from the opt-in message link."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from frame_optin.core.config import settings
from frame_optin.core.deps import get_subscription_store, get_xmtp_client
from frame_optin.core.errors import ConsentUpdateFailed, InvalidConsentToken
from frame_optin.core.logging_config import bind_subscriber
from frame_optin.core.security import decode_consent_token
from frame_optin.integrations.xmtp.client import XmtpClient
from frame_optin.services.consent_service import ConsentService
from frame_optin.services.frame_renderer import render_consent_page, render_invalid_link_page
from frame_optin.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)

router = APIRouter()

CONSENT_UPDATE_ERROR = "Consent could not be updated. Please try again."


def _toggle_url(token: str) -> str:
    return f"{settings.api_v1_prefix}/consent/toggle?token={token}"


def _invalid_link() -> HTMLResponse:
    return HTMLResponse(render_invalid_link_page(), status_code=400)


@router.get("", response_class=HTMLResponse)
async def consent_page(
    token: str = Query(...),
    xmtp: XmtpClient = Depends(get_xmtp_client),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> HTMLResponse:
    """Show the subscriber's current consent state."""
    try:
        address = decode_consent_token(token)
    except InvalidConsentToken as exc:
        logger.info("Rejected consent link: %s", exc)
        return _invalid_link()

    bind_subscriber(address)
    service = ConsentService(xmtp.with_identity(address), store)
    try:
        state = await service.current_state()
    except ConsentUpdateFailed:
        logger.warning("Could not refresh consent state for %s", address)
        state = await service.last_known_state()

    return HTMLResponse(render_consent_page(state, toggle_url=_toggle_url(token)))


@router.post("/toggle", response_class=HTMLResponse)
async def toggle_consent(
    token: str = Query(...),
    xmtp: XmtpClient = Depends(get_xmtp_client),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> HTMLResponse:
    """Flip the subscriber's consent state and re-render the page.

    A failed update is a soft failure: the page keeps showing the state it
    showed before the toggle.
    """
    try:
        address = decode_consent_token(token)
    except InvalidConsentToken as exc:
        logger.info("Rejected consent link: %s", exc)
        return _invalid_link()

    bind_subscriber(address)
    service = ConsentService(xmtp.with_identity(address), store)
    try:
        state = await service.toggle()
        error = None
    except ConsentUpdateFailed as exc:
        logger.exception("Consent toggle failed for %s", address)
        # Network state from before the failing write, when the read succeeded
        state = exc.state if exc.state is not None else await service.last_known_state()
        error = CONSENT_UPDATE_ERROR

    return HTMLResponse(render_consent_page(state, toggle_url=_toggle_url(token), error=error))
