"""Frame endpoints: initial render and subscribe button clicks."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from slowapi.errors import RateLimitExceeded

from frame_optin.core.config import settings
from frame_optin.core.deps import get_subscription_service
from frame_optin.core.errors import InvalidFrameRequest
from frame_optin.core.rate_limit import limiter
from frame_optin.schemas.frame import parse_frame_action
from frame_optin.services.frame_renderer import SUBSCRIBE_BUTTON_LABEL, render_frame
from frame_optin.services.subscription_service import (
    SubscribeOutcome,
    SubscriptionResult,
    SubscriptionService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_class=HTMLResponse)
async def get_frame() -> HTMLResponse:
    """Initial frame with the subscribe button."""
    return HTMLResponse(render_frame(SUBSCRIBE_BUTTON_LABEL))


@router.post("", response_class=HTMLResponse)
@limiter.limit(settings.frame_rate_limit)
async def subscribe_click(
    request: Request,
    service: SubscriptionService = Depends(get_subscription_service),
) -> HTMLResponse:
    """Handle a subscribe button click.

    Always answers 200 with a rendered frame; the button label carries the
    outcome, including failures.
    """
    try:
        action = parse_frame_action(await request.body())
    except InvalidFrameRequest as exc:
        logger.warning("Rejected frame action: %s", exc)
        result = SubscriptionResult.failed(exc)
    else:
        result = await service.subscribe(action.fid)

    return _outcome_frame(result.outcome)


def rate_limited_frame(request: Request, exc: RateLimitExceeded) -> HTMLResponse:
    """Throttled clicks still get a rendered frame with a 200."""
    logger.warning("Rate limited frame click from %s: %s", request.client, exc.detail)
    return _outcome_frame(SubscribeOutcome.RATE_LIMITED)


def _outcome_frame(outcome: SubscribeOutcome) -> HTMLResponse:
    response = HTMLResponse(render_frame(outcome.label))
    response.headers["X-Subscription-Outcome"] = outcome.value
    return response
