"""API v1 router combining all route modules."""

from fastapi import APIRouter

from frame_optin.api.v1 import consent, frame, health

api_router = APIRouter()

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Frame render + subscribe clicks (POSTed by the frame host, no auth)
api_router.include_router(
    frame.router,
    prefix="/frame",
    tags=["frame"],
)

# Consent confirmation page (signed link from the opt-in message)
api_router.include_router(
    consent.router,
    prefix="/consent",
    tags=["consent"],
)
