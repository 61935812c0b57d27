"""Device token registration for push notifications."""

import logging

from fastapi import APIRouter, Depends

from pushgw.dependencies import get_registry
from pushgw.middleware.logging import redact_token
from pushgw.schemas.device import (
    RegisterDeviceRequest,
    StandardResponse,
    UnregisterDeviceRequest,
    UpdateTokenRequest,
)
from pushgw.services.token_registry import TokenRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("/register", response_model=StandardResponse, response_model_exclude_none=True)
async def register_device(
    body: RegisterDeviceRequest,
    registry: TokenRegistry = Depends(get_registry),
):
    """Register a device token for a user.

    Called by the app after it obtains a token. Registering a token that
    belongs to another user moves it to this user.
    """
    body.require("user_id", "token")
    logger.info(
        "Register token: user=%s token=%s platform=%s",
        body.user_id,
        redact_token(body.token),
        body.platform,
    )
    registry.upsert(body.user_id, body.token, body.platform)
    return StandardResponse()


@router.put("/token", response_model=StandardResponse, response_model_exclude_none=True)
async def update_token(
    body: UpdateTokenRequest,
    registry: TokenRegistry = Depends(get_registry),
):
    """Update a device token for a user.

    The app should call this on token refresh, passing ``oldToken`` when it
    still has it so the superseded token is dropped.
    """
    body.require("user_id", "token")
    logger.info(
        "Update token: user=%s token=%s old=%s",
        body.user_id,
        redact_token(body.token),
        redact_token(body.old_token),
    )
    if body.old_token and body.old_token != body.token:
        registry.remove(body.user_id, body.old_token)
    registry.upsert(body.user_id, body.token, body.platform)
    return StandardResponse()


@router.delete("/unregister", response_model=StandardResponse, response_model_exclude_none=True)
async def unregister_device(
    body: UnregisterDeviceRequest,
    registry: TokenRegistry = Depends(get_registry),
):
    """Unregister a device token (logout or notifications disabled)."""
    body.require("user_id", "token")
    registry.remove(body.user_id, body.token)
    return StandardResponse()
