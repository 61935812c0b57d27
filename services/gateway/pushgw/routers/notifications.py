"""Data-only push notification endpoints."""

from fastapi import APIRouter, Depends

from pushgw.dependencies import get_dispatch
from pushgw.schemas.notification import (
    SendNotificationRequest,
    SendNotificationResponse,
    SendToTokenRequest,
    SendToTokenResponse,
)
from pushgw.services.dispatch_service import DispatchService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/send",
    response_model=SendNotificationResponse,
    responses={404: {"description": "No tokens for user"}, 500: {"description": "Provider error"}},
)
async def send_to_user(
    body: SendNotificationRequest,
    dispatch: DispatchService = Depends(get_dispatch),
):
    """Send a data-only notification to all devices of a user."""
    body.require("user_id", "data")
    result = await dispatch.send_to_user(body.user_id, body.data, body.android)
    return SendNotificationResponse(
        success_count=result.success_count,
        failure_count=result.failure_count,
    )


@router.post(
    "/sendToToken",
    response_model=SendToTokenResponse,
    responses={500: {"description": "Provider error"}},
)
async def send_to_token(
    body: SendToTokenRequest,
    dispatch: DispatchService = Depends(get_dispatch),
):
    """Send a data-only notification to a single device token."""
    body.require("token", "data")
    message_id = await dispatch.send_to_token(body.token, body.data, body.android)
    return SendToTokenResponse(message_id=message_id)
