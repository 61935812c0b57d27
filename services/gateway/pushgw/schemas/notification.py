"""Notification send schemas."""

from typing import Any

from pydantic import Field

from pushgw.schemas.device import CamelModel


class SendNotificationRequest(CamelModel):
    user_id: str | None = None
    data: dict[str, Any] | None = Field(default=None, examples=[{"type": "chat", "messageId": "abc123"}])
    android: dict[str, Any] | None = Field(
        default=None,
        examples=[{"priority": "high"}],
        description="Optional FCM Android config (e.g., priority, ttl)",
    )


class SendToTokenRequest(CamelModel):
    token: str | None = None
    data: dict[str, Any] | None = Field(default=None, examples=[{"type": "ping", "timestamp": "1700000000"}])
    android: dict[str, Any] | None = Field(
        default=None,
        examples=[{"priority": "high"}],
        description="Optional FCM Android config (e.g., priority, ttl)",
    )


class SendNotificationResponse(CamelModel):
    ok: bool = True
    success_count: int
    failure_count: int


class SendToTokenResponse(CamelModel):
    ok: bool = True
    message_id: str
