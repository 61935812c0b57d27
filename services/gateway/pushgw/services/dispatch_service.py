"""Fan-out of data-only push messages to a user's registered devices."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pushgw.config import Settings
from pushgw.exceptions import NoTokensForUser
from pushgw.metrics import push_messages_total
from pushgw.middleware.logging import redact_token
from pushgw.services.payload import PayloadValue, normalize_payload
from pushgw.services.push_provider import (
    INVALID_ARGUMENT,
    UNREGISTERED,
    PushProvider,
    SendOutcome,
    get_push_provider,
)
from pushgw.services.token_registry import TokenRegistry

logger = logging.getLogger(__name__)

# Error codes meaning the token will never accept delivery again.
PERMANENT_ERROR_CODES = (UNREGISTERED, INVALID_ARGUMENT)


def is_permanently_invalid(outcome: SendOutcome) -> bool:
    if outcome.success or not outcome.error_code:
        return False
    return any(code in outcome.error_code for code in PERMANENT_ERROR_CODES)


@dataclass(frozen=True)
class MulticastResult:
    success_count: int
    failure_count: int


class DispatchService:
    """Resolves users to tokens, sends through the provider, evicts dead tokens."""

    def __init__(
        self,
        registry: TokenRegistry,
        provider: PushProvider,
        default_options: Mapping[str, Any] | None = None,
    ) -> None:
        self._registry = registry
        self._provider = provider
        self._default_options = dict(default_options or {"priority": "high"})

    @property
    def provider(self) -> PushProvider:
        return self._provider

    def _options(self, options: Mapping[str, Any] | None) -> dict[str, Any]:
        # Data-only messages need high priority to wake a backgrounded app.
        return dict(self._default_options) if options is None else dict(options)

    async def send_to_user(
        self,
        user_id: str,
        data: Mapping[str, PayloadValue] | None,
        options: Mapping[str, Any] | None = None,
    ) -> MulticastResult:
        """Send ``data`` to every device registered for ``user_id``.

        Raises NoTokensForUser before any provider call when the user has no
        tokens. Provider failures propagate unchanged; nothing is retried.
        Tokens the provider reports as unregistered or malformed are evicted.
        """
        tokens = sorted(self._registry.tokens_of(user_id))
        if not tokens:
            raise NoTokensForUser(user_id)

        payload = normalize_payload(data)
        outcomes = await self._provider.send_multicast(tokens, payload, self._options(options))

        success_count = 0
        failure_count = 0
        for token, outcome in zip(tokens, outcomes):
            if outcome.success:
                success_count += 1
                continue
            failure_count += 1
            logger.warning(
                "Push failed for token=%s owner=%s code=%s",
                redact_token(token),
                self._registry.owner_of(token),
                outcome.error_code,
            )
            if is_permanently_invalid(outcome):
                self._registry.evict(token, reason="invalid")

        push_messages_total.labels(path="user", outcome="success").inc(success_count)
        push_messages_total.labels(path="user", outcome="failure").inc(failure_count)
        logger.info(
            "Sent to user=%s: success=%d failure=%d",
            user_id,
            success_count,
            failure_count,
        )
        return MulticastResult(success_count=success_count, failure_count=failure_count)

    async def send_to_token(
        self,
        token: str,
        data: Mapping[str, PayloadValue] | None,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Send ``data`` to a single token and return the provider message id.

        No cleanup happens on this path, even when the provider rejects the token.
        """
        payload = normalize_payload(data)
        try:
            message_id = await self._provider.send_single(token, payload, self._options(options))
        except Exception:
            push_messages_total.labels(path="token", outcome="failure").inc()
            raise
        push_messages_total.labels(path="token", outcome="success").inc()
        return message_id


def get_dispatch_service(settings: Settings, registry: TokenRegistry) -> DispatchService:
    """Factory that wires up a DispatchService with the FCM provider."""
    return DispatchService(
        registry=registry,
        provider=get_push_provider(settings),
        default_options=settings.default_provider_options,
    )
