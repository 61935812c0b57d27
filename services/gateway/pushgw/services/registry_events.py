"""Default subscribers for token registry events."""

import structlog

from pushgw.metrics import registry_events_total, tokens_evicted_total
from pushgw.middleware.logging import redact_token
from pushgw.services.token_registry import RegistryEvent, RegistryEventKind, TokenRegistry


def log_registry_event(event: RegistryEvent) -> None:
    logger = structlog.get_logger("pushgw.registry")
    fields = {
        "user_id": event.user_id,
        "token": redact_token(event.token),
        "platform": event.platform,
    }
    if event.previous_user_id:
        fields["previous_user_id"] = event.previous_user_id
    if event.kind is RegistryEventKind.EVICTED:
        logger.warning(f"token_{event.kind.value}", reason=event.reason, **fields)
    else:
        logger.info(f"token_{event.kind.value}", **fields)


def count_registry_event(event: RegistryEvent) -> None:
    registry_events_total.labels(kind=event.kind.value).inc()
    if event.kind is RegistryEventKind.EVICTED:
        tokens_evicted_total.labels(reason=event.reason or "unknown").inc()


def attach_default_observers(registry: TokenRegistry) -> TokenRegistry:
    registry.subscribe(log_registry_event)
    registry.subscribe(count_registry_event)
    return registry
