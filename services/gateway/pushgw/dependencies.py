"""FastAPI dependency injection."""

from fastapi import Depends

from pushgw.config import Settings, get_settings
from pushgw.services.dispatch_service import DispatchService, get_dispatch_service
from pushgw.services.registry_events import attach_default_observers
from pushgw.services.token_registry import TokenRegistry

# Process-wide singletons (initialized lazily or in lifespan)
_registry: TokenRegistry | None = None
_dispatch_service: DispatchService | None = None


def get_registry(settings: Settings = Depends(get_settings)) -> TokenRegistry:
    global _registry
    if _registry is None:
        _registry = attach_default_observers(
            TokenRegistry(default_platform=settings.default_platform)
        )
    return _registry


def get_dispatch(
    settings: Settings = Depends(get_settings),
    registry: TokenRegistry = Depends(get_registry),
) -> DispatchService:
    global _dispatch_service
    if _dispatch_service is None:
        _dispatch_service = get_dispatch_service(settings, registry)
    return _dispatch_service


def init_services(settings: Settings) -> tuple[TokenRegistry, DispatchService]:
    """Build the registry and dispatch service. Called from lifespan."""
    registry = get_registry(settings)
    return registry, get_dispatch(settings, registry)


def reset_services() -> None:
    """Discard all registrations. Called from lifespan on shutdown."""
    global _registry, _dispatch_service
    _registry = None
    _dispatch_service = None
