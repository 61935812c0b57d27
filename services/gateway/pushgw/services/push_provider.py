"""Push delivery provider seam and its Firebase Cloud Messaging adapter."""

import asyncio
import datetime
import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pushgw.config import Settings
from pushgw.exceptions import ProviderError

logger = logging.getLogger(__name__)

# FCM rejects multicast messages addressing more tokens than this.
FCM_MULTICAST_LIMIT = 500

UNREGISTERED = "registration-token-not-registered"
INVALID_ARGUMENT = "invalid-argument"
UNAUTHENTICATED = "unauthenticated"

_ANDROID_OPTION_KEYS = {
    "priority": "priority",
    "ttl": "ttl",
    "collapse_key": "collapse_key",
    "collapseKey": "collapse_key",
    "restricted_package_name": "restricted_package_name",
    "restrictedPackageName": "restricted_package_name",
    "direct_boot_ok": "direct_boot_ok",
    "directBootOk": "direct_boot_ok",
}


@dataclass(frozen=True)
class SendOutcome:
    """Result of delivering to one token within a multicast send."""

    success: bool
    message_id: str | None = None
    error_code: str | None = None


class PushProvider(Protocol):
    async def send_single(
        self, token: str, data: Mapping[str, str], options: Mapping[str, Any]
    ) -> str: ...

    async def send_multicast(
        self, tokens: Sequence[str], data: Mapping[str, str], options: Mapping[str, Any]
    ) -> list[SendOutcome]: ...


def android_config_kwargs(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Translate request-level Android options into AndroidConfig kwargs."""
    kwargs: dict[str, Any] = {}
    for key, value in (options or {}).items():
        target = _ANDROID_OPTION_KEYS.get(key)
        if target is None:
            logger.debug("Ignoring unsupported Android option: %s", key)
            continue
        if target == "ttl" and isinstance(value, (int, float)) and not isinstance(value, bool):
            # Request ttl is in milliseconds; AndroidConfig reads bare numbers as seconds
            value = datetime.timedelta(milliseconds=value)
        kwargs[target] = value
    return kwargs


def classify_error(exc: Exception | None) -> str:
    """Map a firebase_admin exception onto a stable, lowercase error code."""
    from firebase_admin import exceptions, messaging

    if exc is None:
        return "unknown"
    if isinstance(exc, messaging.UnregisteredError):
        return UNREGISTERED
    if isinstance(exc, exceptions.InvalidArgumentError):
        return INVALID_ARGUMENT
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code.lower().replace("_", "-")
    return "unknown"


class FcmProvider:
    """Send data-only messages through Firebase Cloud Messaging."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._fcm_app = None
        self._init_lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._fcm_app is not None

    def _init_fcm(self):
        """Initialize Firebase Admin SDK (lazy)."""
        if self._fcm_app is not None:
            return self._fcm_app
        with self._init_lock:
            if self._fcm_app is not None:
                return self._fcm_app
            import firebase_admin
            from firebase_admin import credentials
            from google.auth import exceptions as google_auth_exceptions

            try:
                self._fcm_app = firebase_admin.get_app()
                return self._fcm_app
            except ValueError:
                pass

            try:
                if self._settings.fcm_credentials_json:
                    cred = credentials.Certificate(self._settings.fcm_credentials_json)
                else:
                    cred = credentials.ApplicationDefault()
                options = {"projectId": self._settings.fcm_project_id} if self._settings.fcm_project_id else None
                self._fcm_app = firebase_admin.initialize_app(cred, options)
            except Exception as e:
                logger.error("Failed to initialize FCM: %s", e)
                code = UNAUTHENTICATED if isinstance(e, google_auth_exceptions.GoogleAuthError) else "unavailable"
                raise ProviderError(f"FCM not initialized: {e}", code=code) from e
            logger.info("FCM initialized")
            return self._fcm_app

    async def _run(self, fn):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def send_single(
        self, token: str, data: Mapping[str, str], options: Mapping[str, Any]
    ) -> str:
        from firebase_admin import exceptions, messaging
        from google.auth import exceptions as google_auth_exceptions

        app = self._init_fcm()
        try:
            message = messaging.Message(
                data=dict(data),
                token=token,
                android=messaging.AndroidConfig(**android_config_kwargs(options)),
            )
            message_id = await self._run(lambda: messaging.send(message, app=app))
        except exceptions.FirebaseError as e:
            raise ProviderError(str(e), code=classify_error(e)) from e
        except ValueError as e:
            raise ProviderError(str(e), code=INVALID_ARGUMENT) from e
        except google_auth_exceptions.GoogleAuthError as e:
            raise ProviderError(str(e), code=UNAUTHENTICATED) from e
        logger.info("FCM sent: %s", message_id)
        return message_id

    async def send_multicast(
        self, tokens: Sequence[str], data: Mapping[str, str], options: Mapping[str, Any]
    ) -> list[SendOutcome]:
        from firebase_admin import exceptions, messaging
        from google.auth import exceptions as google_auth_exceptions

        app = self._init_fcm()
        android = android_config_kwargs(options)
        outcomes: list[SendOutcome] = []
        tokens = list(tokens)

        for start in range(0, len(tokens), FCM_MULTICAST_LIMIT):
            batch = tokens[start : start + FCM_MULTICAST_LIMIT]
            try:
                message = messaging.MulticastMessage(
                    tokens=batch,
                    data=dict(data),
                    android=messaging.AndroidConfig(**android),
                )
                response = await self._run(
                    lambda: messaging.send_each_for_multicast(message, app=app)
                )
            except exceptions.FirebaseError as e:
                raise ProviderError(str(e), code=classify_error(e)) from e
            except ValueError as e:
                raise ProviderError(str(e), code=INVALID_ARGUMENT) from e
            except google_auth_exceptions.GoogleAuthError as e:
                raise ProviderError(str(e), code=UNAUTHENTICATED) from e

            for r in response.responses:
                if r.success:
                    outcomes.append(SendOutcome(success=True, message_id=r.message_id))
                else:
                    outcomes.append(SendOutcome(success=False, error_code=classify_error(r.exception)))

        logger.info(
            "FCM multicast: tokens=%d success=%d",
            len(tokens),
            sum(1 for o in outcomes if o.success),
        )
        return outcomes


def get_push_provider(settings: Settings) -> FcmProvider:
    return FcmProvider(settings)
