"""In-memory registry of device tokens per user.

Two indexes are kept in lock-step under one lock:

    user_id -> set of tokens
    token   -> TokenMetadata (owner, platform, updated_at)

A token has exactly one owner. Registering a token for a new user moves it out
of the previous owner's set, and a user entry disappears with its last token.
State is process-local and lost on restart.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class RegistryEventKind(str, Enum):
    REGISTERED = "registered"
    REFRESHED = "refreshed"
    TRANSFERRED = "transferred"
    REMOVED = "removed"
    EVICTED = "evicted"


@dataclass(frozen=True)
class TokenMetadata:
    user_id: str
    platform: str
    updated_at: datetime


@dataclass(frozen=True)
class RegistryEvent:
    kind: RegistryEventKind
    user_id: str | None
    token: str
    platform: str | None = None
    reason: str | None = None
    previous_user_id: str | None = None


@dataclass(frozen=True)
class RegistryStats:
    users: int
    tokens: int


RegistryObserver = Callable[[RegistryEvent], None]


class TokenRegistry:
    """Bidirectional user/token index with per-token metadata."""

    def __init__(self, default_platform: str = "android") -> None:
        self._default_platform = default_platform
        self._tokens_by_user: dict[str, set[str]] = {}
        self._meta_by_token: dict[str, TokenMetadata] = {}
        self._lock = threading.Lock()
        self._observers: list[RegistryObserver] = []

    # -- observers --

    def subscribe(self, observer: RegistryObserver) -> None:
        self._observers.append(observer)

    def _emit(self, event: RegistryEvent) -> None:
        for observer in self._observers:
            try:
                observer(event)
            except Exception:
                logger.exception("Registry observer failed for event %s", event.kind.value)

    # -- mutations --

    def upsert(self, user_id: str, token: str, platform: str | None = None) -> None:
        """Register ``token`` for ``user_id`` or refresh an existing registration."""
        platform = platform or self._default_platform
        now = datetime.now(timezone.utc)

        with self._lock:
            previous = self._meta_by_token.get(token)
            if previous is not None and previous.user_id != user_id:
                self._discard(previous.user_id, token)
            self._tokens_by_user.setdefault(user_id, set()).add(token)
            self._meta_by_token[token] = TokenMetadata(
                user_id=user_id, platform=platform, updated_at=now
            )

        if previous is None:
            kind = RegistryEventKind.REGISTERED
        elif previous.user_id != user_id:
            kind = RegistryEventKind.TRANSFERRED
        else:
            kind = RegistryEventKind.REFRESHED
        self._emit(
            RegistryEvent(
                kind=kind,
                user_id=user_id,
                token=token,
                platform=platform,
                previous_user_id=previous.user_id if previous else None,
            )
        )

    def remove(self, user_id: str, token: str) -> None:
        """Drop ``token`` from ``user_id``'s set and delete its metadata.

        The metadata entry is deleted even when it names a different owner.
        """
        with self._lock:
            in_set = self._discard(user_id, token)
            meta = self._meta_by_token.pop(token, None)
            if meta is not None and meta.user_id != user_id:
                self._discard(meta.user_id, token)

        if in_set or meta is not None:
            self._emit(
                RegistryEvent(
                    kind=RegistryEventKind.REMOVED,
                    user_id=user_id,
                    token=token,
                    platform=meta.platform if meta else None,
                )
            )

    def evict(self, token: str, reason: str) -> bool:
        """Remove ``token`` from whichever user currently owns it.

        Returns False when the token has no metadata (already gone).
        """
        with self._lock:
            meta = self._meta_by_token.pop(token, None)
            if meta is None:
                return False
            self._discard(meta.user_id, token)

        self._emit(
            RegistryEvent(
                kind=RegistryEventKind.EVICTED,
                user_id=meta.user_id,
                token=token,
                platform=meta.platform,
                reason=reason,
            )
        )
        return True

    def _discard(self, user_id: str, token: str) -> bool:
        # Caller holds the lock.
        tokens = self._tokens_by_user.get(user_id)
        if tokens is None or token not in tokens:
            return False
        tokens.discard(token)
        if not tokens:
            del self._tokens_by_user[user_id]
        return True

    # -- queries --

    def tokens_of(self, user_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._tokens_by_user.get(user_id, ()))

    def metadata_of(self, token: str) -> TokenMetadata | None:
        with self._lock:
            return self._meta_by_token.get(token)

    def owner_of(self, token: str) -> str | None:
        meta = self.metadata_of(token)
        return meta.user_id if meta else None

    def stats(self) -> RegistryStats:
        with self._lock:
            return RegistryStats(
                users=len(self._tokens_by_user),
                tokens=len(self._meta_by_token),
            )
