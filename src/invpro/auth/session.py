# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

logger = logging.getLogger(__name__)

COOKIE_NAME = os.getenv("INVPRO_COOKIE_NAME", "invpro_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("INVPRO_SESSION_MAX_AGE", "86400"))  # 24 hours
PURGE_INTERVAL_SECONDS = int(os.getenv("INVPRO_SESSION_PURGE_INTERVAL", "3600"))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionRegistry(Protocol):
    """Backing store for live sessions. Every method must be atomic."""

    def get(self, token: str) -> Optional[Session]:
        ...

    def put(self, session: Session) -> None:
        ...

    def pop(self, token: str) -> Optional[Session]:
        ...

    def items(self) -> List[Tuple[str, Session]]:
        ...


class InMemorySessionRegistry:
    """Process-wide, lock-guarded token -> Session map."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def get(self, token: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(token)

    def put(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.token] = session

    def pop(self, token: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(token, None)

    def items(self) -> List[Tuple[str, Session]]:
        with self._lock:
            return list(self._sessions.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class SessionAuthority:
    """Issues, resolves and invalidates opaque session tokens.

    A session is Active until it either passes ``expires_at`` (Expired) or is
    removed through ``invalidate`` (Invalidated); neither state is left again.
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        *,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
        purge_interval: Optional[timedelta] = None,
    ):
        self._registry: SessionRegistry = registry if registry is not None else InMemorySessionRegistry()
        self._ttl = ttl if ttl is not None else timedelta(seconds=DEFAULT_MAX_AGE_SECONDS)
        self._clock = clock or _utcnow
        self._purge_interval = purge_interval if purge_interval is not None else timedelta(seconds=PURGE_INTERVAL_SECONDS)
        self._purge_lock = threading.Lock()
        self._last_purge = self._clock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def create(self, user_id: int) -> Session:
        now = self._clock()
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=int(user_id),
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._registry.put(session)
        logger.debug("session created for user_id=%s", session.user_id)
        return session

    def resolve(self, token: str) -> Optional[int]:
        if not token:
            return None
        session = self._registry.get(token)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            self._registry.pop(token)
            return None
        return session.user_id

    def invalidate(self, token: str) -> None:
        if not token:
            return
        if self._registry.pop(token) is not None:
            logger.debug("session invalidated")

    def invalidate_user(self, user_id: int) -> int:
        """Drop every session bound to ``user_id``; returns how many were removed."""
        removed = 0
        for token, session in self._registry.items():
            if session.user_id == user_id and self._registry.pop(token) is not None:
                removed += 1
        return removed

    def purge_expired(self) -> int:
        now = self._clock()
        removed = 0
        for token, session in self._registry.items():
            if session.is_expired(now) and self._registry.pop(token) is not None:
                removed += 1
        if removed:
            logger.info("purged %d expired sessions", removed)
        return removed

    def purge_if_due(self) -> int:
        """Run ``purge_expired`` at most once per purge interval."""
        now = self._clock()
        with self._purge_lock:
            if now - self._last_purge < self._purge_interval:
                return 0
            self._last_purge = now
        return self.purge_expired()


# --- Cookie transport ---


def _serializer() -> URLSafeTimedSerializer:
    secret = os.getenv("SECRET_KEY") or os.getenv("INVPRO_SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing SECRET_KEY (or INVPRO_SECRET_KEY) in environment")
    salt = os.getenv("INVPRO_SESSION_SALT", "invpro.session.v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


def sign_token(token: str) -> str:
    s = _serializer()
    return s.dumps({"t": token})


def unsign_token(value: str, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> Optional[str]:
    if not value:
        return None
    s = _serializer()
    try:
        data = s.loads(value, max_age=max_age)
        t = (data or {}).get("t") or ""
        t = str(t).strip()
        return t or None
    except (BadSignature, BadTimeSignature):
        return None
