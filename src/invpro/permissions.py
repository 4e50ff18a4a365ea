# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Request

from invpro.auth.session import COOKIE_NAME, Session, SessionAuthority, unsign_token
from invpro.auth.users import IdentityStore, User
from invpro.errors import InvalidCredentials, Unauthorized

logger = logging.getLogger(__name__)


class AccessGate:
    """Answers "who is the caller" before any inventory operation runs."""

    def __init__(self, identity: IdentityStore, sessions: SessionAuthority):
        self.identity = identity
        self.sessions = sessions

    def register(self, username: str, password: str) -> Tuple[User, Session]:
        user = self.identity.register(username, password)
        return user, self.sessions.create(user.id)

    def authenticate(self, username: str, password: str) -> Session:
        user = self.identity.verify_credentials(username, password)
        if user is None:
            logger.info("login failed")
            raise InvalidCredentials()
        return self.sessions.create(user.id)

    def require_caller(self, token: Optional[str]) -> int:
        user_id = self.sessions.resolve(token or "")
        if user_id is None:
            raise Unauthorized()
        return user_id

    def current_user(self, token: Optional[str]) -> Optional[User]:
        try:
            user_id = self.require_caller(token)
        except Unauthorized:
            return None
        return self.identity.get(user_id)

    def logout(self, token: Optional[str]) -> None:
        self.sessions.invalidate(token or "")


# --- FastAPI dependencies ---


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str
    token: str


def session_token_from_request(request: Request) -> str:
    return unsign_token(request.cookies.get(COOKIE_NAME, "")) or ""


def load_user_from_request(request: Request) -> Optional[CurrentUser]:
    gate: AccessGate = request.app.state.gate
    token = session_token_from_request(request)
    u = gate.current_user(token)
    if u is None:
        return None
    return CurrentUser(id=u.id, username=u.username, token=token)


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return load_user_from_request(request)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    raise Unauthorized()


def cookie_settings() -> dict:
    secure = os.getenv("INVPRO_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
