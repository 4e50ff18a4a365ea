# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from invpro.auth.passwords import dummy_verify, hash_password, verify_password
from invpro.core.ids import IdSequence
from invpro.errors import DuplicateIdentity, ValidationError

logger = logging.getLogger(__name__)

# Optional YAML file with pre-hashed users (see scripts/create_user.py)
USERS_PATH = os.getenv("INVPRO_USERS_PATH", "")


@dataclass(frozen=True)
class User:
    id: int
    username: str
    password_hash: str = field(repr=False)

    def to_public(self) -> Dict[str, object]:
        return {"id": self.id, "username": self.username}


class IdentityStore:
    """Owns every User; usernames are unique and case-sensitive."""

    def __init__(self, ids: Optional[IdSequence] = None):
        self._lock = threading.Lock()
        self._ids = ids or IdSequence()
        self._users: Dict[int, User] = {}
        self._by_username: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def _insert(self, username: str, password_hash: str) -> User:
        # Caller holds self._lock
        if username in self._by_username:
            raise DuplicateIdentity()
        user = User(id=self._ids.next_id(), username=username, password_hash=password_hash)
        self._users[user.id] = user
        self._by_username[username] = user.id
        return user

    def register(self, username: str, password: str) -> User:
        errors = []
        if not isinstance(username, str) or not username.strip():
            errors.append({"field": "username", "message": "is required"})
        if not isinstance(password, str) or not password:
            errors.append({"field": "password", "message": "is required"})
        if errors:
            raise ValidationError("Invalid registration data", errors=errors)

        # Fail fast before paying for the hash; re-checked under the lock below
        if self.find_by_username(username) is not None:
            raise DuplicateIdentity()

        password_hash = hash_password(password)
        with self._lock:
            user = self._insert(username, password_hash)
        logger.info("user registered id=%s username=%s", user.id, user.username)
        return user

    def get(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        with self._lock:
            uid = self._by_username.get(username)
            return self._users.get(uid) if uid is not None else None

    def verify_credentials(self, username: str, password: str) -> Optional[User]:
        u = self.find_by_username(username)
        if u is None:
            dummy_verify(password)
            return None
        if not verify_password(u.password_hash, password):
            return None
        return u

    def load_users_file(self, path: Path) -> int:
        """Import pre-hashed users from YAML (``users: {name: {password_hash: ...}}``)."""
        path = Path(path)
        if not path.exists():
            return 0
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
        if not isinstance(users, dict):
            return 0

        loaded = 0
        for uname, udata in users.items():
            if not isinstance(udata, dict):
                continue
            username = str(uname).strip()
            ph = str(udata.get("password_hash") or "").strip()
            if not username or not ph:
                continue
            try:
                with self._lock:
                    self._insert(username, ph)
            except DuplicateIdentity:
                logger.warning("skipping duplicate user %s in %s", username, path)
                continue
            loaded += 1
        logger.info("loaded %d users from %s", loaded, path)
        return loaded
