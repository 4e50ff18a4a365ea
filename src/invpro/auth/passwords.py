# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from invpro.errors import ValidationError

SALT_LEN = 16

_PH = PasswordHasher(
    time_cost=int(os.getenv("INVPRO_ARGON2_TIME_COST", "3")),
    memory_cost=int(os.getenv("INVPRO_ARGON2_MEMORY_COST", "65536")),  # KiB
    parallelism=int(os.getenv("INVPRO_ARGON2_PARALLELISM", "4")),
    salt_len=SALT_LEN,
)

# Target for the unknown-user path of a login, built once so every call costs one verify
_DUMMY_HASH = _PH.hash(os.urandom(SALT_LEN).hex())


def hash_password(plain: str) -> str:
    """Argon2id hash with a fresh random salt; the encoded string carries salt and parameters."""
    if not plain:
        raise ValidationError("Password must not be empty", errors=[{"field": "password", "message": "is required"}])
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value:
        return False
    try:
        ok = _PH.verify(hash_value, plain or "")
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
    # An empty password is never accepted, but still pays for the verify
    return ok and bool(plain)


def dummy_verify(plain: str) -> None:
    """Spend one verification on a throwaway hash (unknown-user path of a login)."""
    verify_password(_DUMMY_HASH, plain)
