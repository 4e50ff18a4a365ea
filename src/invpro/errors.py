# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Failure taxonomy shared by the stores, the access gate and the HTTP layer.

"Not found" is deliberately absent: lookups return ``None``/``False`` so that a
missing record and another tenant's record look the same to the caller.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class InvproError(Exception):
    """Base class for every failure raised by invpro."""

    message = "Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class Unauthorized(InvproError):
    message = "Unauthorized"


class InvalidCredentials(InvproError):
    message = "Invalid username or password"


class DuplicateIdentity(InvproError):
    message = "Username already exists"


class DuplicateSku(InvproError):
    message = "SKU already exists"


class ValidationError(InvproError, ValueError):
    """Malformed input. ``errors`` holds one ``{"field", "message"}`` per problem."""

    message = "Invalid product data"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors: List[Dict[str, str]] = list(errors or [])
