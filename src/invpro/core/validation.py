# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Normalisation and range checks for product drafts and patches.

Every problem found is collected before raising, so callers get the full list
in a single ``ValidationError``.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping

from invpro.errors import ValidationError

TEXT_FIELDS = ("name", "sku", "category")
PRICE_FIELDS = ("purchase_price", "selling_price")
PRODUCT_FIELDS = TEXT_FIELDS + PRICE_FIELDS + ("stock",)
REQUIRED_ON_CREATE = ("name", "sku", "category")
MAX_PRICE = Decimal("1000000000000")

# Wire names (camelCase) -> store names
WIRE_ALIASES = {
    "purchasePrice": "purchase_price",
    "sellingPrice": "selling_price",
}


def from_wire(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase request keys to store field names; other keys pass through."""
    return {WIRE_ALIASES.get(str(k), str(k)): v for k, v in (payload or {}).items()}


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    s = value.strip()
    if not s:
        raise ValueError("must not be empty")
    return s


def _price(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError("must be a number")
    try:
        d = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        raise ValueError("must be a number") from None
    if not d.is_finite():
        raise ValueError("must be a finite number")
    if d < 0:
        raise ValueError("must be non-negative")
    if d > MAX_PRICE:
        raise ValueError(f"must not exceed {MAX_PRICE}")
    # Decimal("-0") passes the sign check; store it as plain zero
    return d.copy_abs()


def _stock(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("must be an integer")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        n = int(value.strip())
    else:
        raise ValueError("must be an integer")
    if n < 0:
        raise ValueError("must be a non-negative integer")
    return n


_CHECKS = {
    "name": _text,
    "sku": _text,
    "category": _text,
    "purchase_price": _price,
    "selling_price": _price,
    "stock": _stock,
}


def validate_product_fields(fields: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
    """Return a normalised copy of ``fields`` or raise ``ValidationError``.

    - ``partial=False`` (create): name, sku and category are required; missing
      prices default to 0 and missing stock to 0.
    - ``partial=True`` (update): only the given fields are checked and returned.
    - Unknown keys (including ``id`` and ``owner_id``) are rejected.
    """
    if not isinstance(fields, Mapping):
        raise ValidationError(errors=[{"field": "", "message": "payload must be an object"}])

    errors: List[Dict[str, str]] = []
    out: Dict[str, Any] = {}

    for key, value in fields.items():
        check = _CHECKS.get(key)
        if check is None:
            errors.append({"field": str(key), "message": "unknown or read-only field"})
            continue
        try:
            out[key] = check(value)
        except ValueError as e:
            errors.append({"field": key, "message": str(e)})

    if not partial:
        for key in REQUIRED_ON_CREATE:
            if key not in fields:
                errors.append({"field": key, "message": "is required"})
        out.setdefault("purchase_price", Decimal("0"))
        out.setdefault("selling_price", Decimal("0"))
        out.setdefault("stock", 0)

    if errors:
        raise ValidationError(errors=errors)
    return out
