# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-owner product store.

Products are partitioned by ``owner_id``; every public method takes it and a
product owned by someone else behaves exactly like a missing one. SKUs are
unique within one owner's products only.

All reads and writes go through one lock. Products are frozen dataclasses, so a
snapshot returned by ``list`` can never be modified underneath the caller.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from invpro.core.ids import IdSequence
from invpro.core.stock import StockStatus, stock_status
from invpro.core.validation import validate_product_fields
from invpro.errors import DuplicateSku

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Product:
    id: int
    owner_id: int
    name: str
    sku: str
    category: str
    purchase_price: Decimal
    selling_price: Decimal
    stock: int

    @property
    def stock_status(self) -> StockStatus:
        return stock_status(self.stock)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase, prices as strings)."""
        return {
            "id": self.id,
            "userId": self.owner_id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "purchasePrice": str(self.purchase_price),
            "sellingPrice": str(self.selling_price),
            "stock": self.stock,
            "stockStatus": self.stock_status.value,
        }


class InventoryStore:
    def __init__(self, ids: Optional[IdSequence] = None):
        self._lock = threading.Lock()
        self._ids = ids or IdSequence()
        self._products: Dict[int, Product] = {}
        # (owner_id, sku) -> product id
        self._sku_index: Dict[Tuple[int, str], int] = {}

    def _owned(self, product_id: int, owner_id: int) -> Optional[Product]:
        # Caller holds self._lock
        p = self._products.get(product_id)
        if p is None or p.owner_id != owner_id:
            return None
        return p

    def list(self, owner_id: int) -> List[Product]:
        with self._lock:
            out = [p for p in self._products.values() if p.owner_id == owner_id]
        out.sort(key=lambda p: p.id)
        return out

    def get(self, product_id: int, owner_id: int) -> Optional[Product]:
        with self._lock:
            return self._owned(product_id, owner_id)

    def get_by_sku(self, owner_id: int, sku: str) -> Optional[Product]:
        with self._lock:
            pid = self._sku_index.get((owner_id, sku))
            return self._products.get(pid) if pid is not None else None

    def create(self, owner_id: int, draft: Mapping[str, Any]) -> Product:
        fields = validate_product_fields(draft, partial=False)
        with self._lock:
            key = (owner_id, fields["sku"])
            if key in self._sku_index:
                logger.debug("duplicate sku rejected owner_id=%s", owner_id)
                raise DuplicateSku()
            product = Product(id=self._ids.next_id(), owner_id=owner_id, **fields)
            self._products[product.id] = product
            self._sku_index[key] = product.id
        logger.info("product created id=%s owner_id=%s", product.id, owner_id)
        return product

    def update(self, product_id: int, owner_id: int, fields: Mapping[str, Any]) -> Optional[Product]:
        """Apply a partial update; unspecified fields keep their value.

        Returns ``None`` when the product is missing or not owned by ``owner_id``.
        Raises ``ValidationError`` (e.g. negative stock) or ``DuplicateSku``
        without touching the stored product.
        """
        changes = validate_product_fields(fields, partial=True)
        with self._lock:
            current = self._owned(product_id, owner_id)
            if current is None:
                return None
            if not changes:
                return current

            new_sku = changes.get("sku", current.sku)
            if new_sku != current.sku:
                other = self._sku_index.get((owner_id, new_sku))
                if other is not None and other != product_id:
                    raise DuplicateSku()

            updated = dataclasses.replace(current, **changes)
            self._products[product_id] = updated
            if new_sku != current.sku:
                del self._sku_index[(owner_id, current.sku)]
                self._sku_index[(owner_id, new_sku)] = product_id
        logger.info("product updated id=%s owner_id=%s fields=%s", product_id, owner_id, sorted(changes))
        return updated

    def delete(self, product_id: int, owner_id: int) -> bool:
        with self._lock:
            p = self._owned(product_id, owner_id)
            if p is None:
                return False
            del self._products[product_id]
            self._sku_index.pop((owner_id, p.sku), None)
        logger.info("product deleted id=%s owner_id=%s", product_id, owner_id)
        return True
