# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Stock-level banding used by dashboards and badges.

The threshold is shared so every consumer bands the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable

LOW_STOCK_THRESHOLD = 5


class StockStatus(str, Enum):
    OUT = "out"
    LOW = "low"
    ADEQUATE = "adequate"


def stock_status(stock: int, *, threshold: int = LOW_STOCK_THRESHOLD) -> StockStatus:
    if stock <= 0:
        return StockStatus.OUT
    if stock < threshold:
        return StockStatus.LOW
    return StockStatus.ADEQUATE


@dataclass(frozen=True)
class InventorySummary:
    total_products: int
    total_units: int
    total_value: Decimal
    out_of_stock: int
    low_stock: int
    adequate_stock: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "totalUnits": self.total_units,
            "totalValue": str(self.total_value),
            "outOfStock": self.out_of_stock,
            "lowStock": self.low_stock,
            "adequateStock": self.adequate_stock,
            "lowStockThreshold": LOW_STOCK_THRESHOLD,
        }


def summarize(products: Iterable[Any]) -> InventorySummary:
    """Dashboard figures for a set of products (anything with stock/purchase_price)."""
    counts = {s: 0 for s in StockStatus}
    total = 0
    units = 0
    value = Decimal("0")
    for p in products:
        total += 1
        units += p.stock
        value += p.purchase_price * p.stock
        counts[stock_status(p.stock)] += 1
    return InventorySummary(
        total_products=total,
        total_units=units,
        total_value=value,
        out_of_stock=counts[StockStatus.OUT],
        low_stock=counts[StockStatus.LOW],
        adequate_stock=counts[StockStatus.ADEQUATE],
    )
