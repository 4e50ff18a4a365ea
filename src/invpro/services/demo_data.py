# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Optional

from invpro.auth.users import IdentityStore, User
from invpro.errors import DuplicateIdentity
from invpro.services.inventory_service import InventoryStore

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo@inventorypro.com"
DEMO_PASSWORD = "demo123"

SAMPLE_PRODUCTS = [
    {"name": "MacBook Pro 14-inch", "sku": "MBP14-001", "category": "Electronics",
     "purchase_price": "1999.99", "selling_price": "2399.99", "stock": 15},
    {"name": "Wireless Gaming Mouse", "sku": "WGM-002", "category": "Electronics",
     "purchase_price": "79.99", "selling_price": "99.99", "stock": 3},
    {"name": "Organic Cotton T-Shirt", "sku": "OCT-003", "category": "Clothing",
     "purchase_price": "14.99", "selling_price": "24.99", "stock": 8},
    {"name": "Yoga Mat Premium", "sku": "YMP-004", "category": "Sports",
     "purchase_price": "29.99", "selling_price": "49.99", "stock": 2},
    {"name": "Coffee Maker Deluxe", "sku": "CMD-005", "category": "Home & Garden",
     "purchase_price": "89.99", "selling_price": "129.99", "stock": 12},
    {"name": "JavaScript Programming Guide", "sku": "JSG-006", "category": "Books",
     "purchase_price": "19.99", "selling_price": "39.99", "stock": 0},
]


def seed_demo(identity: IdentityStore, inventory: InventoryStore) -> Optional[User]:
    """Create the demo account and its sample products. No-op if it already exists."""
    try:
        user = identity.register(DEMO_USERNAME, DEMO_PASSWORD)
    except DuplicateIdentity:
        return None
    for draft in SAMPLE_PRODUCTS:
        inventory.create(user.id, draft)
    logger.info("seeded demo account with %d products", len(SAMPLE_PRODUCTS))
    return user
