import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from invpro.core.stock import StockStatus
from invpro.errors import DuplicateSku, ValidationError
from invpro.services.inventory_service import Product


def test_create_then_get_round_trip(inventory, widget):
    p = inventory.create(1, widget)
    assert p == Product(
        id=1,
        owner_id=1,
        name="Widget",
        sku="W-1",
        category="Other",
        purchase_price=Decimal("1.00"),
        selling_price=Decimal("2.00"),
        stock=10,
    )
    assert inventory.get(p.id, 1) == p
    assert inventory.get_by_sku(1, "W-1") == p


def test_ids_are_global_and_never_reused(inventory, widget):
    a = inventory.create(1, widget)
    b = inventory.create(2, widget)
    assert (a.id, b.id) == (1, 2)
    assert inventory.delete(a.id, 1)
    c = inventory.create(1, widget)
    assert c.id == 3


def test_same_sku_allowed_across_owners_only(inventory, widget):
    inventory.create(1, widget)
    inventory.create(2, widget)
    with pytest.raises(DuplicateSku):
        inventory.create(1, {**widget, "name": "Other widget"})
    assert len(inventory.list(1)) == 1
    # The failed create did not consume an id
    assert inventory.create(1, {**widget, "sku": "W-2"}).id == 3


def test_other_owner_cannot_see_or_touch(inventory, widget):
    p = inventory.create(1, widget)
    assert inventory.get(p.id, 2) is None
    assert inventory.list(2) == []
    assert inventory.update(p.id, 2, {"stock": 0}) is None
    assert inventory.delete(p.id, 2) is False
    assert inventory.get_by_sku(2, "W-1") is None
    assert inventory.get(p.id, 1).stock == 10


def test_list_is_scoped_and_ordered(inventory, widget):
    for i in range(3):
        inventory.create(1, {**widget, "sku": f"A-{i}"})
        inventory.create(2, {**widget, "sku": f"B-{i}"})
    ids = [p.id for p in inventory.list(1)]
    assert ids == sorted(ids)
    assert {p.sku for p in inventory.list(1)} == {"A-0", "A-1", "A-2"}


def test_partial_update_keeps_other_fields(inventory, widget):
    p = inventory.create(1, widget)
    u = inventory.update(p.id, 1, {"stock": 3, "selling_price": 2.5})
    assert u.stock == 3
    assert u.selling_price == Decimal("2.5")
    assert (u.name, u.sku, u.category, u.purchase_price) == (p.name, p.sku, p.category, p.purchase_price)
    assert u.owner_id == 1
    assert inventory.update(p.id, 1, {}) == u


def test_update_sku_rechecks_uniqueness(inventory, widget):
    a = inventory.create(1, widget)
    b = inventory.create(1, {**widget, "sku": "W-2"})
    with pytest.raises(DuplicateSku):
        inventory.update(b.id, 1, {"sku": "W-1", "stock": 0})
    assert inventory.get(b.id, 1).stock == 10
    # Same sku as itself is fine
    assert inventory.update(a.id, 1, {"sku": "W-1", "stock": 4}).stock == 4
    # Renaming frees the old sku
    inventory.update(b.id, 1, {"sku": "W-3"})
    assert inventory.create(1, {**widget, "sku": "W-2"}).sku == "W-2"
    assert inventory.get_by_sku(1, "W-3").id == b.id


def test_negative_stock_is_rejected_not_clamped(inventory, widget):
    p = inventory.create(1, widget)
    inventory.update(p.id, 1, {"stock": 3})
    with pytest.raises(ValidationError) as exc:
        inventory.update(p.id, 1, {"stock": -1, "name": "Renamed"})
    assert exc.value.errors[0]["field"] == "stock"
    current = inventory.get(p.id, 1)
    assert current.stock == 3
    assert current.name == "Widget"


@pytest.mark.parametrize(
    "patch",
    [{"purchase_price": -1}, {"selling_price": "abc"}, {"name": ""}, {"stock": 1.5}, {"owner_id": 2}, {"id": 9}],
)
def test_invalid_updates_leave_product_untouched(inventory, widget, patch):
    p = inventory.create(1, widget)
    with pytest.raises(ValidationError):
        inventory.update(p.id, 1, patch)
    assert inventory.get(p.id, 1) == p


def test_create_requires_name_sku_category(inventory):
    with pytest.raises(ValidationError) as exc:
        inventory.create(1, {"stock": 1})
    fields = {e["field"] for e in exc.value.errors}
    assert {"name", "sku", "category"} <= fields
    assert inventory.list(1) == []


def test_create_defaults_prices_and_stock(inventory):
    p = inventory.create(1, {"name": "Bare", "sku": "B", "category": "Other"})
    assert p.purchase_price == Decimal("0")
    assert p.selling_price == Decimal("0")
    assert p.stock == 0
    assert p.stock_status is StockStatus.OUT


def test_delete_is_idempotent(inventory, widget):
    p = inventory.create(1, widget)
    assert inventory.delete(p.id, 1) is True
    assert inventory.delete(p.id, 1) is False
    assert inventory.get(p.id, 1) is None
    assert inventory.get_by_sku(1, "W-1") is None


def test_concurrent_creates_with_same_sku_succeed_once(inventory, widget):
    def attempt(i):
        try:
            return inventory.create(1, {**widget, "name": f"Widget {i}"})
        except DuplicateSku:
            return None

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(attempt, range(50)))
    created = [r for r in results if r is not None]
    assert len(created) == 1
    assert len(inventory.list(1)) == 1


def test_concurrent_creates_get_distinct_ids(inventory, widget):
    def make(i):
        return inventory.create(i % 4, {**widget, "sku": f"S-{i}"}).id

    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = list(pool.map(make, range(200)))
    assert sorted(ids) == list(range(1, 201))


def test_scenario(gate, inventory):
    a, _ = gate.register("a@x.com", "pw1")
    w = {"name": "Widget", "sku": "W-1", "category": "Other", "purchase_price": 1.00, "selling_price": 2.00, "stock": 10}
    p = inventory.create(a.id, w)
    assert p.id == 1

    b, _ = gate.register("b@x.com", "pw2")
    assert inventory.create(b.id, w).owner_id == b.id

    with pytest.raises(DuplicateSku):
        inventory.create(a.id, w)

    p = inventory.update(p.id, a.id, {"stock": 3})
    assert p.stock_status is StockStatus.LOW

    with pytest.raises(ValidationError):
        inventory.update(p.id, a.id, {"stock": -1})
    assert inventory.get(p.id, a.id).stock == 3


@pytest.mark.parametrize("price", ["1e1000000", "1000000000000.01", 10**13])
def test_prices_above_ceiling_are_rejected(inventory, widget, price):
    with pytest.raises(ValidationError):
        inventory.create(1, {**widget, "purchase_price": price})
    p = inventory.create(1, widget)
    with pytest.raises(ValidationError):
        inventory.update(p.id, 1, {"selling_price": price})
    assert inventory.get(p.id, 1) == p


def test_price_at_ceiling_is_accepted(inventory, widget):
    p = inventory.create(1, {**widget, "purchase_price": "1000000000000"})
    assert p.purchase_price == Decimal("1000000000000")


def test_negative_zero_price_is_stored_as_zero(inventory, widget):
    p = inventory.create(1, {**widget, "purchase_price": "-0", "selling_price": "-0.00"})
    assert p.to_dict()["purchasePrice"] == "0"
    assert p.to_dict()["sellingPrice"] == "0.00"


def test_list_snapshots_stay_consistent_under_writes(inventory, widget):
    # Each write keeps name and stock in step, so a torn product would show a mismatch
    base = inventory.create(1, {**widget, "name": "v0", "stock": 0})
    stop = threading.Event()
    problems = []

    def writer():
        i = 0
        while not stop.is_set():
            i += 1
            inventory.update(base.id, 1, {"name": f"v{i}", "stock": i})
            extra = inventory.create(1, {**widget, "sku": f"X-{i}", "name": f"v{i}", "stock": i})
            inventory.delete(extra.id, 1)

    def reader():
        for _ in range(300):
            snapshot = inventory.list(1)
            ids = [p.id for p in snapshot]
            if len(ids) != len(set(ids)) or not 1 <= len(ids) <= 2:
                problems.append(ids)
            for p in snapshot:
                if p.name != f"v{p.stock}" or p.owner_id != 1:
                    problems.append(p)

    w = threading.Thread(target=writer)
    w.start()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(lambda _: reader(), range(4)))
    finally:
        stop.set()
        w.join()
    assert problems == []


def test_concurrent_renames_to_same_sku_succeed_once(inventory, widget):
    for round_no in range(20):
        target = f"T-{round_no}"
        a = inventory.create(1, {**widget, "sku": f"A-{round_no}"})
        b = inventory.create(1, {**widget, "sku": f"B-{round_no}"})
        barrier = threading.Barrier(2)

        def rename(product_id):
            barrier.wait()
            try:
                return inventory.update(product_id, 1, {"sku": target})
            except DuplicateSku:
                return None

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(rename, [a.id, b.id]))

        renamed = [r for r in results if r is not None]
        assert len(renamed) == 1
        assert inventory.get_by_sku(1, target).id == renamed[0].id
        assert [p.sku for p in inventory.list(1)].count(target) == 1
