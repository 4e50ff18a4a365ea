import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

# Cheap argon2 parameters for tests; must be set before invpro.auth.passwords is imported
os.environ.setdefault("INVPRO_ARGON2_TIME_COST", "1")
os.environ.setdefault("INVPRO_ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("INVPRO_ARGON2_PARALLELISM", "1")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import importlib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from invpro.auth.session import SessionAuthority
from invpro.auth.users import IdentityStore
from invpro.permissions import AccessGate
from invpro.services.inventory_service import InventoryStore


class FakeClock:
    """Manually advanced UTC clock for session expiry tests."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def identity() -> IdentityStore:
    return IdentityStore()


@pytest.fixture()
def sessions(clock) -> SessionAuthority:
    return SessionAuthority(ttl=timedelta(hours=1), clock=clock)


@pytest.fixture()
def gate(identity, sessions) -> AccessGate:
    return AccessGate(identity, sessions)


@pytest.fixture()
def inventory() -> InventoryStore:
    return InventoryStore()


@pytest.fixture()
def widget() -> dict:
    return {
        "name": "Widget",
        "sku": "W-1",
        "category": "Other",
        "purchase_price": "1.00",
        "selling_price": "2.00",
        "stock": 10,
    }


@pytest.fixture()
def app_module(monkeypatch):
    """Fresh app with empty stores (module-level state is rebuilt on reload)."""
    monkeypatch.delenv("INVPRO_SEED_DEMO", raising=False)
    import invpro.app as app_module
    importlib.reload(app_module)
    return app_module


@pytest.fixture()
def client(app_module) -> TestClient:
    return TestClient(app_module.app)
