import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from core.deps import get_payment_simulator, get_store
from core.store import MemoryBackend, RecordStore
from models.menu_item import MenuItem
from models.shop import Shop
from services.catalog import Catalog
from services.notifications import Notifier
from services.order_lifecycle import OrderLifecycleController
from services.order_repository import OrderRepository
from services.payment_simulator import PaymentSimulator


class FixedClock:
    """Deterministic clock; tests move it forward explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    return RecordStore(backend, prefix="test_", clock=clock)


@pytest.fixture
def repository(store):
    return OrderRepository(store)


@pytest.fixture
def catalog(store):
    return Catalog(store)


@pytest.fixture
def notifier(store):
    return Notifier(store)


@pytest.fixture
def approving_payments():
    """Payment simulator that always succeeds, without delay."""
    return PaymentSimulator(delay=0, success_rate=1.0)


@pytest.fixture
def declining_payments():
    """Payment simulator that always declines, without delay."""
    return PaymentSimulator(delay=0, success_rate=0.0)


def build_controller(store, payments, seed=7):
    return OrderLifecycleController(
        repository=OrderRepository(store),
        catalog=Catalog(store),
        payments=payments,
        notifier=Notifier(store),
        rng=random.Random(seed),
    )


@pytest.fixture
def controller(store, approving_payments):
    return build_controller(store, approving_payments)


@pytest.fixture
def failing_controller(store, declining_payments):
    return build_controller(store, declining_payments)


@pytest.fixture
def test_shop(catalog):
    """A shop owned by ``owner_1`` with a two-item menu."""
    shop = Shop(id="shop_1", name="Campus Cafe", owner_id="owner_1", category="Cafe")
    run(catalog.add_shop(shop))
    run(catalog.add_menu_item(MenuItem(id="m1", shop_id="shop_1", name="Sandwich", price=5.00, preparation_time=10)))
    run(catalog.add_menu_item(MenuItem(id="m2", shop_id="shop_1", name="Juice", price=3.00, preparation_time=2)))
    return shop


@pytest.fixture
def sample_items():
    return [
        {"menu_item_id": "m1", "quantity": 2, "price": 5.00},
        {"menu_item_id": "m2", "quantity": 1, "price": 3.00},
    ]


@pytest.fixture
def client(store, approving_payments):
    """Test client bound to the per-test store and an always-approving payment simulator."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_payment_simulator] = lambda: approving_payments
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
