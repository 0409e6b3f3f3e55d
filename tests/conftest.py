"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Tuple

import pytest

from catalog.config import CatalogSettings
from catalog.core.events import EventBus, ProductEvent
from catalog.core.models import Product, ProductMetrics, ProductStatus
from catalog.core.service import CatalogService
from catalog.data import demo_products

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class EventRecorder:
    """Records (topic, event) pairs delivered on the given topics"""

    def __init__(self, bus: EventBus, topics: Iterable[str]):
        self.received: List[Tuple[str, ProductEvent]] = []
        self._unsubscribes = [bus.subscribe([topic], self._recorder(topic)) for topic in topics]

    def _recorder(self, topic: str) -> Callable[[ProductEvent], None]:
        def record(event: ProductEvent) -> None:
            self.received.append((topic, event))
        return record

    @property
    def topics(self) -> List[str]:
        return [topic for topic, _ in self.received]

    def close(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()


def build_product(
    product_id: str,
    name: str = "Widget",
    category: str = "gaming",
    sku: str = None,
    price: str = "10.00",
    stock: int = 5,
    status: ProductStatus = ProductStatus.ACTIVE,
    tags: Iterable[str] = (),
    description: str = "",
    created_at: datetime = NOW,
    metrics: ProductMetrics = None,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        category=category,
        sku=sku or f"SKU-{product_id}",
        price=Decimal(price),
        stock_quantity=stock,
        status=status,
        tags=list(tags),
        description=description,
        created_at=created_at,
        updated_at=created_at,
        metrics=metrics or ProductMetrics(),
    )


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Factory for fully-formed product records"""
    return build_product


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog_settings() -> CatalogSettings:
    """Catalog settings with seeding disabled"""
    return CatalogSettings(seed_demo_data=False, seed_random_products=0)


@pytest.fixture
def catalog(clock, catalog_settings) -> CatalogService:
    """Empty catalog driven by the fake clock"""
    return CatalogService(settings=catalog_settings, clock=clock)


@pytest.fixture
def seeded_catalog(catalog, clock) -> CatalogService:
    """Catalog holding the four demo products (ids "1" to "4")"""
    catalog.seed(demo_products(clock()))
    return catalog


@pytest.fixture
def gaming_catalog(catalog, make_product) -> CatalogService:
    """Three gaming products interleaved with products of other categories"""
    catalog.seed([
        make_product("g1", name="Console", category="gaming", price="499.00"),
        make_product("c1", name="Camera", category="cameras", price="899.00"),
        make_product("g2", name="Controller", category="gaming", price="69.00"),
        make_product("l1", name="Laptop", category="laptops", price="1299.00"),
        make_product("g3", name="Headset", category="Gaming", price="129.00"),
    ])
    return catalog


@pytest.fixture
def recorder(catalog):
    """Factory for event recorders on the catalog bus, closed after the test"""
    recorders: List[EventRecorder] = []

    def factory(*topics: str) -> EventRecorder:
        rec = EventRecorder(catalog.bus, topics)
        recorders.append(rec)
        return rec

    yield factory
    for rec in recorders:
        rec.close()
