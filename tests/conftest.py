from typing import List

import pytest

from catalog_admin.core.cache import ResultCache
from catalog_admin.domain.catalog.schemas import CatalogItem, WarehouseInventoryRow
from fakes import InMemoryCatalogBackend, item


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    return ResultCache(default_ttl=60, clock=clock)


@pytest.fixture
def catalog_items() -> List[CatalogItem]:
    return [
        item("SKU1", "Oil Filter", brand="Bosch", category="Filters", price=120, provider_sku="PF456"),
        item("SKU2", "Air Filter", brand="Bosch", category="Filters", price=80, provider_sku="AF100"),
        item("SKU3", "Brake Pad", brand="Brembo", category="Brakes", price=300, provider_sku="BP200"),
        item("SKU4", "Brake Pad Set", brand="Brembo", category="Brakes", price=550),
        item("SKU5", "Oil Filter Premium", brand="Mann", category="Filters", price=150, provider_sku="MF456"),
        item("SKU6", "Spark Plug", brand="NGK", category="Ignition", price=45, is_visible=False),
    ]


@pytest.fixture
def inventory_rows() -> List[WarehouseInventoryRow]:
    return [
        WarehouseInventoryRow(product_sku="SKU1", provider_branch_id=1, stock=5, provider_sku="PF456"),
        WarehouseInventoryRow(product_sku="SKU1", provider_branch_id=2, stock=7),
        WarehouseInventoryRow(product_sku="SKU3", provider_branch_id=1, stock=2, reserved_stock=1),
    ]


@pytest.fixture
def backend(catalog_items, inventory_rows) -> InMemoryCatalogBackend:
    return InMemoryCatalogBackend(
        items=catalog_items,
        inventory=inventory_rows,
        cross_references=[("SKU1", "SKU5")],
        compatibility=[
            {"sku": "SKU1", "assembly_plant": "Puebla", "model": "Jetta", "motorization": "1.8T"},
            {"sku": "SKU1", "assembly_plant": "Puebla", "model": "Jetta", "motorization": "2.0"},
            {"sku": "SKU3", "assembly_plant": "Puebla", "model": "Jetta", "motorization": "2.0"},
            {"sku": "SKU4", "assembly_plant": "Silao", "model": "Sentra", "motorization": "2.0"},
        ],
    )
