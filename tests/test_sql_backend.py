"""SqlCatalogBackend against a throwaway SQLite database."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from catalog_admin.core.errors import RemoteUnavailable
from catalog_admin.db.base import init_models
from catalog_admin.db.models.catalog_items import CatalogItemRecord
from catalog_admin.db.models.cross_references import CrossReferenceRecord
from catalog_admin.db.models.vehicle_compatibility import VehicleCompatibilityRecord
from catalog_admin.db.models.warehouse_inventory import WarehouseInventoryRecord
from catalog_admin.domain.catalog.backend import SqlCatalogBackend
from catalog_admin.domain.catalog.schemas import WarehouseInventoryRow
from catalog_admin.domain.reconciliation.schemas import ReconciliationRow
from catalog_admin.domain.reconciliation.service import BulkReconciliationEngine


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/catalog.db")
    await init_models(bind=engine)
    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as db:
        db.add_all(
            [
                CatalogItemRecord(sku="SKU1", name="Oil Filter", brand="Bosch", category="Filters",
                                  price=120, provider_sku="PF456"),
                CatalogItemRecord(sku="SKU2", name="Air Filter", brand="Bosch", category="Filters",
                                  price=80, provider_sku="AF100"),
                CatalogItemRecord(sku="SKU3", name="Brake Pad", brand="Brembo", category="Brakes",
                                  price=300, provider_sku="BP200"),
                CatalogItemRecord(sku="SKU5", name="Oil Filter Premium", brand="Mann", category="Filters",
                                  price=150, provider_sku="MF456"),
                CatalogItemRecord(sku="SKU_X", name="100% Cotton Rag", brand="Generic", price=5),
            ]
        )
        await db.flush()
        db.add_all(
            [
                CrossReferenceRecord(product_sku="SKU1", reference_product_sku="SKU5"),
                VehicleCompatibilityRecord(product_sku="SKU1", assembly_plant="Puebla", model="Jetta",
                                           motorization="1.8T"),
                VehicleCompatibilityRecord(product_sku="SKU1", assembly_plant="Puebla", model="Jetta",
                                           motorization="2.0"),
                VehicleCompatibilityRecord(product_sku="SKU3", assembly_plant="Puebla", model="Jetta",
                                           motorization="2.0"),
                WarehouseInventoryRecord(product_sku="SKU1", provider_branch_id=1, stock=5,
                                         provider_sku="PF456"),
                WarehouseInventoryRecord(product_sku="SKU1", provider_branch_id=2, stock=7),
            ]
        )
        await db.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def backend(session_factory) -> SqlCatalogBackend:
    return SqlCatalogBackend(session_factory)


class TestReads:
    @pytest.mark.asyncio
    async def test_prefix_search_is_case_insensitive(self, backend) -> None:
        items = await backend.fetch_catalog_items(prefix_field="name", prefix="oil")

        assert [i.sku for i in items] == ["SKU1", "SKU5"]

    @pytest.mark.asyncio
    async def test_prefix_wildcards_are_literal(self, backend) -> None:
        assert [i.sku for i in await backend.fetch_catalog_items(prefix_field="name", prefix="100%")] == ["SKU_X"]
        assert [i.sku for i in await backend.fetch_catalog_items(prefix_field="sku", prefix="SKU_")] == ["SKU_X"]

    @pytest.mark.asyncio
    async def test_limit(self, backend) -> None:
        items = await backend.fetch_catalog_items(limit=2)

        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_missing_image_gets_placeholder(self, backend) -> None:
        [rag] = await backend.fetch_catalog_items(prefix_field="sku", prefix="SKU_X")

        assert rag.image == "/placeholder-product.png"
        assert rag.provider_sku is None

    @pytest.mark.asyncio
    async def test_compatibility_returns_one_row_per_variant(self, backend) -> None:
        items = await backend.fetch_compatibility_aggregation(model="Jetta")

        assert sorted(i.sku for i in items) == ["SKU1", "SKU1", "SKU3"]

    @pytest.mark.asyncio
    async def test_compatibility_with_brand(self, backend) -> None:
        items = await backend.fetch_compatibility_aggregation(model="Jetta", motorization="2.0", brand="Brembo")

        assert [i.sku for i in items] == ["SKU3"]

    @pytest.mark.asyncio
    async def test_unfiltered_aggregation_is_whole_catalog(self, backend) -> None:
        items = await backend.fetch_compatibility_aggregation()

        assert len(items) == 5

    @pytest.mark.asyncio
    async def test_provider_sku_includes_cross_references(self, backend) -> None:
        items = await backend.fetch_compatibility_aggregation(provider_sku="pf456")

        assert [i.sku for i in items] == ["SKU1", "SKU5"]

    @pytest.mark.asyncio
    async def test_cross_references_work_in_both_directions(self, backend) -> None:
        items = await backend.fetch_compatibility_aggregation(provider_sku="MF456")

        assert [i.sku for i in items] == ["SKU5", "SKU1"]

    @pytest.mark.asyncio
    async def test_inventory_rows(self, backend) -> None:
        rows = await backend.fetch_warehouse_inventory(["SKU1", "SKU2"])

        assert sorted(r.stock for r in rows) == [5, 7]

    @pytest.mark.asyncio
    async def test_suggestions_match_name_sku_or_brand(self, backend) -> None:
        by_brand = await backend.fetch_search_suggestions("brem", 8)
        by_name = await backend.fetch_search_suggestions("filter", 2)

        assert [s.sku for s in by_brand] == ["SKU3"]
        assert len(by_name) == 2


class TestInventoryWrites:
    @pytest.mark.asyncio
    async def test_find_by_provider_sku_and_branch(self, backend) -> None:
        found = await backend.find_warehouse_row_by_provider_sku("PF456", 1)
        missing = await backend.find_warehouse_row_by_provider_sku("PF456", 2)

        assert found.product_sku == "SKU1"
        assert missing is None

    @pytest.mark.asyncio
    async def test_update(self, backend) -> None:
        row = await backend.find_warehouse_row("SKU1", 2)

        await backend.update_warehouse_inventory(row.model_copy(update={"stock": 1, "provider_sku": "PF456"}))

        updated = await backend.find_warehouse_row_by_provider_sku("PF456", 2)
        assert updated.id == row.id
        assert updated.stock == 1

    @pytest.mark.asyncio
    async def test_insert_returns_stored_row(self, backend) -> None:
        stored = await backend.insert_warehouse_inventory(
            WarehouseInventoryRow(product_sku="SKU3", provider_branch_id=1, stock=4, provider_sku="BP200")
        )

        assert stored.id is not None
        assert stored.updated_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_insert_is_remote_error(self, backend) -> None:
        with pytest.raises(RemoteUnavailable):
            await backend.insert_warehouse_inventory(
                WarehouseInventoryRow(product_sku="SKU1", provider_branch_id=1, stock=4)
            )

    @pytest.mark.asyncio
    async def test_resolve_is_case_insensitive(self, backend) -> None:
        item = await backend.resolve_catalog_item_by_provider_sku("bp200")

        assert item.sku == "SKU3"


class TestCatalogWrites:
    @pytest.mark.asyncio
    async def test_insert_and_update(self, backend) -> None:
        await backend.insert_catalog_items([{"sku": "SKU9", "name": "Fuel Pump", "price": 900}])

        assert await backend.update_catalog_item("SKU9", {"is_visible": False}) is True
        assert await backend.update_catalog_item("NOPE", {"is_visible": False}) is False
        [pump] = await backend.fetch_catalog_items(prefix_field="sku", prefix="SKU9")
        assert pump.is_visible is False

    @pytest.mark.asyncio
    async def test_delete_removes_references_and_compatibility(self, backend) -> None:
        await backend.delete_warehouse_inventory("SKU1")

        assert await backend.delete_catalog_item("SKU1") is True
        assert await backend.delete_catalog_item("SKU1") is False
        assert [i.sku for i in await backend.fetch_compatibility_aggregation(model="Jetta")] == ["SKU3"]
        assert [i.sku for i in await backend.fetch_compatibility_aggregation(provider_sku="MF456")] == ["SKU5"]


class TestCrossReferences:
    @pytest.mark.asyncio
    async def test_fetch_single_item(self, backend) -> None:
        item = await backend.fetch_catalog_item("SKU3")

        assert (item.name, item.brand) == ("Brake Pad", "Brembo")
        assert await backend.fetch_catalog_item("NOPE") is None

    @pytest.mark.asyncio
    async def test_references_carry_the_referenced_item(self, backend) -> None:
        [reference] = await backend.fetch_cross_references("SKU1")

        assert reference.reference_product_sku == "SKU5"
        assert reference.reference_product.name == "Oil Filter Premium"
        assert reference.created_at is not None

    @pytest.mark.asyncio
    async def test_dangling_reference_has_no_product(self, backend, session_factory) -> None:
        async with session_factory() as db:
            db.add(CrossReferenceRecord(product_sku="SKU2", reference_product_sku="GONE"))
            await db.commit()

        [reference] = await backend.fetch_cross_references("SKU2")

        assert reference.reference_product is None

    @pytest.mark.asyncio
    async def test_insert_then_delete(self, backend) -> None:
        await backend.insert_cross_references(
            [{"product_sku": "SKU3", "reference_product_sku": "SKU2", "product_brand": "Brembo",
              "reference_brand": "Bosch"}]
        )
        [reference] = await backend.fetch_cross_references("SKU3")

        assert reference.reference_brand == "Bosch"
        assert await backend.delete_cross_reference("SKU1", reference.id) is False
        assert await backend.delete_cross_reference("SKU3", reference.id) is True
        assert await backend.fetch_cross_references("SKU3") == []

    @pytest.mark.asyncio
    async def test_inserted_reference_feeds_provider_sku_lookup(self, backend) -> None:
        await backend.insert_cross_references([{"product_sku": "SKU3", "reference_product_sku": "SKU2"}])

        found = await backend.fetch_compatibility_aggregation(provider_sku="BP200")

        assert [i.sku for i in found] == ["SKU3", "SKU2"]


class TestReconciliationAgainstSql:
    @pytest.mark.asyncio
    async def test_mixed_batch(self, backend) -> None:
        engine = BulkReconciliationEngine(backend)

        progress = await engine.reconcile(
            [
                ReconciliationRow(provider_sku="PF456", provider_branch_id=1, stock=9),
                ReconciliationRow(provider_sku="BP200", provider_branch_id=3, stock=4),
                ReconciliationRow(provider_sku="ZZZ999", provider_branch_id=1, stock=1),
                ReconciliationRow(provider_sku="PF456", provider_branch_id=2, stock=3),
            ]
        )

        assert (progress.updated, progress.created, progress.skipped) == (2, 1, 1)
        rows = await backend.fetch_warehouse_inventory(["SKU1", "SKU3"])
        assert sorted((r.product_sku, r.provider_branch_id, r.stock) for r in rows) == [
            ("SKU1", 1, 9),
            ("SKU1", 2, 3),
            ("SKU3", 3, 4),
        ]
