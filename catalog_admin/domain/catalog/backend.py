# catalog_admin/domain/catalog/backend.py
"""Remote relational store as seen by the catalog engines.

The engines only know the `CatalogBackend` protocol. `SqlCatalogBackend`
implements it over async SQLAlchemy and converts driver failures into
`RemoteUnavailable`, so callers deal with a single error type.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.core.errors import RemoteUnavailable
from catalog_admin.db.repositories import catalog as catalog_repo
from catalog_admin.db.repositories import inventory as inventory_repo
from catalog_admin.domain.catalog.schemas import (
    CatalogItem,
    CrossReference,
    SearchSuggestion,
    WarehouseInventoryRow,
    map_rows,
)


class CatalogBackend(Protocol):
    async def fetch_catalog_items(
        self,
        prefix_field: Optional[str] = None,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CatalogItem]:
        ...

    async def fetch_compatibility_aggregation(
        self,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        motorization: Optional[str] = None,
        assembly_plant: Optional[str] = None,
        provider_sku: Optional[str] = None,
    ) -> List[CatalogItem]:
        ...

    async def fetch_warehouse_inventory(self, skus: Sequence[str]) -> List[WarehouseInventoryRow]:
        ...

    async def fetch_search_suggestions(self, term: str, limit: int) -> List[SearchSuggestion]:
        ...

    async def find_warehouse_row_by_provider_sku(
        self, provider_sku: str, provider_branch_id: int
    ) -> Optional[WarehouseInventoryRow]:
        ...

    async def find_warehouse_row(self, sku: str, provider_branch_id: int) -> Optional[WarehouseInventoryRow]:
        ...

    async def update_warehouse_inventory(self, row: WarehouseInventoryRow) -> None:
        ...

    async def insert_warehouse_inventory(self, row: WarehouseInventoryRow) -> WarehouseInventoryRow:
        ...

    async def delete_warehouse_inventory(self, sku: str) -> int:
        ...

    async def resolve_catalog_item_by_provider_sku(self, provider_sku: str) -> Optional[CatalogItem]:
        ...

    async def fetch_catalog_item(self, sku: str) -> Optional[CatalogItem]:
        ...

    async def fetch_cross_references(self, sku: str) -> List[CrossReference]:
        ...

    async def insert_cross_references(self, values: Sequence[Dict[str, Any]]) -> None:
        ...

    async def delete_cross_reference(self, sku: str, reference_id: int) -> bool:
        ...

    async def insert_catalog_items(self, values: Sequence[Dict[str, Any]]) -> None:
        ...

    async def update_catalog_item(self, sku: str, values: Dict[str, Any]) -> bool:
        ...

    async def delete_catalog_item(self, sku: str) -> bool:
        ...


class SqlCatalogBackend:
    """`CatalogBackend` over async SQLAlchemy.

    Every call opens its own session so that independent reads may run
    concurrently (an AsyncSession must not be shared between tasks).
    """

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                yield db
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteUnavailable(f"{operation} failed: {exc}") from exc

    async def fetch_catalog_items(self, prefix_field=None, prefix=None, limit=None) -> List[CatalogItem]:
        async with self._session("fetch_catalog_items") as db:
            records = await catalog_repo.list_catalog_items(
                db, prefix_field=prefix_field, prefix=prefix, limit=limit
            )
            return map_rows(CatalogItem, records, "fetch_catalog_items")

    async def fetch_compatibility_aggregation(
        self,
        brand=None,
        model=None,
        motorization=None,
        assembly_plant=None,
        provider_sku=None,
    ) -> List[CatalogItem]:
        async with self._session("fetch_compatibility_aggregation") as db:
            if provider_sku:
                records = await catalog_repo.list_items_by_provider_sku_with_references(db, provider_sku)
                if brand:
                    records = [r for r in records if r.brand == brand]
            else:
                records = await catalog_repo.list_compatible_items(
                    db,
                    brand=brand,
                    model=model,
                    motorization=motorization,
                    assembly_plant=assembly_plant,
                )
            return map_rows(CatalogItem, records, "fetch_compatibility_aggregation")

    async def fetch_warehouse_inventory(self, skus: Sequence[str]) -> List[WarehouseInventoryRow]:
        async with self._session("fetch_warehouse_inventory") as db:
            records = await inventory_repo.list_inventory_for_skus(db, skus)
            return map_rows(WarehouseInventoryRow, records, "fetch_warehouse_inventory")

    async def fetch_search_suggestions(self, term: str, limit: int) -> List[SearchSuggestion]:
        async with self._session("fetch_search_suggestions") as db:
            records = await catalog_repo.search_suggestions(db, term, limit)
            return map_rows(SearchSuggestion, records, "fetch_search_suggestions")

    async def find_warehouse_row_by_provider_sku(
        self, provider_sku: str, provider_branch_id: int
    ) -> Optional[WarehouseInventoryRow]:
        async with self._session("find_warehouse_row_by_provider_sku") as db:
            record = await inventory_repo.get_inventory_by_provider_sku(db, provider_sku, provider_branch_id)
            return WarehouseInventoryRow.model_validate(record) if record else None

    async def find_warehouse_row(self, sku: str, provider_branch_id: int) -> Optional[WarehouseInventoryRow]:
        async with self._session("find_warehouse_row") as db:
            record = await inventory_repo.get_inventory_by_sku(db, sku, provider_branch_id)
            return WarehouseInventoryRow.model_validate(record) if record else None

    async def update_warehouse_inventory(self, row: WarehouseInventoryRow) -> None:
        if row.id is None:
            raise ValueError("Cannot update a warehouse row without an id")
        async with self._session("update_warehouse_inventory") as db:
            await inventory_repo.update_inventory(
                db, row.id, row.stock, row.reserved_stock, provider_sku=row.provider_sku
            )

    async def insert_warehouse_inventory(self, row: WarehouseInventoryRow) -> WarehouseInventoryRow:
        async with self._session("insert_warehouse_inventory") as db:
            record = await inventory_repo.insert_inventory(
                db,
                product_sku=row.product_sku,
                provider_branch_id=row.provider_branch_id,
                stock=row.stock,
                reserved_stock=row.reserved_stock,
                provider_sku=row.provider_sku,
            )
            return WarehouseInventoryRow.model_validate(record)

    async def delete_warehouse_inventory(self, sku: str) -> int:
        async with self._session("delete_warehouse_inventory") as db:
            return await inventory_repo.delete_inventory_for_sku(db, sku)

    async def resolve_catalog_item_by_provider_sku(self, provider_sku: str) -> Optional[CatalogItem]:
        async with self._session("resolve_catalog_item_by_provider_sku") as db:
            record = await catalog_repo.get_catalog_item_by_provider_sku(db, provider_sku)
            return CatalogItem.model_validate(record) if record else None

    async def insert_catalog_items(self, values: Sequence[Dict[str, Any]]) -> None:
        async with self._session("insert_catalog_items") as db:
            await catalog_repo.insert_catalog_items(db, values)

    async def update_catalog_item(self, sku: str, values: Dict[str, Any]) -> bool:
        async with self._session("update_catalog_item") as db:
            return await catalog_repo.update_catalog_item(db, sku, values) > 0

    async def delete_catalog_item(self, sku: str) -> bool:
        async with self._session("delete_catalog_item") as db:
            return await catalog_repo.delete_catalog_item(db, sku) > 0

    async def fetch_catalog_item(self, sku: str) -> Optional[CatalogItem]:
        async with self._session("fetch_catalog_item") as db:
            record = await catalog_repo.get_catalog_item(db, sku)
            return CatalogItem.model_validate(record) if record else None

    async def fetch_cross_references(self, sku: str) -> List[CrossReference]:
        async with self._session("fetch_cross_references") as db:
            references = []
            for record, reference_item in await catalog_repo.list_cross_references(db, sku):
                reference = CrossReference.model_validate(record)
                if reference_item is not None:
                    reference.reference_product = SearchSuggestion.model_validate(reference_item)
                references.append(reference)
            return references

    async def insert_cross_references(self, values: Sequence[Dict[str, Any]]) -> None:
        async with self._session("insert_cross_references") as db:
            await catalog_repo.insert_cross_references(db, values)

    async def delete_cross_reference(self, sku: str, reference_id: int) -> bool:
        async with self._session("delete_cross_reference") as db:
            return await catalog_repo.delete_cross_reference(db, sku, reference_id) > 0
