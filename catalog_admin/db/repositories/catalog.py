# catalog_admin/db/repositories/catalog.py
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from catalog_admin.db.models.catalog_items import CatalogItemRecord
from catalog_admin.db.models.cross_references import CrossReferenceRecord
from catalog_admin.db.models.vehicle_compatibility import VehicleCompatibilityRecord

PREFIX_COLUMNS = {
    "sku": CatalogItemRecord.sku,
    "name": CatalogItemRecord.name,
    "provider_sku": CatalogItemRecord.provider_sku,
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_catalog_items(
    db: AsyncSession,
    prefix_field: Optional[str] = None,
    prefix: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[CatalogItemRecord]:
    stmt = select(CatalogItemRecord)
    if prefix_field is not None and prefix:
        column = PREFIX_COLUMNS[prefix_field]
        stmt = stmt.where(column.ilike(f"{_escape_like(prefix)}%", escape="\\"))
    stmt = stmt.order_by(CatalogItemRecord.name)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_catalog_item_by_provider_sku(
    db: AsyncSession,
    provider_sku: str,
) -> Optional[CatalogItemRecord]:
    result = await db.execute(
        select(CatalogItemRecord)
        .where(func.lower(CatalogItemRecord.provider_sku) == provider_sku.lower())
        .order_by(CatalogItemRecord.sku)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_compatible_items(
    db: AsyncSession,
    brand: Optional[str] = None,
    model: Optional[str] = None,
    motorization: Optional[str] = None,
    assembly_plant: Optional[str] = None,
) -> List[CatalogItemRecord]:
    """Items matching the given facets, one row per matching vehicle variant."""
    stmt = select(CatalogItemRecord)
    if model or motorization or assembly_plant:
        stmt = stmt.join(
            VehicleCompatibilityRecord,
            VehicleCompatibilityRecord.product_sku == CatalogItemRecord.sku,
        )
        if assembly_plant:
            stmt = stmt.where(VehicleCompatibilityRecord.assembly_plant == assembly_plant)
        if model:
            stmt = stmt.where(VehicleCompatibilityRecord.model == model)
        if motorization:
            stmt = stmt.where(VehicleCompatibilityRecord.motorization == motorization)
    if brand:
        stmt = stmt.where(CatalogItemRecord.brand == brand)
    stmt = stmt.order_by(CatalogItemRecord.name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_items_by_provider_sku_with_references(
    db: AsyncSession,
    provider_sku: str,
) -> List[CatalogItemRecord]:
    """Items carrying `provider_sku`, followed by their cross-referenced items."""
    matched_result = await db.execute(
        select(CatalogItemRecord)
        .where(func.lower(CatalogItemRecord.provider_sku) == provider_sku.lower())
        .order_by(CatalogItemRecord.name)
    )
    matched = list(matched_result.scalars().all())
    if not matched:
        return []

    skus = [item.sku for item in matched]
    refs_result = await db.execute(
        select(CrossReferenceRecord.product_sku, CrossReferenceRecord.reference_product_sku).where(
            or_(
                CrossReferenceRecord.product_sku.in_(skus),
                CrossReferenceRecord.reference_product_sku.in_(skus),
            )
        )
    )
    referenced = set()
    for product_sku, reference_sku in refs_result.all():
        referenced.add(product_sku)
        referenced.add(reference_sku)
    referenced.difference_update(skus)
    if not referenced:
        return matched

    refs_items = await db.execute(
        select(CatalogItemRecord)
        .where(CatalogItemRecord.sku.in_(sorted(referenced)))
        .order_by(CatalogItemRecord.name)
    )
    return matched + list(refs_items.scalars().all())


async def search_suggestions(db: AsyncSession, term: str, limit: int) -> List[CatalogItemRecord]:
    pattern = f"%{_escape_like(term)}%"
    result = await db.execute(
        select(CatalogItemRecord)
        .where(
            or_(
                CatalogItemRecord.name.ilike(pattern, escape="\\"),
                CatalogItemRecord.sku.ilike(pattern, escape="\\"),
                CatalogItemRecord.brand.ilike(pattern, escape="\\"),
            )
        )
        .order_by(CatalogItemRecord.name)
        .limit(limit)
    )
    return list(result.scalars().all())


async def insert_catalog_items(db: AsyncSession, values: Sequence[Dict[str, Any]]) -> None:
    db.add_all([CatalogItemRecord(**v) for v in values])
    await db.commit()


async def update_catalog_item(db: AsyncSession, sku: str, values: Dict[str, Any]) -> int:
    result = await db.execute(
        update(CatalogItemRecord).where(CatalogItemRecord.sku == sku).values(**values)
    )
    await db.commit()
    return result.rowcount


async def delete_catalog_item(db: AsyncSession, sku: str) -> int:
    # warehouse rows are removed by the caller beforehand
    await db.execute(
        delete(CrossReferenceRecord).where(
            or_(
                CrossReferenceRecord.product_sku == sku,
                CrossReferenceRecord.reference_product_sku == sku,
            )
        )
    )
    await db.execute(delete(VehicleCompatibilityRecord).where(VehicleCompatibilityRecord.product_sku == sku))
    result = await db.execute(delete(CatalogItemRecord).where(CatalogItemRecord.sku == sku))
    await db.commit()
    return result.rowcount


async def get_catalog_item(db: AsyncSession, sku: str) -> Optional[CatalogItemRecord]:
    result = await db.execute(select(CatalogItemRecord).where(CatalogItemRecord.sku == sku))
    return result.scalar_one_or_none()


async def list_cross_references(
    db: AsyncSession,
    product_sku: str,
) -> List[Tuple[CrossReferenceRecord, Optional[CatalogItemRecord]]]:
    """References declared by `product_sku`, each with its referenced item if it still exists."""
    result = await db.execute(
        select(CrossReferenceRecord, CatalogItemRecord)
        .outerjoin(CatalogItemRecord, CatalogItemRecord.sku == CrossReferenceRecord.reference_product_sku)
        .where(CrossReferenceRecord.product_sku == product_sku)
        .order_by(CrossReferenceRecord.id)
    )
    return [(reference, item) for reference, item in result.all()]


async def insert_cross_references(db: AsyncSession, values: Sequence[Dict[str, Any]]) -> None:
    db.add_all([CrossReferenceRecord(**v) for v in values])
    await db.commit()


async def delete_cross_reference(db: AsyncSession, product_sku: str, reference_id: int) -> int:
    result = await db.execute(
        delete(CrossReferenceRecord).where(
            CrossReferenceRecord.id == reference_id,
            CrossReferenceRecord.product_sku == product_sku,
        )
    )
    await db.commit()
    return result.rowcount
