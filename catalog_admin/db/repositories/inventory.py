# catalog_admin/db/repositories/inventory.py
from typing import List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from catalog_admin.db.models.warehouse_inventory import WarehouseInventoryRecord


async def list_inventory_for_skus(
    db: AsyncSession,
    skus: Sequence[str],
) -> List[WarehouseInventoryRecord]:
    result = await db.execute(
        select(WarehouseInventoryRecord).where(WarehouseInventoryRecord.product_sku.in_(list(skus)))
    )
    return list(result.scalars().all())


async def get_inventory_by_provider_sku(
    db: AsyncSession,
    provider_sku: str,
    provider_branch_id: int,
) -> Optional[WarehouseInventoryRecord]:
    result = await db.execute(
        select(WarehouseInventoryRecord)
        .where(
            WarehouseInventoryRecord.provider_sku == provider_sku,
            WarehouseInventoryRecord.provider_branch_id == provider_branch_id,
        )
        .order_by(WarehouseInventoryRecord.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_inventory_by_sku(
    db: AsyncSession,
    product_sku: str,
    provider_branch_id: int,
) -> Optional[WarehouseInventoryRecord]:
    result = await db.execute(
        select(WarehouseInventoryRecord).where(
            WarehouseInventoryRecord.product_sku == product_sku,
            WarehouseInventoryRecord.provider_branch_id == provider_branch_id,
        )
    )
    return result.scalar_one_or_none()


async def update_inventory(
    db: AsyncSession,
    inventory_id: int,
    stock: int,
    reserved_stock: int,
    provider_sku: Optional[str] = None,
) -> int:
    values = {"stock": stock, "reserved_stock": reserved_stock, "updated_at": func.now()}
    if provider_sku is not None:
        values["provider_sku"] = provider_sku
    result = await db.execute(
        update(WarehouseInventoryRecord)
        .where(WarehouseInventoryRecord.id == inventory_id)
        .values(**values)
    )
    await db.commit()
    return result.rowcount


async def insert_inventory(
    db: AsyncSession,
    product_sku: str,
    provider_branch_id: int,
    stock: int,
    reserved_stock: int,
    provider_sku: Optional[str] = None,
) -> WarehouseInventoryRecord:
    row = WarehouseInventoryRecord(
        product_sku=product_sku,
        provider_branch_id=provider_branch_id,
        stock=stock,
        reserved_stock=reserved_stock,
        provider_sku=provider_sku,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def delete_inventory_for_sku(db: AsyncSession, product_sku: str) -> int:
    result = await db.execute(
        delete(WarehouseInventoryRecord).where(WarehouseInventoryRecord.product_sku == product_sku)
    )
    await db.commit()
    return result.rowcount
