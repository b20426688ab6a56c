from sqlalchemy import Column, ForeignKey, Index, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from catalog_admin.db.base import Base


class WarehouseInventoryRecord(Base):
    """On-hand and reserved stock of one catalog item at one provider branch.

    At most one row exists per (product_sku, provider_branch_id). The provider
    SKU is copied here when the row is created from a stock file so later
    imports can find it without resolving the catalog item again.
    """

    __tablename__ = "warehouse_inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_sku = Column(String, ForeignKey("catalog_items.sku"), nullable=False)
    provider_branch_id = Column(Integer, nullable=False)

    stock = Column(Integer, nullable=False, default=0)
    reserved_stock = Column(Integer, nullable=False, default=0)

    provider_sku = Column(String, nullable=True)

    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("product_sku", "provider_branch_id", name="uq_warehouse_inventory_sku_branch"),
        Index("ix_warehouse_inventory_provider_branch", "provider_sku", "provider_branch_id"),
    )
