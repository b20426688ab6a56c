from sqlalchemy import Column, ForeignKey, Integer, String, DateTime
from sqlalchemy.sql import func

from catalog_admin.db.base import Base


class CrossReferenceRecord(Base):
    """Records that two catalog items are interchangeable parts."""

    __tablename__ = "product_cross_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_sku = Column(String, ForeignKey("catalog_items.sku"), nullable=False, index=True)
    reference_product_sku = Column(String, ForeignKey("catalog_items.sku"), nullable=False, index=True)

    product_brand = Column(String, nullable=True)
    reference_brand = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
