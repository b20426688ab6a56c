# catalog_admin/db/models/catalog_items.py
from sqlalchemy import Boolean, Column, Integer, Numeric, String, DateTime, Text
from sqlalchemy.sql import func

from catalog_admin.db.base import Base


class CatalogItemRecord(Base):
    """A sellable auto part in the marketplace catalog.

    The SKU is the canonical identifier and never changes once created. The
    provider SKU is the supplier's own part number; it is optional and not
    unique, and is the join key used by bulk stock files.
    """

    __tablename__ = "catalog_items"

    sku = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    image = Column(String, nullable=True)

    brand = Column(String, nullable=True, index=True)
    brand_code = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)
    description = Column(Text, nullable=True)

    provider = Column(String, nullable=True)
    provider_id = Column(Integer, nullable=True)
    provider_sku = Column(String, nullable=True, index=True)

    is_visible = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
