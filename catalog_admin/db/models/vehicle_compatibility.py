from sqlalchemy import Column, ForeignKey, Index, Integer, String

from catalog_admin.db.base import Base


class VehicleCompatibilityRecord(Base):
    """One vehicle variant a catalog item fits."""

    __tablename__ = "vehicle_compatibility"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_sku = Column(String, ForeignKey("catalog_items.sku"), nullable=False, index=True)

    assembly_plant = Column(String, nullable=True)
    model = Column(String, nullable=True)
    motorization = Column(String, nullable=True)
    year = Column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_vehicle_compatibility_plant_model", "assembly_plant", "model"),
    )
