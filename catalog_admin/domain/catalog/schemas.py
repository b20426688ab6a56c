# catalog_admin/domain/catalog/schemas.py
import enum
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/placeholder-product.png"


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


class CatalogItem(BaseModel):
    sku: str = Field(..., min_length=1)
    name: str = ""
    price: float = Field(0, ge=0)
    image: str = PLACEHOLDER_IMAGE
    brand: str = ""
    brand_code: str = ""
    category: str = ""
    description: str = ""
    provider: str = ""
    provider_id: Optional[int] = None
    provider_sku: Optional[str] = None
    is_visible: bool = True
    # derived from warehouse rows, never persisted on the item
    total_stock: int = Field(0, ge=0)

    @field_validator("name", "brand", "brand_code", "category", "description", "provider", mode="before")
    @classmethod
    def _text_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _price_default(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("image", mode="before")
    @classmethod
    def _image_default(cls, value: Any) -> Any:
        return value or PLACEHOLDER_IMAGE

    @field_validator("provider_sku", mode="before")
    @classmethod
    def _blank_provider_sku(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("is_visible", mode="before")
    @classmethod
    def _visible_default(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("total_stock", mode="before")
    @classmethod
    def _stock_default(cls, value: Any) -> Any:
        return 0 if value is None else value

    class Config:
        from_attributes = True


class WarehouseInventoryRow(BaseModel):
    id: Optional[int] = None
    product_sku: str = Field(..., min_length=1)
    provider_branch_id: int
    stock: int = Field(0, ge=0)
    reserved_stock: int = Field(0, ge=0)
    provider_sku: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SearchSuggestion(BaseModel):
    sku: str = Field(..., min_length=1)
    name: str = ""
    brand: str = ""
    price: float = 0
    image: str = PLACEHOLDER_IMAGE

    @field_validator("name", "brand", mode="before")
    @classmethod
    def _text_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _price_default(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("image", mode="before")
    @classmethod
    def _image_default(cls, value: Any) -> Any:
        return value or PLACEHOLDER_IMAGE

    @classmethod
    def from_item(cls, item: CatalogItem) -> "SearchSuggestion":
        return cls(sku=item.sku, name=item.name, brand=item.brand, price=item.price, image=item.image)

    class Config:
        from_attributes = True


class CrossReference(BaseModel):
    id: int
    product_sku: str
    reference_product_sku: str
    product_brand: Optional[str] = None
    reference_brand: Optional[str] = None
    created_at: Optional[datetime] = None
    # None when the referenced item no longer exists
    reference_product: Optional[SearchSuggestion] = None

    class Config:
        from_attributes = True


class CrossReferenceCreate(BaseModel):
    reference_skus: List[str] = Field(..., min_length=1)


class InventoryEntry(BaseModel):
    provider_branch_id: int = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    reserved_stock: int = Field(0, ge=0)


class ProductInventory(BaseModel):
    sku: str
    rows: List[WarehouseInventoryRow]
    total_stock: int
    reserved_stock: int
    available_stock: int

    @classmethod
    def from_rows(cls, sku: str, rows: Iterable[WarehouseInventoryRow]) -> "ProductInventory":
        rows = sorted(rows, key=lambda row: row.provider_branch_id)
        total = sum(row.stock for row in rows)
        reserved = sum(row.reserved_stock for row in rows)
        return cls(sku=sku, rows=rows, total_stock=total, reserved_stock=reserved, available_stock=total - reserved)


class ProductFilters(BaseModel):
    search: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None
    motorization: Optional[str] = None
    assembly_plant: Optional[str] = None
    status: Optional[ProductStatus] = None

    @property
    def search_term(self) -> str:
        return (self.search or "").strip()

    @property
    def has_compatibility_filters(self) -> bool:
        return bool(self.assembly_plant or self.model or self.motorization)

    @property
    def has_basic_filters(self) -> bool:
        return bool(self.brand or self.category)

    def is_empty(self) -> bool:
        return not (self.search_term or self.has_compatibility_filters or self.has_basic_filters or self.status)


class CatalogItemCreate(BaseModel):
    sku: Optional[str] = None
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    brand: Optional[str] = None
    brand_code: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    provider: Optional[str] = None
    provider_id: Optional[int] = None
    provider_sku: Optional[str] = None
    is_visible: bool = True


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    brand: Optional[str] = None
    brand_code: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    provider: Optional[str] = None
    provider_id: Optional[int] = None
    provider_sku: Optional[str] = None


class ProductStats(BaseModel):
    total_products: int
    total_categories: int
    average_price: float


class ProductPage(BaseModel):
    items: List[CatalogItem]
    total_items: int
    total_pages: int
    page: int
    page_size: int
    error: Optional[str] = None


M = TypeVar("M", bound=BaseModel)


def map_rows(model: Type[M], rows: Iterable[Any], source: str) -> List[M]:
    """Validate backend rows into `model`, dropping the malformed ones."""
    mapped: List[M] = []
    for row in rows:
        try:
            mapped.append(model.model_validate(row, from_attributes=True))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed %s row from %s: %s",
                model.__name__, source, exc.errors()[0].get("msg", "invalid"),
            )
    return mapped
