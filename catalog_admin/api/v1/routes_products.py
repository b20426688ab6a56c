# catalog_admin/api/v1/routes_products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from catalog_admin.api.v1.deps import get_catalog_service
from catalog_admin.core.errors import NotFoundError, RemoteUnavailable, ValidationFailure
from catalog_admin.domain.catalog.schemas import (
    CatalogItem,
    CatalogItemCreate,
    CatalogItemUpdate,
    CrossReference,
    CrossReferenceCreate,
    InventoryEntry,
    ProductFilters,
    ProductInventory,
    ProductPage,
    ProductStats,
    ProductStatus,
    SearchSuggestion,
)
from catalog_admin.domain.catalog.service import CatalogService


router = APIRouter(prefix="/api/v1/products", tags=["products"])


class VisibilityUpdate(BaseModel):
    is_visible: bool


class SkuOut(BaseModel):
    sku: str


class BulkImportOut(BaseModel):
    imported: int


@router.get("", response_model=ProductPage)
async def list_products_endpoint(
    search: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    model: Optional[str] = None,
    motorization: Optional[str] = None,
    assembly_plant: Optional[str] = None,
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    page: int = 1,
    service: CatalogService = Depends(get_catalog_service),
):
    filters = ProductFilters(
        search=search,
        brand=brand,
        category=category,
        model=model,
        motorization=motorization,
        assembly_plant=assembly_plant,
        status=status_filter,
    )
    try:
        return await service.list_products(filters, page)
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/suggestions", response_model=List[SearchSuggestion])
async def suggestions_endpoint(
    q: str = "",
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.get_search_suggestions(q)


@router.get("/stats", response_model=ProductStats)
async def stats_endpoint(service: CatalogService = Depends(get_catalog_service)):
    return await service.get_product_stats()


@router.get("/{sku}", response_model=CatalogItem)
async def get_product_endpoint(
    sku: str,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.get_product(sku)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/{sku}/cross-references", response_model=List[CrossReference])
async def list_cross_references_endpoint(
    sku: str,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.list_cross_references(sku)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post(
    "/{sku}/cross-references",
    response_model=List[CrossReference],
    status_code=status.HTTP_201_CREATED,
)
async def add_cross_references_endpoint(
    sku: str,
    payload: CrossReferenceCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.add_cross_references(sku, payload.reference_skus)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationFailure as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.messages)
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.delete("/{sku}/cross-references/{reference_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cross_reference_endpoint(
    sku: str,
    reference_id: int,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        await service.remove_cross_reference(sku, reference_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{sku}/inventory", response_model=ProductInventory)
async def get_inventory_endpoint(
    sku: str,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.get_inventory(sku)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.put("/{sku}/inventory", response_model=ProductInventory)
async def update_inventory_endpoint(
    sku: str,
    payload: List[InventoryEntry],
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.update_inventory(sku, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationFailure as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.messages)
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post("", response_model=SkuOut, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(
    payload: CatalogItemCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        sku = await service.create_product(payload)
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return SkuOut(sku=sku)


@router.post("/bulk", response_model=BulkImportOut, status_code=status.HTTP_201_CREATED)
async def bulk_import_endpoint(
    payload: List[CatalogItemCreate],
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        imported = await service.bulk_import(payload)
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return BulkImportOut(imported=imported)


@router.put("/{sku}", response_model=SkuOut)
async def update_product_endpoint(
    sku: str,
    payload: CatalogItemUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        await service.update_product(sku, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return SkuOut(sku=sku)


@router.post("/{sku}/visibility", response_model=SkuOut)
async def visibility_endpoint(
    sku: str,
    payload: VisibilityUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        await service.set_visibility(sku, payload.is_visible)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return SkuOut(sku=sku)


@router.delete("/{sku}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product_endpoint(
    sku: str,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        await service.delete_product(sku)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
