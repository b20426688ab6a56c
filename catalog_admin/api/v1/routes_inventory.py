# catalog_admin/api/v1/routes_inventory.py
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from catalog_admin.api.v1.deps import get_catalog_service, get_job_registry
from catalog_admin.core.errors import NotFoundError, ValidationFailure
from catalog_admin.domain.catalog.service import CatalogService
from catalog_admin.domain.reconciliation.jobs import ReconciliationJobRegistry
from catalog_admin.domain.reconciliation.parser import parse_stock_file
from catalog_admin.domain.reconciliation.schemas import ReconciliationJobOut


router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


@router.get("/stock", response_model=Dict[str, int])
async def aggregate_stock_endpoint(
    sku: Optional[List[str]] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.stock.aggregate(sku or [])


@router.post(
    "/reconciliations",
    response_model=ReconciliationJobOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_reconciliation_endpoint(
    file: UploadFile = File(...),
    jobs: ReconciliationJobRegistry = Depends(get_job_registry),
):
    raw = await file.read()
    try:
        parsed = parse_stock_file(raw.decode("utf-8-sig"), file.filename or "stock.csv")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=["The file is not valid UTF-8 text"],
        )
    except ValidationFailure as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.messages)

    if not parsed.rows:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=parsed.errors)

    job = jobs.start(parsed)
    return job.to_out()


@router.get("/reconciliations", response_model=List[ReconciliationJobOut])
async def list_reconciliations_endpoint(jobs: ReconciliationJobRegistry = Depends(get_job_registry)):
    return [job.to_out() for job in jobs.list_jobs()]


@router.get("/reconciliations/{job_id}", response_model=ReconciliationJobOut)
async def get_reconciliation_endpoint(
    job_id: str,
    jobs: ReconciliationJobRegistry = Depends(get_job_registry),
):
    try:
        return jobs.get(job_id).to_out()
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.delete("/reconciliations/{job_id}", response_model=ReconciliationJobOut)
async def cancel_reconciliation_endpoint(
    job_id: str,
    jobs: ReconciliationJobRegistry = Depends(get_job_registry),
):
    try:
        return jobs.cancel(job_id).to_out()
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
