# catalog_admin/api/v1/deps.py
from fastapi import Request

from catalog_admin.domain.catalog.service import CatalogService
from catalog_admin.domain.reconciliation.jobs import ReconciliationJobRegistry


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_job_registry(request: Request) -> ReconciliationJobRegistry:
    return request.app.state.reconciliation_jobs
