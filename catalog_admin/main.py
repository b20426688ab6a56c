from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog_admin.api.v1.routes_inventory import router as inventory_router
from catalog_admin.api.v1.routes_products import router as products_router
from catalog_admin.core.cache import CATALOG_SNAPSHOT_KEY, ResultCache
from catalog_admin.core.config import settings
from catalog_admin.core.logging import configure_logging
from catalog_admin.db.base import AsyncSessionLocal, init_models
from catalog_admin.domain.catalog.backend import SqlCatalogBackend
from catalog_admin.domain.catalog.service import CatalogService
from catalog_admin.domain.reconciliation.jobs import ReconciliationJobRegistry
from catalog_admin.domain.reconciliation.service import BulkReconciliationEngine


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await init_models()

    backend = SqlCatalogBackend(AsyncSessionLocal)
    cache = ResultCache()
    app.state.catalog_service = CatalogService(backend, cache)
    app.state.reconciliation_jobs = ReconciliationJobRegistry(
        BulkReconciliationEngine(backend),
        on_finished=lambda: cache.invalidate(CATALOG_SNAPSHOT_KEY),
    )
    yield


app = FastAPI(title="catalog-admin", lifespan=lifespan)

app.include_router(products_router)
app.include_router(inventory_router)

@app.get("/health")
async def health():
    return {"status": "ok"}
