# catalog_admin/domain/catalog/service.py
import asyncio
import logging
import math
import time
from typing import List, Optional, Sequence

from catalog_admin.core.cache import CATALOG_SNAPSHOT_KEY, ResultCache
from catalog_admin.core.config import settings
from catalog_admin.core.errors import CatalogError, NotFoundError, RemoteUnavailable, ValidationFailure
from catalog_admin.domain.catalog.backend import CatalogBackend
from catalog_admin.domain.catalog.filters import FilterEngine
from catalog_admin.domain.catalog.ranking import dedupe_by_sku
from catalog_admin.domain.catalog.schemas import (
    CatalogItem,
    CatalogItemCreate,
    CatalogItemUpdate,
    CrossReference,
    InventoryEntry,
    ProductFilters,
    ProductInventory,
    ProductPage,
    ProductStats,
    SearchSuggestion,
    WarehouseInventoryRow,
)
from catalog_admin.domain.catalog.search import SearchStrategyEngine
from catalog_admin.domain.catalog.stock import StockAggregator

logger = logging.getLogger(__name__)


class CatalogService:
    """Product listing, search and writes over one shared catalog snapshot.

    `products` is the last successfully loaded catalog snapshot and is what the
    search engine scans locally. It is the only state kept between requests;
    filters, the filtered listing and any error travel with each call.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        cache: ResultCache,
        page_size: Optional[int] = None,
        snapshot_ttl: Optional[float] = None,
    ):
        self.backend = backend
        self.cache = cache
        self.page_size = page_size or settings.PAGE_SIZE
        self.snapshot_ttl = snapshot_ttl if snapshot_ttl is not None else settings.CATALOG_SNAPSHOT_TTL_SECONDS

        self.stock = StockAggregator(backend)
        self.search_engine = SearchStrategyEngine(backend, self.stock, loaded_items=lambda: self.products)
        self.filter_engine = FilterEngine(backend, self.search_engine, self.stock, loaded_items=lambda: self.products)

        self.products: List[CatalogItem] = []
        self.loaded = False

    # ------------------------------------------------------------------
    # Loading, filtering, paging
    # ------------------------------------------------------------------

    async def load_catalog(self) -> List[CatalogItem]:
        """Load the unfiltered catalog, serving the cached snapshot while it is live.

        A failed load keeps the previous snapshot when there is one; only a
        failing first load leaves the catalog empty.

        Raises:
            RemoteUnavailable: If the catalog could not be fetched.
        """
        cached = self.cache.get(CATALOG_SNAPSHOT_KEY)
        if cached is not None:
            self.products = list(cached)
            return self.products

        try:
            rows = await self.backend.fetch_compatibility_aggregation()
            products = await self.stock.attach(dedupe_by_sku(rows))
        except CatalogError as exc:
            if self.loaded:
                logger.error("Reloading the catalog failed, keeping %d loaded products: %s", len(self.products), exc)
            else:
                logger.exception("Loading the catalog failed")
                self.products = []
            raise RemoteUnavailable(str(exc) or "Error loading products") from exc

        logger.info("Catalog loaded: %d products", len(products))
        self.products = products
        self.loaded = True
        self.cache.set(CATALOG_SNAPSHOT_KEY, products, self.snapshot_ttl)
        return self.products

    async def ensure_loaded(self) -> List[CatalogItem]:
        """Loaded products, reloading only when the snapshot has expired."""
        cached = self.cache.get(CATALOG_SNAPSHOT_KEY)
        if cached is not None:
            self.products = list(cached)
            return self.products
        return await self.load_catalog()

    async def filter_products(self, filters: ProductFilters) -> List[CatalogItem]:
        """Items matching `filters`; remote failures propagate as CatalogError."""
        return await self.filter_engine.apply(filters)

    async def search_products(self, term: str) -> List[CatalogItem]:
        return await self.filter_products(ProductFilters(search=term))

    async def list_products(self, filters: ProductFilters, page: int = 1) -> ProductPage:
        """One page of the listing for `filters`.

        A failed reload serves the stale snapshot with `error` set. A failed
        filter returns an empty page with `error` set, so the caller keeps
        whatever listing it already shows.

        Raises:
            RemoteUnavailable: If no catalog was ever loaded.
        """
        error = None
        try:
            await self.ensure_loaded()
        except RemoteUnavailable as exc:
            if not self.loaded:
                raise
            error = str(exc)

        if filters.is_empty():
            return self.paginate(self.products, page, error)

        try:
            items = await self.filter_products(filters)
        except CatalogError as exc:
            logger.error("Filtering products failed: %s", exc)
            return self.paginate([], page, str(exc) or "Error filtering products")
        return self.paginate(items, page, error)

    def paginate(self, items: Sequence[CatalogItem], page: int = 1, error: Optional[str] = None) -> ProductPage:
        total = len(items)
        total_pages = math.ceil(total / self.page_size)
        page = max(page, 1)
        start = (page - 1) * self.page_size
        return ProductPage(
            items=list(items[start:start + self.page_size]),
            total_items=total,
            total_pages=total_pages,
            page=page,
            page_size=self.page_size,
            error=error,
        )

    # ------------------------------------------------------------------
    # Suggestions and stats
    # ------------------------------------------------------------------

    def local_suggestions(self, term: str) -> List[SearchSuggestion]:
        term = term.lower()
        matches = [
            item
            for item in self.products
            if term in item.name.lower() or term in item.sku.lower() or term in item.brand.lower()
        ]
        return [SearchSuggestion.from_item(item) for item in matches[:settings.SUGGESTION_LIMIT]]

    async def get_search_suggestions(self, term: str) -> List[SearchSuggestion]:
        """Type-ahead suggestions, falling back to loaded items on error or timeout."""
        if not term or len(term) < settings.SUGGESTION_MIN_LENGTH:
            return []
        try:
            return await asyncio.wait_for(
                self.backend.fetch_search_suggestions(term, settings.SUGGESTION_LIMIT),
                timeout=settings.SUGGESTION_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning("Suggestion lookup for %r timed out, using loaded products", term)
        except Exception as exc:
            logger.warning("Suggestion lookup for %r failed, using loaded products: %s", term, exc)
        return self.local_suggestions(term)

    async def get_product_stats(self) -> ProductStats:
        try:
            items = await self.backend.fetch_catalog_items()
        except CatalogError as exc:
            logger.warning("Error fetching products for stats: %s", exc)
            return ProductStats(total_products=0, total_categories=0, average_price=0)

        categories = {item.category for item in items if item.category}
        average = sum(item.price for item in items) / len(items) if items else 0
        return ProductStats(
            total_products=len(items),
            total_categories=len(categories),
            average_price=round(average, 2),
        )

    # ------------------------------------------------------------------
    # Single product: detail, cross-references, inventory
    # ------------------------------------------------------------------

    async def _require_item(self, sku: str) -> CatalogItem:
        item = await self.backend.fetch_catalog_item(sku)
        if item is None:
            raise NotFoundError(f"Product {sku} not found")
        return item

    async def get_product(self, sku: str) -> CatalogItem:
        """One product by SKU with its aggregate stock attached."""
        [product] = await self.stock.attach([await self._require_item(sku)])
        return product

    async def list_cross_references(self, sku: str) -> List[CrossReference]:
        await self._require_item(sku)
        return await self.backend.fetch_cross_references(sku)

    async def add_cross_references(self, sku: str, reference_skus: Sequence[str]) -> List[CrossReference]:
        """Declare `reference_skus` interchangeable with `sku`.

        Pairs that already exist are skipped. Both brands are recorded on
        each new reference.

        Raises:
            NotFoundError: If the product or any referenced SKU does not exist.
            ValidationFailure: If no SKU is given or the product references itself.
        """
        product = await self._require_item(sku)
        wanted = list(dict.fromkeys(s.strip() for s in reference_skus if s.strip()))
        if not wanted:
            raise ValidationFailure(["No reference SKU given"])
        if sku in wanted:
            raise ValidationFailure([f"Product {sku} cannot reference itself"])

        existing = {ref.reference_product_sku for ref in await self.backend.fetch_cross_references(sku)}
        values = []
        for reference_sku in wanted:
            reference = await self._require_item(reference_sku)
            if reference_sku in existing:
                continue
            values.append(
                {
                    "product_sku": sku,
                    "reference_product_sku": reference_sku,
                    "product_brand": product.brand or None,
                    "reference_brand": reference.brand or None,
                }
            )

        if values:
            await self._write("adding cross references", self.backend.insert_cross_references(values))
            logger.info("Product %s: %d cross reference(s) added", sku, len(values))
        return await self.backend.fetch_cross_references(sku)

    async def remove_cross_reference(self, sku: str, reference_id: int) -> None:
        found = await self._write(
            "deleting cross reference",
            self.backend.delete_cross_reference(sku, reference_id),
        )
        if not found:
            raise NotFoundError(f"Cross reference {reference_id} of product {sku} not found")
        logger.info("Product %s: cross reference %d removed", sku, reference_id)

    async def get_inventory(self, sku: str) -> ProductInventory:
        await self._require_item(sku)
        rows = await self.backend.fetch_warehouse_inventory([sku])
        return ProductInventory.from_rows(sku, rows)

    async def update_inventory(self, sku: str, entries: Sequence[InventoryEntry]) -> ProductInventory:
        """Set stock per branch, creating the warehouse row where a branch has none.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationFailure: If a branch appears more than once.
        """
        await self._require_item(sku)
        branches = [entry.provider_branch_id for entry in entries]
        duplicated = sorted({branch for branch in branches if branches.count(branch) > 1})
        if duplicated:
            raise ValidationFailure([f"Branch {branch} appears more than once" for branch in duplicated])

        for entry in entries:
            existing = await self.backend.find_warehouse_row(sku, entry.provider_branch_id)
            if existing is None:
                row = WarehouseInventoryRow(
                    product_sku=sku,
                    provider_branch_id=entry.provider_branch_id,
                    stock=entry.stock,
                    reserved_stock=entry.reserved_stock,
                )
                await self._write("adding inventory", self.backend.insert_warehouse_inventory(row))
            else:
                row = existing.model_copy(update={"stock": entry.stock, "reserved_stock": entry.reserved_stock})
                await self._write("updating inventory", self.backend.update_warehouse_inventory(row))

        if entries:
            logger.info("Product %s: inventory set at %d branch(es)", sku, len(entries))
            await self.refresh()
        return await self.get_inventory(sku)

    # ------------------------------------------------------------------
    # Writes; every write invalidates the snapshot and reloads
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Drop the snapshot and reload it; a failed reload keeps the old one."""
        self.cache.invalidate(CATALOG_SNAPSHOT_KEY)
        try:
            await self.load_catalog()
        except CatalogError as exc:
            logger.warning("Catalog reload after write failed, next listing retries: %s", exc)

    async def create_product(self, data: CatalogItemCreate) -> str:
        values = data.model_dump()
        values["sku"] = data.sku or f"SKU-{int(time.time() * 1000)}"
        await self._write("creating product", self.backend.insert_catalog_items([values]))
        logger.info("Product %s created", values["sku"])
        await self.refresh()
        return values["sku"]

    async def update_product(self, sku: str, data: CatalogItemUpdate) -> None:
        values = data.model_dump(exclude_unset=True)
        if not values:
            return
        found = await self._write("updating product", self.backend.update_catalog_item(sku, values))
        if not found:
            raise NotFoundError(f"Product {sku} not found")
        logger.info("Product %s updated", sku)
        await self.refresh()

    async def set_visibility(self, sku: str, is_visible: bool) -> None:
        found = await self._write(
            "changing product visibility",
            self.backend.update_catalog_item(sku, {"is_visible": is_visible}),
        )
        if not found:
            raise NotFoundError(f"Product {sku} not found")
        await self.refresh()

    async def delete_product(self, sku: str) -> None:
        # warehouse rows reference the item and must go first
        await self._write("deleting inventory", self.backend.delete_warehouse_inventory(sku))
        found = await self._write("deleting product", self.backend.delete_catalog_item(sku))
        if not found:
            raise NotFoundError(f"Product {sku} not found")
        logger.info("Product %s deleted", sku)
        await self.refresh()

    async def bulk_import(self, items: Sequence[CatalogItemCreate]) -> int:
        values = []
        stamp = int(time.time() * 1000)
        for index, item in enumerate(items):
            row = item.model_dump()
            row["sku"] = item.sku or f"SKU-{stamp}-{index}"
            values.append(row)
        await self._write("importing products", self.backend.insert_catalog_items(values))
        logger.info("Imported %d products", len(values))
        await self.refresh()
        return len(values)

    async def _write(self, action: str, operation):
        try:
            return await operation
        except CatalogError:
            logger.exception("Error %s", action)
            raise
