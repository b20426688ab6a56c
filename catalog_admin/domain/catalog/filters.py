# catalog_admin/domain/catalog/filters.py
import logging
from typing import Callable, List, Sequence

from catalog_admin.domain.catalog.backend import CatalogBackend
from catalog_admin.domain.catalog.ranking import dedupe_by_sku
from catalog_admin.domain.catalog.schemas import CatalogItem, ProductFilters, ProductStatus
from catalog_admin.domain.catalog.search import SearchStrategyEngine
from catalog_admin.domain.catalog.stock import StockAggregator

logger = logging.getLogger(__name__)


def filter_by_status(items: Sequence[CatalogItem], status: ProductStatus) -> List[CatalogItem]:
    if status is ProductStatus.ACTIVE:
        return [item for item in items if item.is_visible]
    if status is ProductStatus.INACTIVE:
        return [item for item in items if not item.is_visible]
    return [item for item in items if item.total_stock == 0]


class FilterEngine:
    """Chooses the cheapest retrieval path for a set of facet filters.

    Order of precedence: free-text search, then vehicle compatibility facets,
    then brand/category, then the unfiltered loaded catalog. Remote errors
    propagate; `CatalogService` decides what the caller sees.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        search_engine: SearchStrategyEngine,
        stock: StockAggregator,
        loaded_items: Callable[[], Sequence[CatalogItem]] = tuple,
    ):
        self.backend = backend
        self.search_engine = search_engine
        self.stock = stock
        self.loaded_items = loaded_items

    async def apply(self, filters: ProductFilters) -> List[CatalogItem]:
        if filters.search_term:
            logger.info("Filtering by search term %r", filters.search_term)
            items = await self.search_engine.search(filters.search_term, brand=filters.brand)
            if filters.category:
                items = [item for item in items if item.category == filters.category]
        else:
            items = await self.stock.attach(await self._fetch_without_search(filters))

        if filters.status:
            items = filter_by_status(items, filters.status)
        return items

    async def _fetch_without_search(self, filters: ProductFilters) -> List[CatalogItem]:
        if filters.has_compatibility_filters:
            logger.info(
                "Filtering by vehicle compatibility (plant=%s, model=%s, motorization=%s, brand=%s)",
                filters.assembly_plant, filters.model, filters.motorization, filters.brand,
            )
            rows = await self.backend.fetch_compatibility_aggregation(
                brand=filters.brand or None,
                model=filters.model or None,
                motorization=filters.motorization or None,
                assembly_plant=filters.assembly_plant or None,
            )
            # one row per compatible vehicle variant
            items = dedupe_by_sku(rows)
        elif filters.has_basic_filters:
            logger.info("Filtering by brand=%s category=%s", filters.brand, filters.category)
            rows = await self.backend.fetch_compatibility_aggregation(brand=filters.brand or None)
            items = dedupe_by_sku(rows)
        else:
            return list(self.loaded_items())

        if filters.category:
            items = [item for item in items if item.category == filters.category]
        return items
