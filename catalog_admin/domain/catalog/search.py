# catalog_admin/domain/catalog/search.py
"""Free-text and part-number search over the catalog.

Three retrieval paths are tried in order:

1. cross-reference lookup, when the term looks like a provider part number;
2. a scan of the already-loaded catalog items;
3. three concurrent prefix queries (SKU, name, provider SKU) when the local
   scan found fewer than `local_threshold` items.

Remote failures never reach the caller; a failed source contributes nothing.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from catalog_admin.core.config import settings
from catalog_admin.domain.catalog.backend import CatalogBackend
from catalog_admin.domain.catalog.classifier import IdentifierKind, classify
from catalog_admin.domain.catalog.ranking import dedupe_by_sku, matches_locally, rank_items
from catalog_admin.domain.catalog.schemas import CatalogItem
from catalog_admin.domain.catalog.stock import StockAggregator

logger = logging.getLogger(__name__)

REMOTE_PREFIX_FIELDS = ("sku", "name", "provider_sku")


class SearchStrategyEngine:
    def __init__(
        self,
        backend: CatalogBackend,
        stock: StockAggregator,
        loaded_items: Callable[[], Sequence[CatalogItem]] = tuple,
        local_threshold: Optional[int] = None,
        remote_limit: Optional[int] = None,
    ):
        self.backend = backend
        self.stock = stock
        self.loaded_items = loaded_items
        self.local_threshold = local_threshold or settings.LOCAL_RESULTS_THRESHOLD
        self.remote_limit = remote_limit or settings.REMOTE_PREFIX_LIMIT

    async def search(
        self,
        term: str,
        brand: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CatalogItem]:
        """Ranked catalog items for `term`, each with aggregate stock attached.

        Args:
            term: Raw search box input.
            brand: Only items of this brand are returned.
            limit: Maximum number of results; defaults to SEARCH_LIMIT.
        """
        term = term.strip()
        if not term:
            return []
        limit = settings.SEARCH_LIMIT if limit is None else limit

        if classify(term) is IdentifierKind.PROVIDER_ID_LIKELY:
            cross_referenced = await self._cross_reference_lookup(term, brand)
            if cross_referenced:
                logger.info("Search %r resolved through cross-reference lookup (%d items)", term, len(cross_referenced))
                return await self._finish(cross_referenced, term, limit)

        candidates = self._local_scan(term, brand)
        if len(candidates) < self.local_threshold:
            candidates = candidates + await self._remote_prefix_search(term, brand)

        return await self._finish(candidates, term, limit)

    async def _finish(self, candidates: List[CatalogItem], term: str, limit: int) -> List[CatalogItem]:
        ranked = rank_items(dedupe_by_sku(candidates), term)[:limit]
        return await self.stock.attach(ranked)

    async def _cross_reference_lookup(self, term: str, brand: Optional[str]) -> List[CatalogItem]:
        try:
            items = await self.backend.fetch_compatibility_aggregation(provider_sku=term)
        except Exception as exc:
            logger.warning("Cross-reference lookup for %r failed, falling back: %s", term, exc)
            return []
        return [item for item in items if not brand or item.brand == brand]

    def _local_scan(self, term: str, brand: Optional[str]) -> List[CatalogItem]:
        term_lower = term.lower()
        return [
            item
            for item in self.loaded_items()
            if (not brand or item.brand == brand) and matches_locally(item, term_lower)
        ]

    async def _remote_prefix_search(self, term: str, brand: Optional[str]) -> List[CatalogItem]:
        results = await asyncio.gather(
            *(
                self.backend.fetch_catalog_items(prefix_field=field, prefix=term, limit=self.remote_limit)
                for field in REMOTE_PREFIX_FIELDS
            ),
            return_exceptions=True,
        )

        found: List[CatalogItem] = []
        for field, result in zip(REMOTE_PREFIX_FIELDS, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Prefix search on %s for %r failed: %s", field, term, result)
                continue
            found.extend(item for item in result if not brand or item.brand == brand)
        return found
