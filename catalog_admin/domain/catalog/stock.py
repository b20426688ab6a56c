# catalog_admin/domain/catalog/stock.py
import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from catalog_admin.core.config import settings
from catalog_admin.domain.catalog.backend import CatalogBackend
from catalog_admin.domain.catalog.schemas import CatalogItem

logger = logging.getLogger(__name__)


def chunked(values: Sequence[str], size: int) -> List[List[str]]:
    return [list(values[i:i + size]) for i in range(0, len(values), size)]


class StockAggregator:
    """Sums on-hand stock per SKU across every warehouse row.

    Lookups are split into batches of `batch_size` SKUs. Batches are
    independent reads and run concurrently; a failed batch is logged and
    contributes nothing, it never aborts the aggregation.
    """

    def __init__(self, backend: CatalogBackend, batch_size: Optional[int] = None):
        self.backend = backend
        self.batch_size = batch_size or settings.STOCK_BATCH_SIZE

    async def aggregate(self, skus: Sequence[str]) -> Dict[str, int]:
        distinct = list(dict.fromkeys(skus))
        totals: Dict[str, int] = {sku: 0 for sku in distinct}
        if not distinct:
            return totals

        batches = chunked(distinct, self.batch_size)
        results = await asyncio.gather(
            *(self.backend.fetch_warehouse_inventory(batch) for batch in batches),
            return_exceptions=True,
        )

        for batch, result in zip(batches, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Stock lookup failed for a batch of %d SKUs starting at %s: %s",
                    len(batch), batch[0], result,
                )
                continue
            for row in result:
                if row.product_sku in totals:
                    totals[row.product_sku] += row.stock

        return totals

    async def attach(self, items: Sequence[CatalogItem]) -> List[CatalogItem]:
        """Copies of `items` carrying their aggregate stock."""
        totals = await self.aggregate([item.sku for item in items])
        return [item.model_copy(update={"total_stock": totals.get(item.sku, 0)}) for item in items]
