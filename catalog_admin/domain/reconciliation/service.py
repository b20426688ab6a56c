# catalog_admin/domain/reconciliation/service.py
"""Bulk stock reconciliation.

Each row of a stock file names a provider SKU, a provider branch and a
quantity. Rows are applied strictly one after another:

* an existing warehouse row for (provider SKU, branch) is overwritten -> ``updated``;
* otherwise the provider SKU is resolved to a catalog item and a warehouse row
  is inserted for it -> ``created``;
* an unknown provider SKU or any failure while handling the row -> ``skipped``.

The provider SKU is only denormalized on warehouse rows, not a key, so the
existing row has to be probed before choosing between update and insert.
"""
import inspect
import logging
from typing import Any, Callable, Optional, Sequence

from catalog_admin.core.errors import ReconciliationCancelled
from catalog_admin.domain.catalog.backend import CatalogBackend
from catalog_admin.domain.catalog.schemas import WarehouseInventoryRow
from catalog_admin.domain.reconciliation.schemas import (
    ReconciliationOutcome,
    ReconciliationProgress,
    ReconciliationRow,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ReconciliationProgress], Any]


class CancellationToken:
    """Cooperative cancellation flag, checked before each row."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class BulkReconciliationEngine:
    def __init__(self, backend: CatalogBackend):
        self.backend = backend

    async def reconcile(
        self,
        rows: Sequence[ReconciliationRow],
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ReconciliationProgress:
        """Apply `rows` in order and return the final counts.

        Args:
            rows: Validated stock rows.
            on_progress: Called with a snapshot of the cumulative counts after
                every row; may be a plain function or a coroutine function.
            cancel_token: Checked before each row. Rows already applied are
                kept when it fires.

        Raises:
            ReconciliationCancelled: If `cancel_token` was cancelled before
                all rows were processed.
        """
        progress = ReconciliationProgress(total=len(rows))
        logger.info("Reconciling %d stock rows", len(rows))

        for row in rows:
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(
                    "Reconciliation cancelled after %d of %d rows", progress.processed, progress.total
                )
                raise ReconciliationCancelled(progress.processed, progress.total)

            outcome = await self.reconcile_row(row)
            progress.record(outcome)

            if on_progress is not None:
                result = on_progress(progress.model_copy())
                if inspect.isawaitable(result):
                    await result

        logger.info(
            "Reconciliation finished: %d updated, %d created, %d skipped",
            progress.updated, progress.created, progress.skipped,
        )
        return progress

    async def reconcile_row(self, row: ReconciliationRow) -> ReconciliationOutcome:
        try:
            return await self._apply(row)
        except Exception as exc:
            logger.warning(
                "Skipping %s at branch %s: %s", row.provider_sku, row.provider_branch_id, exc
            )
            return ReconciliationOutcome.SKIPPED

    async def _apply(self, row: ReconciliationRow) -> ReconciliationOutcome:
        existing = await self.backend.find_warehouse_row_by_provider_sku(row.provider_sku, row.provider_branch_id)
        if existing is not None:
            await self._overwrite(existing, row)
            return ReconciliationOutcome.UPDATED

        item = await self.backend.resolve_catalog_item_by_provider_sku(row.provider_sku)
        if item is None:
            logger.warning("Provider SKU %s is not in the catalog, skipping", row.provider_sku)
            return ReconciliationOutcome.SKIPPED

        # stock recorded for this item and branch without the provider SKU
        existing = await self.backend.find_warehouse_row(item.sku, row.provider_branch_id)
        if existing is not None:
            await self._overwrite(existing, row)
            return ReconciliationOutcome.UPDATED

        await self.backend.insert_warehouse_inventory(
            WarehouseInventoryRow(
                product_sku=item.sku,
                provider_branch_id=row.provider_branch_id,
                stock=row.stock,
                reserved_stock=row.reserved_stock,
                provider_sku=row.provider_sku,
            )
        )
        return ReconciliationOutcome.CREATED

    async def _overwrite(self, existing: WarehouseInventoryRow, row: ReconciliationRow) -> None:
        await self.backend.update_warehouse_inventory(
            existing.model_copy(
                update={
                    "stock": row.stock,
                    "reserved_stock": row.reserved_stock,
                    "provider_sku": row.provider_sku,
                }
            )
        )
