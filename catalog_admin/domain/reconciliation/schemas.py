# catalog_admin/domain/reconciliation/schemas.py
import enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ReconciliationRow(BaseModel):
    provider_sku: str = Field(..., min_length=1)
    provider_branch_id: int = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    reserved_stock: int = Field(0, ge=0)


class ReconciliationOutcome(str, enum.Enum):
    UPDATED = "updated"
    CREATED = "created"
    SKIPPED = "skipped"


class ReconciliationProgress(BaseModel):
    processed: int = 0
    total: int = 0
    updated: int = 0
    created: int = 0
    skipped: int = 0

    def record(self, outcome: ReconciliationOutcome) -> None:
        self.processed += 1
        if outcome is ReconciliationOutcome.UPDATED:
            self.updated += 1
        elif outcome is ReconciliationOutcome.CREATED:
            self.created += 1
        else:
            self.skipped += 1


class ParsedStockFile(BaseModel):
    file_name: str
    total_rows: int
    rows: List[ReconciliationRow]
    errors: List[str]

    @property
    def valid_rows(self) -> int:
        return len(self.rows)


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ReconciliationJobOut(BaseModel):
    id: str
    file_name: str
    status: JobStatus
    progress: ReconciliationProgress
    message: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
