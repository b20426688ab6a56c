# catalog_admin/domain/reconciliation/parser.py
import re
from typing import List

from catalog_admin.core.errors import ValidationFailure
from catalog_admin.domain.reconciliation.schemas import ParsedStockFile, ReconciliationRow

DELIMITERS = re.compile(r"[,;\t]")
HEADER_NAMES = ("provider_sku", "product_sku")
EXPECTED_COLUMNS = "provider_sku, provider_branch_id, stock"


def _parse_int(value: str):
    try:
        return int(value)
    except ValueError:
        return None


def parse_stock_line(line: str) -> List[str]:
    return [column.strip().replace('"', "") for column in DELIMITERS.split(line)]


def is_header(line: str) -> bool:
    """True when `line` names the columns instead of carrying a stock row."""
    columns = parse_stock_line(line)
    if columns[0].lower() in HEADER_NAMES:
        return True
    return len(columns) >= 3 and _parse_int(columns[1]) is None and _parse_int(columns[2]) is None


def parse_stock_file(content: str, file_name: str = "stock.csv") -> ParsedStockFile:
    """Parse a bulk stock file into reconciliation rows.

    Lines are split on commas, semicolons or tabs. Invalid lines are
    reported as ``Line N: reason`` (1-based, counting the header) and left
    out of the batch.

    Raises:
        ValidationFailure: If the file has no lines at all.
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        raise ValidationFailure(["The file is empty"], "The file is empty")

    start = 1 if is_header(lines[0]) else 0
    rows: List[ReconciliationRow] = []
    errors: List[str] = []

    for index in range(start, len(lines)):
        number = index + 1
        columns = parse_stock_line(lines[index].strip())

        if len(columns) < 3:
            errors.append(f"Line {number}: wrong format (expected at least 3 columns: {EXPECTED_COLUMNS})")
            continue

        provider_sku, branch_value, stock_value = columns[0], columns[1], columns[2]
        reserved_value = columns[3] if len(columns) > 3 and columns[3] else "0"

        if not provider_sku:
            errors.append(f"Line {number}: empty provider_sku")
            continue

        branch_id = _parse_int(branch_value)
        if branch_id is None or branch_id <= 0:
            errors.append(f'Line {number}: invalid provider_branch_id "{branch_value}" (must be a number > 0)')
            continue

        stock = _parse_int(stock_value)
        if stock is None or stock < 0:
            errors.append(f'Line {number}: invalid stock "{stock_value}" (must be a number >= 0)')
            continue

        reserved = _parse_int(reserved_value)
        if reserved is None or reserved < 0:
            errors.append(f'Line {number}: invalid reserved_stock "{reserved_value}" (must be a number >= 0)')
            continue

        rows.append(
            ReconciliationRow(
                provider_sku=provider_sku,
                provider_branch_id=branch_id,
                stock=stock,
                reserved_stock=reserved,
            )
        )

    return ParsedStockFile(
        file_name=file_name,
        total_rows=len(lines) - start,
        rows=rows,
        errors=errors,
    )
