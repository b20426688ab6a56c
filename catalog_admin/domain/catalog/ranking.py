# catalog_admin/domain/catalog/ranking.py
import re
from typing import Iterable, List, Sequence, Tuple

from catalog_admin.domain.catalog.schemas import CatalogItem


def contains_word(text: str, term: str) -> bool:
    """True when `term` occurs in `text` delimited by non-word characters."""
    if not term:
        return False
    return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None


def match_tier(item: CatalogItem, term: str) -> int:
    """Priority tier of `item` for a lower-cased `term`; lower ranks first."""
    name = item.name.lower()
    sku = item.sku.lower()
    provider_sku = (item.provider_sku or "").lower()
    brand = item.brand.lower()

    if name == term:
        return 0
    if sku == term:
        return 1
    if provider_sku and provider_sku == term:
        return 2
    if name.startswith(term):
        return 3
    if contains_word(name, term):
        return 4
    if sku.startswith(term):
        return 5
    if provider_sku and provider_sku.startswith(term):
        return 6
    if brand == term:
        return 7
    return 8


def rank_items(items: Iterable[CatalogItem], term: str) -> List[CatalogItem]:
    term = term.strip().lower()

    def key(item: CatalogItem) -> Tuple[int, str]:
        return match_tier(item, term), item.name.lower()

    return sorted(items, key=key)


def dedupe_by_sku(items: Sequence[CatalogItem]) -> List[CatalogItem]:
    seen = set()
    unique: List[CatalogItem] = []
    for item in items:
        if item.sku in seen:
            continue
        seen.add(item.sku)
        unique.append(item)
    return unique


def matches_locally(item: CatalogItem, term: str) -> bool:
    """Local-scan predicate over already-loaded items for a lower-cased `term`."""
    name = item.name.lower()
    return (
        name == term
        or name.startswith(term)
        or contains_word(name, term)
        or item.sku.lower() == term
        or (item.provider_sku or "").lower() == term
        or item.brand.lower() == term
    )
