"""Tests for SearchStrategyEngine."""

from typing import List

import pytest

from catalog_admin.domain.catalog.schemas import CatalogItem
from catalog_admin.domain.catalog.search import SearchStrategyEngine
from catalog_admin.domain.catalog.stock import StockAggregator
from fakes import InMemoryCatalogBackend, item


def make_engine(backend: InMemoryCatalogBackend, loaded: List[CatalogItem] = ()) -> SearchStrategyEngine:
    loaded = list(loaded)
    return SearchStrategyEngine(backend, StockAggregator(backend), loaded_items=lambda: loaded)


class TestEmptyTerm:
    @pytest.mark.asyncio
    async def test_blank_term_returns_nothing_without_remote_calls(self, backend) -> None:
        engine = make_engine(backend)

        assert await engine.search("   ") == []
        assert backend.calls == []


class TestCrossReferencePath:
    @pytest.mark.asyncio
    async def test_provider_sku_finds_item_not_named_after_it(self, backend) -> None:
        engine = make_engine(backend)

        results = await engine.search("PF456")

        assert results[0].sku == "SKU1"
        assert "PF456" not in results[0].name
        assert backend.calls_to("fetch_compatibility_aggregation")[0][-1] == "PF456"
        assert backend.calls_to("fetch_catalog_items") == []

    @pytest.mark.asyncio
    async def test_cross_referenced_items_are_returned(self, backend) -> None:
        results = await make_engine(backend).search("PF456")

        assert [r.sku for r in results] == ["SKU1", "SKU5"]

    @pytest.mark.asyncio
    async def test_results_carry_aggregate_stock(self, backend) -> None:
        results = await make_engine(backend).search("PF456")

        assert {r.sku: r.total_stock for r in results} == {"SKU1": 12, "SKU5": 0}

    @pytest.mark.asyncio
    async def test_brand_constraint_applies(self, backend) -> None:
        results = await make_engine(backend).search("PF456", brand="Mann")

        assert [r.sku for r in results] == ["SKU5"]

    @pytest.mark.asyncio
    async def test_remote_failure_falls_back_to_text_search(self, backend, catalog_items) -> None:
        backend.fail("fetch_compatibility_aggregation")

        results = await make_engine(backend, catalog_items).search("PF456")

        assert [r.sku for r in results] == ["SKU1"]
        assert len(backend.calls_to("fetch_catalog_items")) == 3

    @pytest.mark.asyncio
    async def test_zero_results_fall_back_to_text_search(self, backend) -> None:
        results = await make_engine(backend).search("SKU3")

        assert [r.sku for r in results] == ["SKU3"]
        assert len(backend.calls_to("fetch_catalog_items")) == 3


class TestTextPath:
    @pytest.mark.asyncio
    async def test_exact_name_ranks_first(self, backend, catalog_items) -> None:
        results = await make_engine(backend, catalog_items).search("Oil Filter")

        assert [r.sku for r in results] == ["SKU1", "SKU5"]

    @pytest.mark.asyncio
    async def test_local_and_remote_results_are_deduplicated(self, backend, catalog_items) -> None:
        results = await make_engine(backend, catalog_items).search("brake")

        skus = [r.sku for r in results]
        assert skus == ["SKU3", "SKU4"]
        assert len(skus) == len(set(skus))

    @pytest.mark.asyncio
    async def test_remote_prefix_queries_are_capped(self, backend) -> None:
        engine = SearchStrategyEngine(backend, StockAggregator(backend), remote_limit=30)

        await engine.search("oil filter")

        calls = backend.calls_to("fetch_catalog_items")
        assert sorted(c[0] for c in calls) == ["name", "provider_sku", "sku"]
        assert {c[2] for c in calls} == {30}

    @pytest.mark.asyncio
    async def test_enough_local_results_skip_remote(self) -> None:
        loaded = [item(f"P{i:02d}", f"Filter {i:02d}") for i in range(25)]
        backend = InMemoryCatalogBackend(items=loaded)

        results = await make_engine(backend, loaded).search("filter", limit=10)

        assert len(results) == 10
        assert backend.calls_to("fetch_catalog_items") == []

    @pytest.mark.asyncio
    async def test_one_failing_prefix_query_degrades_to_others(self, backend) -> None:
        calls = 0
        original = backend.fetch_catalog_items

        async def flaky(prefix_field=None, prefix=None, limit=None):
            nonlocal calls
            calls += 1
            if prefix_field == "name":
                raise ConnectionError("network down")
            return await original(prefix_field=prefix_field, prefix=prefix, limit=limit)

        backend.fetch_catalog_items = flaky

        results = await make_engine(backend).search("sku")

        assert calls == 3
        assert [r.sku for r in results][:2] == ["SKU2", "SKU3"]
        assert len(results) == 6

    @pytest.mark.asyncio
    async def test_all_sources_failing_returns_empty(self, backend) -> None:
        backend.fail("fetch_catalog_items")

        assert await make_engine(backend).search("oil filter") == []

    @pytest.mark.asyncio
    async def test_brand_filter_on_text_search(self, backend, catalog_items) -> None:
        results = await make_engine(backend, catalog_items).search("oil", brand="Mann")

        assert [r.sku for r in results] == ["SKU5"]

    @pytest.mark.asyncio
    async def test_limit_truncates_after_ranking(self, backend, catalog_items) -> None:
        results = await make_engine(backend, catalog_items).search("filter", limit=1)

        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_zero_limit_returns_nothing(self, backend, catalog_items) -> None:
        results = await make_engine(backend, catalog_items).search("filter", limit=0)

        assert results == []
