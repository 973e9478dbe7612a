"""
============================================================================
Catalog Wizard - Catalog View Property Tests
============================================================================

Property-based tests for the catalog engine using Hypothesis:
- Sorting is stable in both directions
- Filtering preserves order and never invents rows
- Empty filter state is the identity
- Clearing a filter restores the initial order
- The initial view is never mutated

============================================================================
"""

from decimal import Decimal
from typing import Any, Dict, List

import pytest
from hypothesis import given, settings, assume, Phase
from hypothesis import strategies as st

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from catalog_wizard.catalog_engine import CatalogEngine, apply_filter, sort_rows
from catalog_wizard.wizard_config import WizardConfig


# =============================================================================
# Strategies
# =============================================================================

name_strategy = st.text(alphabet="abcAB xyz", min_size=0, max_size=6)
family_strategy = st.one_of(st.none(), st.sampled_from(["Hardware", "Services", "Software"]))
price_strategy = st.one_of(
    st.none(),
    st.decimals(min_value=Decimal("0"), max_value=Decimal("10000"), places=2),
)


@st.composite
def catalog_rows(draw, max_size: int = 12) -> List[Dict[str, Any]]:
    count = draw(st.integers(min_value=0, max_value=max_size))
    rows = []
    for i in range(count):
        rows.append({
            "Id": f"01t{i:012d}",
            "Name": draw(name_strategy),
            "Family": draw(family_strategy),
            "ListPrice": draw(price_strategy),
        })
    return rows


filter_value_strategy = st.text(alphabet="abcAB xyz", min_size=1, max_size=3)


def make_engine(rows: List[Dict[str, Any]]) -> CatalogEngine:
    engine = CatalogEngine(WizardConfig(metrics_enabled=False))
    engine.load({"products": rows, "priceEntries": []}, None)
    return engine


# =============================================================================
# Sorting Properties
# =============================================================================

class TestSortProperties:

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), field=st.sampled_from(["Name", "Family", "ListPrice"]),
           direction=st.sampled_from([1, -1]))
    def test_sort_is_stable_permutation(self, rows, field, direction) -> None:
        ordered = sort_rows(rows, field, direction)

        assert sorted(r["Id"] for r in ordered) == sorted(r["Id"] for r in rows)
        position = {r["Id"]: i for i, r in enumerate(rows)}
        for a, b in zip(ordered, ordered[1:]):
            if a[field] == b[field]:
                assert position[a["Id"]] < position[b["Id"]]

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows())
    def test_ascending_order_respected(self, rows) -> None:
        ordered = sort_rows(rows, "Name", 1)
        names = [r["Name"] for r in ordered]
        assert names == sorted(names)

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows())
    def test_missing_prices_sort_first(self, rows) -> None:
        ordered = sort_rows(rows, "ListPrice", 1)
        seen_price = False
        for row in ordered:
            if row["ListPrice"] is None:
                assert not seen_price
            else:
                seen_price = True


# =============================================================================
# Filtering Properties
# =============================================================================

class TestFilterProperties:

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows())
    def test_empty_filter_is_identity(self, rows) -> None:
        assert apply_filter(rows, {}) == rows

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), value=filter_value_strategy)
    def test_filter_is_ordered_subsequence(self, rows, value) -> None:
        matched = apply_filter(rows, {"Name": value})
        ids = [r["Id"] for r in rows]
        indexes = [ids.index(r["Id"]) for r in matched]
        assert indexes == sorted(indexes)

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), value=filter_value_strategy)
    def test_every_match_contains_value(self, rows, value) -> None:
        wanted = value.strip().lower()
        assume(wanted)
        for row in apply_filter(rows, {"Name": value}):
            assert wanted in row["Name"].strip().lower()

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows())
    def test_impossible_filter_matches_nothing(self, rows) -> None:
        assert apply_filter(rows, {"Name": "qqq"}) == []


# =============================================================================
# Engine View Properties
# =============================================================================

class TestEngineViewProperties:

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), value=filter_value_strategy,
           direction=st.sampled_from([1, -1]))
    def test_reset_restores_initial_order(self, rows, value, direction) -> None:
        engine = make_engine(rows)
        engine.filter_view({"Name": value})
        engine.sort_view("Name", direction)
        restored = engine.reset_view()
        assert [r["Id"] for r in restored] == [r["Id"] for r in rows]

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), value=filter_value_strategy)
    def test_initial_view_never_mutated(self, rows, value) -> None:
        engine = make_engine(rows)
        snapshot = [dict(r) for r in engine.initial_rows]

        engine.filter_view({"Family": value})
        engine.sort_view("ListPrice", -1)
        engine.reset_view()

        assert [dict(r) for r in engine.initial_rows] == snapshot
        for row in engine.initial_rows:
            with pytest.raises(TypeError):
                row["Name"] = "changed"

    @settings(max_examples=100, phases=[Phase.generate, Phase.target])
    @given(rows=catalog_rows(), value=filter_value_strategy)
    def test_filtered_view_is_subset_of_initial(self, rows, value) -> None:
        engine = make_engine(rows)
        initial_ids = {r["Id"] for r in engine.initial_rows}
        assert {r["Id"] for r in engine.filter_view({"Name": value})} <= initial_ids
