"""
Unit Tests for the Catalog Engine

Tests the catalog engine:
- fetch_and_join() price list merge
- sort_by() / sort_rows() comparator behaviour
- apply_filter() predicate evaluation
- build_product_columns()
- CatalogEngine view management
"""

import pytest
from decimal import Decimal
from functools import cmp_to_key

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from catalog_wizard.catalog_engine import (
    CatalogEngine,
    LIST_PRICE_LABEL,
    TableColumn,
    apply_filter,
    build_product_columns,
    fetch_and_join,
    sort_by,
    sort_rows,
)
from catalog_wizard.wizard_config import WizardConfig
from catalog_wizard.wizard_models import FilterField, PriceEntry, SortDirection


# =============================================================================
# Test Fixtures
# =============================================================================

PRODUCTS = [
    {"Id": "01t000000000001", "Name": "Widget", "Family": "Hardware", "ProductCode": "W-100"},
    {"Id": "01t000000000002", "Name": "adapter", "Family": "Hardware", "ProductCode": "A-200"},
    {"Id": "01t000000000003", "Name": "Support Plan", "Family": "Services", "ProductCode": "S-300"},
    {"Id": "01t000000000004", "Name": "Cable", "Family": None, "ProductCode": "C-400"},
]

PRICE_ENTRIES = [
    {"Id": "01u000000000001", "Product2Id": "01t000000000001", "UnitPrice": "100.00"},
    {"Id": "01u000000000002", "Product2Id": "01t000000000002", "UnitPrice": "15.50"},
    {"Id": "01u000000000003", "Product2Id": "01t000000000003", "UnitPrice": "999.99"},
]


@pytest.fixture
def payload() -> dict:
    return {
        "columns": [
            {"apiName": "Name", "label": "Product Name", "type": "STRING"},
            {"apiName": "ProductCode", "label": "Product Code", "type": "STRING"},
        ],
        "parentKind": "Opportunity",
        "products": [dict(p) for p in PRODUCTS],
        "priceEntries": [dict(e) for e in PRICE_ENTRIES],
    }


@pytest.fixture
def engine(payload) -> CatalogEngine:
    catalog = CatalogEngine(WizardConfig(), correlation_id="test-corr-id")
    catalog.load(payload, "01s000000000001")
    return catalog


# =============================================================================
# Test fetch_and_join()
# =============================================================================

class TestFetchAndJoin:

    def test_priced_products_carry_entry_values(self) -> None:
        rows = fetch_and_join(PRODUCTS, PRICE_ENTRIES, "01s000000000001")
        widget = rows[0]
        assert widget["UnitPrice"] == Decimal("100.00")
        assert widget["ListPrice"] == Decimal("100.00")
        assert widget["PricebookEntryId"] == "01u000000000001"

    def test_unpriced_product_passes_through(self) -> None:
        rows = fetch_and_join(PRODUCTS, PRICE_ENTRIES, "01s000000000001")
        cable = rows[3]
        assert cable == PRODUCTS[3]
        assert "PricebookEntryId" not in cable

    def test_input_order_preserved(self) -> None:
        rows = fetch_and_join(PRODUCTS, PRICE_ENTRIES, "01s000000000001")
        assert [r["Id"] for r in rows] == [p["Id"] for p in PRODUCTS]

    def test_inputs_not_mutated(self) -> None:
        products = [dict(p) for p in PRODUCTS]
        fetch_and_join(products, PRICE_ENTRIES, "01s000000000001")
        assert products == PRODUCTS

    def test_entries_of_other_price_list_ignored(self) -> None:
        entries = [
            {"Id": "01uOTHER", "Product2Id": "01t000000000001", "UnitPrice": "1.00",
             "Pricebook2Id": "01sOTHER"},
            {"Id": "01uMINE", "Product2Id": "01t000000000001", "UnitPrice": "2.00",
             "Pricebook2Id": "01sMINE"},
        ]
        rows = fetch_and_join(PRODUCTS[:1], entries, "01sMINE")
        assert rows[0]["PricebookEntryId"] == "01uMINE"
        assert rows[0]["UnitPrice"] == Decimal("2.00")

    def test_first_matching_entry_wins(self) -> None:
        entries = [
            {"Id": "01uFIRST", "Product2Id": "01t000000000001", "UnitPrice": "5"},
            {"Id": "01uSECOND", "Product2Id": "01t000000000001", "UnitPrice": "6"},
        ]
        rows = fetch_and_join(PRODUCTS[:1], entries, None)
        assert rows[0]["PricebookEntryId"] == "01uFIRST"

    def test_prices_quantized_half_even(self) -> None:
        entries = [
            PriceEntry(Id="01uA", Product2Id="01t000000000001", UnitPrice=Decimal("10.005")),
            PriceEntry(Id="01uB", Product2Id="01t000000000002", UnitPrice=Decimal("10.015")),
        ]
        rows = fetch_and_join(PRODUCTS[:2], entries, None, Decimal("0.01"))
        assert rows[0]["UnitPrice"] == Decimal("10.00")
        assert rows[1]["UnitPrice"] == Decimal("10.02")

    def test_prices_kept_as_fetched_by_default(self) -> None:
        entries = [{"Id": "01uA", "Product2Id": "01t000000000001", "UnitPrice": "10.005"}]
        rows = fetch_and_join(PRODUCTS[:1], entries, None)
        assert rows[0]["UnitPrice"] == Decimal("10.005")
        assert rows[0]["ListPrice"] == Decimal("10.005")

    def test_engine_quantizes_only_when_configured(self) -> None:
        payload = {
            "products": [dict(PRODUCTS[0])],
            "priceEntries": [{"Id": "01uA", "Product2Id": "01t000000000001", "UnitPrice": "7.12345"}],
        }
        plain = CatalogEngine(WizardConfig())
        plain.load(payload, None)
        assert plain.initial_rows[0]["UnitPrice"] == Decimal("7.12345")

        rounded = CatalogEngine(WizardConfig(price_precision=Decimal("0.01")))
        rounded.load(payload, None)
        assert rounded.initial_rows[0]["UnitPrice"] == Decimal("7.12")


# =============================================================================
# Test sort_by()
# =============================================================================

class TestSortBy:

    def test_ascending(self) -> None:
        rows = sort_rows(PRODUCTS, "ProductCode", 1)
        assert [r["ProductCode"] for r in rows] == ["A-200", "C-400", "S-300", "W-100"]

    def test_descending(self) -> None:
        rows = sort_rows(PRODUCTS, "ProductCode", SortDirection.DESC)
        assert [r["ProductCode"] for r in rows] == ["W-100", "S-300", "C-400", "A-200"]

    def test_default_comparison_is_case_sensitive(self) -> None:
        rows = sort_rows(PRODUCTS, "Name", 1)
        assert rows[-1]["Name"] == "adapter"

    def test_normalizer_applied(self) -> None:
        rows = sort_rows(PRODUCTS, "Name", 1, normalizer=str.lower)
        assert [r["Name"] for r in rows] == ["adapter", "Cable", "Support Plan", "Widget"]

    def test_ties_keep_input_order_both_directions(self) -> None:
        rows = [{"Id": str(i), "Family": "Hardware"} for i in range(5)]
        assert [r["Id"] for r in sort_rows(rows, "Family", 1)] == ["0", "1", "2", "3", "4"]
        assert [r["Id"] for r in sort_rows(rows, "Family", -1)] == ["0", "1", "2", "3", "4"]

    def test_missing_values_sort_lowest(self) -> None:
        rows = sort_rows(PRODUCTS, "Family", 1)
        assert rows[0]["Family"] is None

    def test_mixed_types_do_not_raise(self) -> None:
        rows = [{"Id": "a", "X": 5}, {"Id": "b", "X": "4"}]
        ordered = sorted(rows, key=cmp_to_key(sort_by("X", 1)))
        assert [r["Id"] for r in ordered] == ["b", "a"]

    def test_invalid_direction_rejected(self) -> None:
        with pytest.raises(ValueError):
            sort_by("Name", 0)


# =============================================================================
# Test apply_filter()
# =============================================================================

class TestApplyFilter:

    def test_empty_state_matches_everything(self) -> None:
        assert apply_filter(PRODUCTS, {}) == PRODUCTS
        assert apply_filter(PRODUCTS, None) == PRODUCTS

    def test_case_insensitive_substring(self) -> None:
        rows = apply_filter(PRODUCTS, {"Family": "hard"})
        assert [r["Name"] for r in rows] == ["Widget", "adapter"]

    def test_filter_value_trimmed_and_folded(self) -> None:
        rows = apply_filter(PRODUCTS, {"Name": "  SUPPORT "})
        assert [r["Name"] for r in rows] == ["Support Plan"]

    def test_missing_field_never_matches(self) -> None:
        rows = apply_filter(PRODUCTS, {"Family": "a"})
        assert "Cable" not in [r["Name"] for r in rows]

    def test_all_constraints_must_match(self) -> None:
        rows = apply_filter(PRODUCTS, {"Family": "hardware", "ProductCode": "a-"})
        assert [r["Name"] for r in rows] == ["adapter"]

    def test_impossible_constraint_matches_nothing(self) -> None:
        assert apply_filter(PRODUCTS, {"Name": "does-not-exist"}) == []

    def test_non_string_fields_compared_as_text(self) -> None:
        rows = [{"Id": "1", "ListPrice": Decimal("150.00")}, {"Id": "2", "ListPrice": Decimal("20.00")}]
        assert [r["Id"] for r in apply_filter(rows, {"ListPrice": "150"})] == ["1"]


# =============================================================================
# Test build_product_columns()
# =============================================================================

class TestBuildProductColumns:

    def test_only_name_sortable_and_list_price_appended(self) -> None:
        columns = build_product_columns([
            FilterField(apiName="Name", label="Product Name"),
            FilterField(apiName="ProductCode", label="Product Code"),
        ])
        assert columns == [
            TableColumn(label="Product Name", field_name="Name", sortable=True),
            TableColumn(label="Product Code", field_name="ProductCode", sortable=False),
            TableColumn(label=LIST_PRICE_LABEL, field_name="ListPrice", sortable=True),
        ]


# =============================================================================
# Test CatalogEngine
# =============================================================================

class TestCatalogEngine:

    def test_load_sorts_by_name_ascending(self, engine: CatalogEngine) -> None:
        assert [r["Name"] for r in engine.visible_rows] == ["Cable", "Support Plan", "Widget", "adapter"]
        assert engine.sorted_by == "Name"
        assert engine.sort_direction is SortDirection.ASC

    def test_load_records_parent_kind_and_columns(self, engine: CatalogEngine) -> None:
        assert engine.parent_kind == "Opportunity"
        assert [c.field_name for c in engine.columns] == ["Name", "ProductCode", "ListPrice"]

    def test_initial_rows_keep_fetch_order(self, engine: CatalogEngine) -> None:
        assert [r["Id"] for r in engine.initial_rows] == [p["Id"] for p in PRODUCTS]

    def test_initial_rows_are_read_only(self, engine: CatalogEngine) -> None:
        with pytest.raises(TypeError):
            engine.initial_rows[0]["Name"] = "Changed"

    def test_reload_is_ignored(self, engine: CatalogEngine, payload: dict) -> None:
        payload["products"] = []
        engine.load(payload, "01s000000000002")
        assert len(engine.initial_rows) == 4

    def test_filter_view_uses_initial_order(self, engine: CatalogEngine) -> None:
        rows = engine.filter_view({"Family": "hardware"})
        assert [r["Name"] for r in rows] == ["Widget", "adapter"]
        assert engine.sorted_by is None

    def test_filter_view_matches_against_candidates(self, engine: CatalogEngine) -> None:
        engine.set_filter_candidates([
            {"Id": "01t000000000003", "Family": "Services", "Vendor": "Acme"},
            {"Id": "01t000000000004", "Vendor": "Acme Cables"},
        ])
        rows = engine.filter_view({"Vendor": "acme"})
        assert [r["Name"] for r in rows] == ["Support Plan", "Cable"]
        assert rows[0]["UnitPrice"] == Decimal("999.99")

    def test_filter_view_with_no_match_is_empty(self, engine: CatalogEngine) -> None:
        assert engine.filter_view({"Name": "zzz"}) == []
        assert engine.sort_view("Name", SortDirection.ASC) == []

    def test_reset_view_restores_initial(self, engine: CatalogEngine) -> None:
        engine.filter_view({"Family": "services"})
        rows = engine.reset_view()
        assert [r["Id"] for r in rows] == [p["Id"] for p in PRODUCTS]

    def test_sort_view_accepts_int_direction(self, engine: CatalogEngine) -> None:
        rows = engine.sort_view("ListPrice", -1)
        assert rows[0]["Name"] == "Support Plan"
        assert engine.sort_direction is SortDirection.DESC

    def test_row_by_id(self, engine: CatalogEngine) -> None:
        assert engine.row_by_id("01t000000000002")["Name"] == "adapter"
        assert engine.row_by_id("missing") is None
