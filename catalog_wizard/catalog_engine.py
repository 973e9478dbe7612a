"""
============================================================================
Catalog Wizard - Catalog Engine
============================================================================

Decimal Integrity: Joined prices are kept as fetched unless a quantum is
configured, then quantized with ROUND_HALF_EVEN
Side Effects: None (pure transformations plus the engine's own view state)

CATALOG ENGINE:
    raw products + price entries → fetch_and_join → immutable initial view
    initial view → apply_filter / sort → visible view

    The initial view is built once and never mutated. Every filter and
    sort produces a new list; clearing a filter restores the initial order.

============================================================================
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from functools import cmp_to_key
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from catalog_wizard.wizard_config import WizardConfig, get_wizard_config
from catalog_wizard.wizard_models import (
    CatalogPayload,
    CatalogRow,
    FIELD_ID,
    FIELD_LIST_PRICE,
    FIELD_NAME,
    FIELD_PRICEBOOK_ENTRY,
    FIELD_UNIT_PRICE,
    FilterField,
    PriceEntry,
    SortDirection,
)

# Configure module logger
logger = logging.getLogger(__name__)

Comparator = Callable[[CatalogRow, CatalogRow], int]
Normalizer = Callable[[Any], Any]

LIST_PRICE_LABEL = "List Price"


# =============================================================================
# Table Columns
# =============================================================================

@dataclass(frozen=True)
class TableColumn:
    """One column of the product table."""
    label: str
    field_name: str
    sortable: bool = False


def build_product_columns(fields: Iterable[FilterField]) -> List[TableColumn]:
    """
    Product table columns for the catalog field set.

    Only the name column is sortable; a sortable list price column is
    always appended.
    """
    columns = [
        TableColumn(label=f.label, field_name=f.api_name, sortable=f.api_name == FIELD_NAME)
        for f in fields
    ]
    columns.append(TableColumn(label=LIST_PRICE_LABEL, field_name=FIELD_LIST_PRICE, sortable=True))
    return columns


# =============================================================================
# Price List Join
# =============================================================================

def _quantize_price(value: Optional[Decimal], precision: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or precision is None:
        return None
    return value.quantize(precision, rounding=ROUND_HALF_EVEN)


def fetch_and_join(
    raw_products: Iterable[Mapping[str, Any]],
    raw_price_entries: Iterable[Union[PriceEntry, Mapping[str, Any]]],
    price_list_id: Optional[str],
    price_precision: Optional[Decimal] = None,
) -> List[Dict[str, Any]]:
    """
    Merge price list entries onto products.

    For each product the first entry whose Product2Id equals the product Id
    is merged (UnitPrice, ListPrice, PricebookEntryId). Entries bound to a
    different price list are ignored. Unpriced products pass through.

    Args:
        raw_products: Product rows as fetched
        raw_price_entries: Price entries (models or raw mappings)
        price_list_id: Active price list Id
        price_precision: Optional price quantum; None keeps prices as fetched

    Returns:
        New product rows; inputs are not modified
    """
    entries = [
        e if isinstance(e, PriceEntry) else PriceEntry.model_validate(e)
        for e in raw_price_entries
    ]

    joined: List[Dict[str, Any]] = []
    unpriced = 0
    for product in raw_products:
        product_id = product.get(FIELD_ID)
        match = next(
            (
                e for e in entries
                if e.product2_id == product_id
                and (e.pricebook2_id is None or not price_list_id or e.pricebook2_id == price_list_id)
            ),
            None,
        )
        row = dict(product)
        if match is not None:
            price = _quantize_price(match.unit_price, price_precision)
            row[FIELD_UNIT_PRICE] = price
            row[FIELD_LIST_PRICE] = price
            row[FIELD_PRICEBOOK_ENTRY] = match.id
        else:
            unpriced += 1
        joined.append(row)

    logger.debug(
        f"[CATALOG-JOIN] products={len(joined)} | entries={len(entries)} | "
        f"unpriced={unpriced} | price_list_id={price_list_id}"
    )
    return joined


# =============================================================================
# Sorting
# =============================================================================

def _compare(a: Any, b: Any) -> int:
    # Missing values sort lowest; mixed types fall back to string order
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    try:
        return (a > b) - (b > a)
    except TypeError:
        sa, sb = str(a), str(b)
        return (sa > sb) - (sb > sa)


def sort_by(
    field: str,
    direction: Union[int, SortDirection],
    normalizer: Optional[Normalizer] = None,
) -> Comparator:
    """
    Build a row comparator for field.

    Args:
        field: Field API name to compare on
        direction: +1 / SortDirection.ASC or -1 / SortDirection.DESC
        normalizer: Optional preprocessing of compared values (e.g. str.lower)

    Returns:
        Comparator for functools.cmp_to_key; equal keys compare 0 so a
        stable sort keeps their input order in both directions.
    """
    multiplier = direction.multiplier if isinstance(direction, SortDirection) else direction
    if multiplier not in (1, -1):
        raise ValueError(f"Sort direction must be 1 or -1, got: {direction}")

    def key(row: CatalogRow) -> Any:
        value = row.get(field)
        if normalizer is not None and value is not None:
            return normalizer(value)
        return value

    def comparator(a: CatalogRow, b: CatalogRow) -> int:
        return multiplier * _compare(key(a), key(b))

    return comparator


def sort_rows(
    rows: Iterable[CatalogRow],
    field: str,
    direction: Union[int, SortDirection] = 1,
    normalizer: Optional[Normalizer] = None,
) -> List[CatalogRow]:
    """Return a new, stably sorted list of rows."""
    return sorted(rows, key=cmp_to_key(sort_by(field, direction, normalizer)))


# =============================================================================
# Filtering
# =============================================================================

def _field_text(row: CatalogRow, key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip().lower()


def apply_filter(rows: Iterable[CatalogRow], filter_state: Optional[Mapping[str, str]]) -> List[CatalogRow]:
    """
    Rows whose every constrained field contains the filter value.

    Matching is case-insensitive substring containment on the stringified,
    trimmed field value, whatever the field type. A row with a missing or
    empty field never matches a constraint on that field. Order of rows is
    preserved.
    """
    constraints = {
        key: str(value).strip().lower()
        for key, value in (filter_state or {}).items()
        if value is not None and str(value).strip()
    }
    if not constraints:
        return list(rows)

    matched: List[CatalogRow] = []
    for row in rows:
        for key, wanted in constraints.items():
            text = _field_text(row, key)
            if not text or wanted not in text:
                break
        else:
            matched.append(row)
    return matched


# =============================================================================
# CatalogEngine Class
# =============================================================================

class CatalogEngine:
    """
    Owns the product list, its price-joined initial view and the visible view.

    USAGE:
        engine = CatalogEngine(config)
        engine.load(payload, price_list_id)
        engine.set_filter_candidates(rows)
        engine.filter_view({"Family": "hardware"})
        engine.sort_view("Name", SortDirection.DESC)
    """

    def __init__(self, config: Optional[WizardConfig] = None, correlation_id: Optional[str] = None) -> None:
        self._config = config or get_wizard_config(validate=False)
        self._correlation_id = correlation_id
        self._initial: Tuple[CatalogRow, ...] = ()
        self._by_id: Dict[Any, CatalogRow] = {}
        self._candidates: Optional[List[CatalogRow]] = None
        self._loaded = False

        self.visible_rows: List[CatalogRow] = []
        self.columns: List[TableColumn] = []
        self.parent_kind: Optional[str] = None
        self.sorted_by: Optional[str] = None
        self.sort_direction: SortDirection = SortDirection.ASC

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def initial_rows(self) -> Tuple[CatalogRow, ...]:
        return self._initial

    def row_by_id(self, row_id: Any) -> Optional[CatalogRow]:
        return self._by_id.get(row_id)

    def load(self, payload: Union[CatalogPayload, Mapping[str, Any]], price_list_id: Optional[str]) -> List[CatalogRow]:
        """
        Build the initial view from the catalog payload.

        The initial view is fixed after the first successful load; later
        calls are ignored. The visible view starts sorted ascending by the
        configured default sort field.
        """
        if self._loaded:
            logger.warning(
                f"[CATALOG-ENGINE] Catalog already loaded, ignoring reload | "
                f"correlation_id={self._correlation_id}"
            )
            return list(self.visible_rows)

        if not isinstance(payload, CatalogPayload):
            payload = CatalogPayload.model_validate(payload)

        joined = fetch_and_join(
            payload.products,
            payload.price_entries,
            price_list_id,
            self._config.price_precision,
        )
        self._initial = tuple(MappingProxyType(row) for row in joined)
        self._by_id = {row.get(FIELD_ID): row for row in self._initial}
        self.columns = build_product_columns(payload.columns)
        self.parent_kind = payload.parent_kind
        self._loaded = True

        self.visible_rows = list(self._initial)
        self.sort_view(self._config.default_sort_field, SortDirection.ASC)

        logger.info(
            f"[CATALOG-ENGINE] Catalog loaded | rows={len(self._initial)} | "
            f"parent_kind={self.parent_kind} | price_list_id={price_list_id} | "
            f"correlation_id={self._correlation_id}"
        )
        return list(self.visible_rows)

    def set_filter_candidates(self, rows: Sequence[Mapping[str, Any]]) -> None:
        """Flat product projection used only for filter matching."""
        self._candidates = [dict(row) for row in rows]

    def filter_view(self, filter_state: Optional[Mapping[str, str]]) -> List[CatalogRow]:
        """
        Visible rows matching filter_state, in initial order.

        Matching runs against the filter candidates when loaded, else the
        initial rows; matches are projected back onto the initial view by Id.
        """
        source: Sequence[CatalogRow] = (
            self._candidates if self._candidates is not None else self._initial
        )
        matched_ids = {row.get(FIELD_ID) for row in apply_filter(source, filter_state)}
        self.visible_rows = [row for row in self._initial if row.get(FIELD_ID) in matched_ids]
        self.sorted_by = None

        logger.debug(
            f"[CATALOG-ENGINE] Filter applied | constraints={len(filter_state or {})} | "
            f"visible={len(self.visible_rows)} | correlation_id={self._correlation_id}"
        )
        return list(self.visible_rows)

    def sort_view(
        self,
        field: str,
        direction: Union[int, SortDirection] = SortDirection.ASC,
        normalizer: Optional[Normalizer] = None,
    ) -> List[CatalogRow]:
        if not isinstance(direction, SortDirection):
            if direction not in (1, -1):
                raise ValueError(f"Sort direction must be 1 or -1, got: {direction}")
            direction = SortDirection.ASC if direction == 1 else SortDirection.DESC
        self.visible_rows = sort_rows(self.visible_rows, field, direction, normalizer)
        self.sorted_by = field
        self.sort_direction = direction
        return list(self.visible_rows)

    def reset_view(self) -> List[CatalogRow]:
        """Visible rows become the initial view in its original order."""
        self.visible_rows = list(self._initial)
        self.sorted_by = None
        return list(self.visible_rows)


__all__ = [
    "TableColumn",
    "LIST_PRICE_LABEL",
    "build_product_columns",
    "fetch_and_join",
    "sort_by",
    "sort_rows",
    "apply_filter",
    "CatalogEngine",
]
