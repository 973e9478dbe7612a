"""
============================================================================
Catalog Wizard - Core Data Models
============================================================================

Decimal Integrity: All prices use decimal.Decimal with ROUND_HALF_EVEN
Traceability: All operations include correlation_id for audit

This module defines the data models shared by the catalog wizard:
- WizardPhase / ParentKind: explicit workflow and parent record kinds
- PARENT_KIND_TABLE: child type, linkage field and price label per kind
- FilterField / ConfigColumn / PriceEntry / PriceListRow / CatalogPayload: payload models
- RecordOperationError: structured collaborator failure
- OperationResult: typed outcome of every collaborator call
- SelectionEntry / CommitBatch / CommitResult: selection and commit records

ERROR CODES:
    - CPQ-010: Required field missing before commit
    - CPQ-020: Line item creation failed (batch rolled back)
    - CPQ-021: Compensating deletion failed
    - CPQ-030: Catalog or metadata fetch failed
    - CPQ-040: Invalid phase transition or illegal operation
    - CPQ-050: Price list update failed
    - CPQ-051: Line item cleanup failed
    - CPQ-060: Configuration invalid
    - CPQ-070: Unsupported parent record kind

============================================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set
import logging

from pydantic import BaseModel, ConfigDict, Field

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Catalog rows are platform records keyed by field API name
CatalogRow = Mapping[str, Any]

# Field API names the core reads or writes
FIELD_ID = "Id"
FIELD_NAME = "Name"
FIELD_PRODUCT = "Product2Id"
FIELD_LIST_PRICE = "ListPrice"
FIELD_UNIT_PRICE = "UnitPrice"
FIELD_QUANTITY = "Quantity"
FIELD_PRICEBOOK_ENTRY = "PricebookEntryId"

# Pill affordance tags carried by every selection entry
ENTRY_LABEL_KEY = "label"
ENTRY_ICON_KEY = "iconName"
ENTRY_TYPE_KEY = "type"
ENTRY_TYPE_ICON = "icon"
DEFAULT_SELECTION_ICON = "utility:checkout"

# Keys removed from a selection entry before it becomes a line item
UI_ONLY_FIELDS = frozenset({
    FIELD_LIST_PRICE,
    FIELD_PRODUCT,
    ENTRY_LABEL_KEY,
    ENTRY_ICON_KEY,
    ENTRY_TYPE_KEY,
})

# Platform error code for a record that no longer exists
ENTITY_IS_DELETED = "ENTITY_IS_DELETED"

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


# =============================================================================
# Error Codes
# =============================================================================

class WizardErrorCode:
    """Catalog wizard error codes for audit logging."""
    VALIDATION_FAILED = "CPQ-010"
    COMMIT_FAILED = "CPQ-020"
    ROLLBACK_FAILED = "CPQ-021"
    FETCH_FAILED = "CPQ-030"
    INVALID_TRANSITION = "CPQ-040"
    PRICEBOOK_UPDATE_FAILED = "CPQ-050"
    LINE_ITEM_CLEANUP_FAILED = "CPQ-051"
    CONFIG_INVALID = "CPQ-060"
    UNSUPPORTED_PARENT = "CPQ-070"


class WizardStateError(Exception):
    """
    Raised when an operation is not allowed in the current wizard phase.

    The controller's state is left untouched when this is raised.
    """

    def __init__(self, message: str, error_code: str = WizardErrorCode.INVALID_TRANSITION):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# =============================================================================
# Enums
# =============================================================================

class WizardPhase(Enum):
    """
    Product selection wizard phases.

    State Machine:
        BROWSING → CONFIGURING (advance, selection non-empty)
        CONFIGURING → BROWSING (retreat)
        CONFIGURING → COMMITTED (all line items created)

    Terminal States: COMMITTED
    Filtering is an overlay flag inside BROWSING, not a phase.
    """
    BROWSING = "BROWSING"
    CONFIGURING = "CONFIGURING"
    COMMITTED = "COMMITTED"


class ParentKind(str, Enum):
    """Parent record kinds that can own line items."""
    OPPORTUNITY = "Opportunity"
    QUOTE = "Quote"
    ORDER = "Order"


class SortDirection(str, Enum):
    """Table sort direction."""
    ASC = "asc"
    DESC = "desc"

    @property
    def multiplier(self) -> int:
        return 1 if self is SortDirection.ASC else -1


class ToastSeverity(str, Enum):
    """Notification variant."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ToastMode(str, Enum):
    """Notification persistence."""
    STICKY = "sticky"
    DISMISSIBLE = "dismissible"


class ModalOutcome(str, Enum):
    """Result of a confirmation modal."""
    CONFIRM = "confirm"
    CANCEL = "cancel"


# =============================================================================
# Parent Kind Dispatch Table
# =============================================================================

@dataclass(frozen=True)
class ParentKindSpec:
    """Field names and messaging for one parent record kind."""
    child_type: str
    linkage_field: str
    required_price_label: str

    @property
    def required_fields_message(self) -> str:
        return (
            f"Required Field Missing. Please check Quantity and "
            f"{self.required_price_label}"
        )

    @property
    def note_message(self) -> str:
        return (
            f"Note: Quantity and {self.required_price_label} are required fields."
        )


PARENT_KIND_TABLE: Dict[ParentKind, ParentKindSpec] = {
    ParentKind.OPPORTUNITY: ParentKindSpec(
        child_type="OpportunityLineItem",
        linkage_field="OpportunityId",
        required_price_label="Sales Price",
    ),
    ParentKind.QUOTE: ParentKindSpec(
        child_type="QuoteLineItem",
        linkage_field="QuoteId",
        required_price_label="Sales Price",
    ),
    ParentKind.ORDER: ParentKindSpec(
        child_type="OrderItem",
        linkage_field="OrderId",
        required_price_label="Unit Price",
    ),
}


def resolve_parent_kind(value: Optional[str]) -> Optional[ParentKind]:
    """
    Map a platform object name onto a ParentKind.

    Returns None for unknown or missing names; callers decide whether
    that blocks the operation.
    """
    if not value:
        return None
    try:
        return ParentKind(value.strip())
    except ValueError:
        logger.warning(
            f"[{WizardErrorCode.UNSUPPORTED_PARENT}] Unsupported parent kind: {value}"
        )
        return None


# =============================================================================
# Payload Models
# =============================================================================

class FilterField(BaseModel):
    """One filterable (or displayable) product attribute."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_name: str = Field(alias="apiName")
    label: str
    type: Optional[str] = None


class ConfigColumn(BaseModel):
    """One column of the configuration grid."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_name: str = Field(alias="apiName")
    label: str
    editable: bool = False
    type: Optional[str] = None
    display_read_only_icon: bool = Field(default=False, alias="displayReadOnlyIcon")


class PriceEntry(BaseModel):
    """A price-list binding of one product."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id")
    product2_id: str = Field(alias="Product2Id")
    unit_price: Optional[Decimal] = Field(default=None, alias="UnitPrice")
    pricebook2_id: Optional[str] = Field(default=None, alias="Pricebook2Id")


class PriceListRow(BaseModel):
    """One selectable price list."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id")
    name: str = Field(alias="Name")


class CatalogPayload(BaseModel):
    """Response of the catalog fetch: table columns, parent kind, rows and prices."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    columns: List[FilterField] = Field(default_factory=list)
    parent_kind: Optional[str] = Field(default=None, alias="parentKind")
    products: List[Dict[str, Any]] = Field(default_factory=list)
    price_entries: List[PriceEntry] = Field(default_factory=list, alias="priceEntries")


# =============================================================================
# Structured Collaborator Errors
# =============================================================================

@dataclass
class ErrorDetail:
    """One platform error message with its optional error code."""
    message: str
    error_code: Optional[str] = None


class RecordOperationError(Exception):
    """
    Structured failure of a collaborator call.

    Exposes the platform's row-level errors, field-level errors (field API
    name to errors) and a generic message. The most specific available
    message wins when surfacing to the user.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        row_errors: Optional[List[ErrorDetail]] = None,
        field_errors: Optional[Dict[str, List[ErrorDetail]]] = None,
    ):
        self.message = message
        self.row_errors: List[ErrorDetail] = list(row_errors or [])
        self.field_errors: Dict[str, List[ErrorDetail]] = dict(field_errors or {})
        super().__init__(self.first_message())

    def first_message(self) -> str:
        """Row-level error, then field-level error, then generic message."""
        if self.row_errors:
            return self.row_errors[0].message
        for errors in self.field_errors.values():
            if errors:
                return errors[0].message
        return self.message or GENERIC_ERROR_MESSAGE

    @property
    def error_codes(self) -> Set[str]:
        codes = {e.error_code for e in self.row_errors if e.error_code}
        for errors in self.field_errors.values():
            codes.update(e.error_code for e in errors if e.error_code)
        return codes

    def has_error_code(self, code: str) -> bool:
        return code in self.error_codes

    @classmethod
    def from_exception(cls, exc: BaseException) -> "RecordOperationError":
        if isinstance(exc, RecordOperationError):
            return exc
        return cls(message=str(exc) or GENERIC_ERROR_MESSAGE)


@dataclass
class OperationResult:
    """
    Typed outcome of one collaborator call.

    Exactly one of value/error is meaningful, selected by success.
    """
    success: bool
    value: Any = None
    error: Optional[RecordOperationError] = None

    @classmethod
    def ok(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: RecordOperationError) -> "OperationResult":
        return cls(success=False, error=error)

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.first_message()


# =============================================================================
# Selection and Commit Records
# =============================================================================

@dataclass
class SelectionEntry:
    """
    A selected catalog row projected onto the configuration grid columns.

    fields holds the projected column values (Product2Id carries the product
    name for display). edited_fields records which of them the user changed
    in the grid so catalog refreshes never overwrite them.
    """
    source_id: str
    pricebook_entry_id: Optional[str]
    label: str
    fields: Dict[str, Any] = field(default_factory=dict)
    icon_name: str = DEFAULT_SELECTION_ICON
    edited_fields: Set[str] = field(default_factory=set)

    def identity(self) -> str:
        return self.pricebook_entry_id or self.source_id

    def apply_edit(self, field_name: str, value: Any) -> None:
        self.fields[field_name] = value
        self.edited_fields.add(field_name)

    def as_row(self) -> Dict[str, Any]:
        """Grid/pill row: projected fields plus the pill affordance tags."""
        row = dict(self.fields)
        row[FIELD_PRICEBOOK_ENTRY] = self.pricebook_entry_id
        row[ENTRY_LABEL_KEY] = self.label
        row[ENTRY_TYPE_KEY] = ENTRY_TYPE_ICON
        row[ENTRY_ICON_KEY] = self.icon_name
        return row

    def to_record_fields(self) -> Dict[str, Any]:
        """Line item field values with every UI-only key removed."""
        return {
            key: value
            for key, value in self.as_row().items()
            if key not in UI_ONLY_FIELDS
        }


@dataclass
class CommitBatch:
    """Creation requests for one commit attempt and the records created so far."""
    child_type: str
    linkage_field: str
    parent_id: str
    requests: List[Dict[str, Any]]
    correlation_id: str
    created_ids: List[str] = field(default_factory=list)


@dataclass
class CommitResult:
    """
    Result of WizardController.commit().

    rollback_failures lists created records whose compensating deletion
    failed for a reason other than the record already being gone.
    """
    success: bool
    error_code: Optional[str]
    error_message: Optional[str]
    correlation_id: str
    created_ids: List[str] = field(default_factory=list)
    rolled_back_ids: List[str] = field(default_factory=list)
    rollback_failures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "correlation_id": self.correlation_id,
            "created_ids": list(self.created_ids),
            "rolled_back_ids": list(self.rolled_back_ids),
            "rollback_failures": list(self.rollback_failures),
        }


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "CatalogRow",
    "FIELD_ID",
    "FIELD_NAME",
    "FIELD_PRODUCT",
    "FIELD_LIST_PRICE",
    "FIELD_UNIT_PRICE",
    "FIELD_QUANTITY",
    "FIELD_PRICEBOOK_ENTRY",
    "UI_ONLY_FIELDS",
    "ENTITY_IS_DELETED",
    "GENERIC_ERROR_MESSAGE",
    "DEFAULT_SELECTION_ICON",
    "WizardErrorCode",
    "WizardStateError",
    "WizardPhase",
    "ParentKind",
    "SortDirection",
    "ToastSeverity",
    "ToastMode",
    "ModalOutcome",
    "ParentKindSpec",
    "PARENT_KIND_TABLE",
    "resolve_parent_kind",
    "FilterField",
    "ConfigColumn",
    "PriceEntry",
    "PriceListRow",
    "CatalogPayload",
    "ErrorDetail",
    "RecordOperationError",
    "OperationResult",
    "SelectionEntry",
    "CommitBatch",
    "CommitResult",
]
