"""
============================================================================
Catalog Wizard - External Collaborator Contracts
============================================================================

The wizard core never talks to the platform directly. Every remote or UI
primitive it needs is one of the abstract collaborators below:

- CatalogDataSource: catalog, price entries and field-set metadata
- RecordService: create / delete / update records
- ConfirmationModal: two-outcome confirmation dialog
- Notifier: fire-and-forget toast notifications
- Navigator: page navigation

Async collaborator methods return OperationResult. guarded_call() turns a
raised exception into a failed result so callers always branch on a typed
outcome.

============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Optional
import logging

from catalog_wizard.wizard_models import (
    ModalOutcome,
    OperationResult,
    RecordOperationError,
    ToastMode,
    ToastSeverity,
)

# Configure module logger
logger = logging.getLogger(__name__)


# Page state parameter names carried between the two pages
STATE_RECORD_ID = "c__recordId"
STATE_PRICEBOOK_ID = "c__pricebookId"


# =============================================================================
# Navigation
# =============================================================================

@dataclass(frozen=True)
class PageReference:
    """Navigation target: page type, attributes and carried state."""
    type: str
    attributes: Dict[str, str] = field(default_factory=dict)
    state: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> Optional[str]:
        """Lightning URL for record pages, None for app pages."""
        if self.type != "standard__recordPage":
            return None
        return (
            f"/lightning/r/{self.attributes['objectApiName']}/"
            f"{self.attributes['recordId']}/{self.attributes.get('actionName', 'view')}"
        )


def record_view_page(object_api_name: str, record_id: str) -> PageReference:
    return PageReference(
        type="standard__recordPage",
        attributes={
            "recordId": record_id,
            "objectApiName": object_api_name,
            "actionName": "view",
        },
    )


def product_selection_page(page_api_name: str, record_id: str, price_list_id: str) -> PageReference:
    return PageReference(
        type="standard__navItemPage",
        attributes={"apiName": page_api_name},
        state={
            STATE_RECORD_ID: record_id,
            STATE_PRICEBOOK_ID: price_list_id,
        },
    )


# =============================================================================
# Collaborator Contracts
# =============================================================================

class CatalogDataSource(ABC):
    """Remote catalog and metadata reads."""

    @abstractmethod
    async def fetch_catalog_with_prices(self, price_list_id: str, parent_id: str) -> OperationResult:
        """Value: mapping with columns, parentKind, products, priceEntries."""

    @abstractmethod
    async def fetch_configuration_schema(self, parent_id: str) -> OperationResult:
        """Value: list of field-set descriptors {apiName, label, type}."""

    @abstractmethod
    async def fetch_filterable_fields(self) -> OperationResult:
        """Value: list of {apiName, label, type}."""

    @abstractmethod
    async def fetch_filter_candidates(self, price_list_id: str) -> OperationResult:
        """Value: flat list of product rows used only for filter matching."""

    @abstractmethod
    async def fetch_price_lists(self) -> OperationResult:
        """Value: list of {Id, Name} price lists."""

    @abstractmethod
    async def fetch_active_price_list(self, parent_id: str) -> OperationResult:
        """Value: price list Id associated with the parent, or None."""


class RecordService(ABC):
    """Record persistence."""

    @abstractmethod
    async def create_record(self, object_type: str, fields: Dict[str, Any]) -> OperationResult:
        """Value: the new record Id."""

    @abstractmethod
    async def delete_record(self, record_id: str) -> OperationResult:
        ...

    @abstractmethod
    async def update_parent_price_list(self, parent_id: str, price_list_id: str) -> OperationResult:
        ...

    @abstractmethod
    async def delete_related_line_items(self, parent_id: str) -> OperationResult:
        ...


class ConfirmationModal(ABC):

    @abstractmethod
    async def confirm(self, options: Dict[str, Any]) -> ModalOutcome:
        ...


class Notifier(ABC):

    @abstractmethod
    def notify(
        self,
        title: str,
        message: str,
        severity: ToastSeverity,
        mode: ToastMode = ToastMode.DISMISSIBLE,
    ) -> None:
        ...


class Navigator(ABC):

    @abstractmethod
    def navigate(self, page: PageReference) -> None:
        ...


# =============================================================================
# Guarded Invocation
# =============================================================================

async def guarded_call(
    awaitable: Awaitable[Any],
    operation: str,
    correlation_id: Optional[str] = None,
) -> OperationResult:
    """
    Await a collaborator call and normalise its outcome.

    Returned OperationResults pass through unchanged; any other return value
    is wrapped as a success; a raised exception becomes a failed result
    carrying a RecordOperationError.
    """
    try:
        outcome = await awaitable
    except Exception as e:
        error = RecordOperationError.from_exception(e)
        logger.debug(
            f"[WIZARD-CALL] {operation} raised | "
            f"error={error.first_message()} | "
            f"exception_type={type(e).__name__} | "
            f"correlation_id={correlation_id}"
        )
        return OperationResult.failed(error)

    if isinstance(outcome, OperationResult):
        if not outcome.success and outcome.error is None:
            return OperationResult.failed(RecordOperationError())
        return outcome
    return OperationResult.ok(outcome)


__all__ = [
    "STATE_RECORD_ID",
    "STATE_PRICEBOOK_ID",
    "PageReference",
    "record_view_page",
    "product_selection_page",
    "CatalogDataSource",
    "RecordService",
    "ConfirmationModal",
    "Notifier",
    "Navigator",
    "guarded_call",
]
