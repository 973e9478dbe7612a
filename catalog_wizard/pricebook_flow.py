"""
============================================================================
Catalog Wizard - Price List Resolution Flow
============================================================================

Traceability: All operations include correlation_id for audit

Resolves the active price list of a parent record before the product
selection wizard is entered:

    no existing price list, one picked  → persist → hand off
    existing price list re-picked       → hand off (no write)
    different price list picked         → confirm modal
        confirm → delete existing line items → persist → hand off
        cancel  → nothing changes

Hand-off never happens after a persistence or deletion error.

ERROR CODES:
    - CPQ-030: Price list fetch failed or malformed (logged, degraded)
    - CPQ-050: Price list update failed
    - CPQ-051: Existing line item cleanup failed

============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError

from catalog_wizard.collaborators import (
    CatalogDataSource,
    ConfirmationModal,
    Navigator,
    Notifier,
    PageReference,
    RecordService,
    guarded_call,
    product_selection_page,
)
from catalog_wizard.wizard_config import WizardConfig, get_wizard_config
from catalog_wizard.wizard_metrics import record_pricebook_resolution
from catalog_wizard.wizard_models import (
    ModalOutcome,
    PriceListRow,
    ToastMode,
    ToastSeverity,
    WizardErrorCode,
)

# Configure module logger
logger = logging.getLogger(__name__)


CONFIRM_MODAL_OPTIONS: Dict[str, Any] = {
    "size": "small",
    "label": "Confirm Price Book Change",
}

UPDATE_SUCCESS_MESSAGE = "pricebook updated successfully"


class ResolutionOutcome(str, Enum):
    """How a save() call ended."""
    HANDED_OFF = "handed_off"
    UPDATED = "updated"
    REPLACED = "replaced"
    CANCELLED = "cancelled"
    NO_SELECTION = "no_selection"
    FAILED = "failed"


@dataclass
class PricebookResolutionResult:
    """Result of PricebookResolutionFlow.save()."""
    outcome: ResolutionOutcome
    price_list_id: Optional[str]
    correlation_id: str
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    page: Optional[PageReference] = None

    @property
    def handed_off(self) -> bool:
        return self.page is not None


@dataclass(frozen=True)
class PriceListOption:
    label: str
    value: str


class PricebookResolutionFlow:
    """
    Price list picker for one parent record.

    USAGE:
        flow = PricebookResolutionFlow(record_id, data_source, records, modal, notifier, navigator)
        await flow.load()
        flow.select("01sXXXXXXXXXXXX")
        result = await flow.save()
    """

    def __init__(
        self,
        record_id: str,
        data_source: CatalogDataSource,
        record_service: RecordService,
        modal: ConfirmationModal,
        notifier: Notifier,
        navigator: Navigator,
        config: Optional[WizardConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.record_id = record_id
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self._data_source = data_source
        self._record_service = record_service
        self._modal = modal
        self._notifier = notifier
        self._navigator = navigator
        self._config = config or get_wizard_config(validate=False)

        self.options: List[PriceListOption] = []
        self.existing_price_list_id: Optional[str] = None
        self.selected_price_list_id: Optional[str] = None

    async def load(self) -> None:
        """Fetch the selectable price lists and the parent's current one."""
        lists = await guarded_call(
            self._data_source.fetch_price_lists(), "fetch_price_lists", self.correlation_id
        )
        if lists.success:
            try:
                rows = [PriceListRow.model_validate(p) for p in lists.value or []]
            except ValidationError as e:
                logger.error(
                    f"[{WizardErrorCode.FETCH_FAILED}] Malformed price list rows | "
                    f"error={str(e)} | correlation_id={self.correlation_id}"
                )
                rows = []
            self.options = [PriceListOption(label=row.name, value=row.id) for row in rows]
        else:
            logger.error(
                f"[{WizardErrorCode.FETCH_FAILED}] fetch_price_lists failed | "
                f"error={lists.error_message} | correlation_id={self.correlation_id}"
            )

        active = await guarded_call(
            self._data_source.fetch_active_price_list(self.record_id),
            "fetch_active_price_list", self.correlation_id,
        )
        if active.success:
            if active.value:
                self.existing_price_list_id = active.value
                self.selected_price_list_id = active.value
        else:
            logger.error(
                f"[{WizardErrorCode.FETCH_FAILED}] fetch_active_price_list failed | "
                f"error={active.error_message} | record_id={self.record_id} | "
                f"correlation_id={self.correlation_id}"
            )

    def select(self, price_list_id: Optional[str]) -> None:
        self.selected_price_list_id = price_list_id or None

    async def save(self) -> PricebookResolutionResult:
        """
        Resolve the selected price list and hand off to the product wizard.

        Returns:
            PricebookResolutionResult; page is set only when handed off
        """
        existing = self.existing_price_list_id
        selected = self.selected_price_list_id

        if not selected:
            return self._result(ResolutionOutcome.NO_SELECTION)

        if existing and existing == selected:
            return self._hand_off(ResolutionOutcome.HANDED_OFF)

        if not existing:
            return await self._persist(ResolutionOutcome.UPDATED)

        try:
            decision = await self._modal.confirm(dict(CONFIRM_MODAL_OPTIONS))
        except Exception as e:
            logger.error(
                f"[PRICEBOOK-FLOW] Confirmation modal failed | error={str(e)} | "
                f"correlation_id={self.correlation_id}"
            )
            return self._result(ResolutionOutcome.CANCELLED)

        if decision != ModalOutcome.CONFIRM:
            logger.info(
                f"[PRICEBOOK-FLOW] Price list change cancelled | existing={existing} | "
                f"selected={selected} | correlation_id={self.correlation_id}"
            )
            return self._result(ResolutionOutcome.CANCELLED)

        cleanup = await guarded_call(
            self._record_service.delete_related_line_items(self.record_id),
            "delete_related_line_items", self.correlation_id,
        )
        if not cleanup.success:
            return self._fail(WizardErrorCode.LINE_ITEM_CLEANUP_FAILED, cleanup.error_message)

        logger.info(
            f"[PRICEBOOK-FLOW] Existing line items deleted | record_id={self.record_id} | "
            f"correlation_id={self.correlation_id}"
        )
        return await self._persist(ResolutionOutcome.REPLACED)

    async def _persist(self, outcome: ResolutionOutcome) -> PricebookResolutionResult:
        selected = self.selected_price_list_id
        update = await guarded_call(
            self._record_service.update_parent_price_list(self.record_id, selected),
            "update_parent_price_list", self.correlation_id,
        )
        if not update.success:
            return self._fail(WizardErrorCode.PRICEBOOK_UPDATE_FAILED, update.error_message)

        self.existing_price_list_id = selected
        logger.info(
            f"[PRICEBOOK-FLOW] Price list updated | record_id={self.record_id} | "
            f"price_list_id={selected} | correlation_id={self.correlation_id}"
        )
        self._notifier.notify("Success", UPDATE_SUCCESS_MESSAGE, ToastSeverity.SUCCESS, ToastMode.DISMISSIBLE)
        return self._hand_off(outcome)

    def _hand_off(self, outcome: ResolutionOutcome) -> PricebookResolutionResult:
        page = product_selection_page(
            self._config.product_page, self.record_id, self.selected_price_list_id
        )
        self._navigator.navigate(page)
        result = self._result(outcome)
        result.page = page
        return result

    def _fail(self, error_code: str, message: Optional[str]) -> PricebookResolutionResult:
        logger.error(
            f"[{error_code}] Price list resolution failed | error={message} | "
            f"record_id={self.record_id} | correlation_id={self.correlation_id}"
        )
        self._notifier.notify("Error", message or "", ToastSeverity.ERROR, ToastMode.DISMISSIBLE)
        result = self._result(ResolutionOutcome.FAILED)
        result.error_code = error_code
        result.error_message = message
        return result

    def _result(self, outcome: ResolutionOutcome) -> PricebookResolutionResult:
        if self._config.metrics_enabled:
            record_pricebook_resolution(outcome.value, self.correlation_id)
        return PricebookResolutionResult(
            outcome=outcome,
            price_list_id=self.selected_price_list_id,
            correlation_id=self.correlation_id,
        )


__all__ = [
    "CONFIRM_MODAL_OPTIONS",
    "UPDATE_SUCCESS_MESSAGE",
    "ResolutionOutcome",
    "PricebookResolutionResult",
    "PriceListOption",
    "PricebookResolutionFlow",
]
