"""
============================================================================
Catalog Wizard - Wizard Controller
============================================================================

Decimal Integrity: Prices flow through unchanged from the catalog join
Traceability: Every controller and every commit batch has a correlation_id

WIZARD FLOW:
    BROWSING: filter the catalog, sort it, select rows (pills)
    advance → CONFIGURING: edit quantities/prices in the grid
    retreat → BROWSING: selection kept
    commit → COMMITTED: every line item created, navigate to the parent

COMMIT PROTOCOL:
    1. Merge pending grid edits
    2. Validate Quantity and price on every entry (CPQ-010, no state change)
    3. Create all line items concurrently (asyncio.gather)
    4. Any failure: delete every created line item concurrently,
       ENTITY_IS_DELETED counts as deleted, surface the first structured
       error (CPQ-020) and stay in CONFIGURING so the commit can be retried

ERROR CODES:
    - CPQ-010: Required field missing
    - CPQ-020: Line item creation failed, batch rolled back
    - CPQ-021: Compensating deletion failed (logged, not surfaced)
    - CPQ-030: Catalog or metadata fetch failed (logged, degraded)
    - CPQ-040: Operation not allowed in the current phase
    - CPQ-070: Unsupported parent record kind

============================================================================
"""

from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import asyncio
import logging
import uuid

from pydantic import ValidationError

from catalog_wizard.catalog_engine import CatalogEngine, TableColumn
from catalog_wizard.collaborators import (
    STATE_PRICEBOOK_ID,
    STATE_RECORD_ID,
    CatalogDataSource,
    Navigator,
    Notifier,
    PageReference,
    RecordService,
    guarded_call,
    record_view_page,
)
from catalog_wizard.wizard_config import WizardConfig, get_wizard_config
from catalog_wizard.wizard_metrics import (
    OUTCOME_ALREADY_DELETED,
    OUTCOME_DELETED,
    OUTCOME_FAILED,
    OUTCOME_INVALID,
    OUTCOME_ROLLED_BACK,
    OUTCOME_SUCCESS,
    record_commit,
    record_rollback_deletion,
)
from catalog_wizard.wizard_models import (
    ENTITY_IS_DELETED,
    FIELD_ID,
    FIELD_LIST_PRICE,
    FIELD_NAME,
    FIELD_PRICEBOOK_ENTRY,
    FIELD_PRODUCT,
    FIELD_QUANTITY,
    FIELD_UNIT_PRICE,
    PARENT_KIND_TABLE,
    CatalogRow,
    CommitBatch,
    CommitResult,
    ConfigColumn,
    FilterField,
    OperationResult,
    ParentKind,
    RecordOperationError,
    SelectionEntry,
    SortDirection,
    ToastMode,
    ToastSeverity,
    WizardErrorCode,
    WizardPhase,
    WizardStateError,
    resolve_parent_kind,
)
from catalog_wizard.wizard_state_machine import require_transition

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

TABLE_SIZE_FULL = "slds-col slds-size_12-of-12"
TABLE_SIZE_WITH_FILTER = "slds-col slds-size_9-of-12"

WIDGET_DATE = "date-local"
WIDGET_NUMBER = "number"

SUCCESS_MESSAGE = "Record Created Successfully"

# Grid draft keys that never reach a selection entry
DRAFT_IDENTITY_KEYS = frozenset({"id", FIELD_PRICEBOOK_ENTRY})


# =============================================================================
# Configuration Grid Columns
# =============================================================================

def build_config_columns(fields: Iterable[FilterField]) -> List[ConfigColumn]:
    """
    Configuration grid columns for the line item field set.

    Product and list price are read-only; DATE fields get a date widget,
    DOUBLE/PERCENT a number widget, everything else is editable text.
    """
    columns: List[ConfigColumn] = []
    for f in fields:
        field_type = (f.type or "").upper()
        if f.api_name in (FIELD_PRODUCT, FIELD_LIST_PRICE):
            column = ConfigColumn(api_name=f.api_name, label=f.label, display_read_only_icon=True)
        elif field_type == "DATE":
            column = ConfigColumn(api_name=f.api_name, label=f.label, editable=True, type=WIDGET_DATE)
        elif field_type in ("DOUBLE", "PERCENT"):
            column = ConfigColumn(api_name=f.api_name, label=f.label, editable=True, type=WIDGET_NUMBER)
        else:
            column = ConfigColumn(api_name=f.api_name, label=f.label, editable=True)
        columns.append(column)
    return columns


def _is_blank(value: Any) -> bool:
    # Zero counts as missing for Quantity and price
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value == 0
    return False


def _parse_row_index(draft_id: Any) -> Optional[int]:
    # Grid draft ids look like "row-<n>"
    if draft_id is None:
        return None
    _, _, tail = str(draft_id).rpartition("-")
    if not tail.isdigit():
        return None
    return int(tail)


# =============================================================================
# WizardController Class
# =============================================================================

class WizardController:
    """
    In-memory state of the product selection wizard.

    One explicit phase plus the filter overlay flag drive every visibility
    property. Transitions are synchronous and run to completion; only
    load() and commit() await collaborators.

    USAGE:
        wizard = WizardController.from_page_state(page_state, data_source, ...)
        await wizard.load()
        wizard.set_filter_input("Family", "Hardware")
        wizard.apply_filter()
        wizard.select_rows(wizard.visible_rows[:2])
        wizard.advance()
        result = await wizard.commit(draft_edits)
    """

    def __init__(
        self,
        record_id: str,
        price_list_id: str,
        data_source: CatalogDataSource,
        record_service: RecordService,
        notifier: Notifier,
        navigator: Navigator,
        config: Optional[WizardConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.record_id = record_id
        self.price_list_id = price_list_id
        self.correlation_id = correlation_id or str(uuid.uuid4())

        self._data_source = data_source
        self._record_service = record_service
        self._notifier = notifier
        self._navigator = navigator
        self._config = config or get_wizard_config(validate=False)

        self.catalog = CatalogEngine(self._config, self.correlation_id)
        self.phase = WizardPhase.BROWSING
        self.filter_overlay_open = False
        self.filter_state: Dict[str, str] = {}
        self.apply_disabled = True
        self.filter_fields: List[FilterField] = []
        self.config_columns: List[ConfigColumn] = []
        self.parent_kind: Optional[ParentKind] = None
        self.selection: List[SelectionEntry] = []
        self.last_commit: Optional[CommitResult] = None

        # Selected rows keyed by Id, in first-selected order
        self._selected_rows: Dict[Any, CatalogRow] = {}

        logger.info(
            f"[WIZARD-INIT] Wizard created | record_id={record_id} | "
            f"price_list_id={price_list_id} | correlation_id={self.correlation_id}"
        )

    @classmethod
    def from_page_state(
        cls,
        page_state: Mapping[str, str],
        data_source: CatalogDataSource,
        record_service: RecordService,
        notifier: Notifier,
        navigator: Navigator,
        config: Optional[WizardConfig] = None,
    ) -> "WizardController":
        """Build a controller from the page reference state parameters."""
        return cls(
            record_id=page_state.get(STATE_RECORD_ID, ""),
            price_list_id=page_state.get(STATE_PRICEBOOK_ID, ""),
            data_source=data_source,
            record_service=record_service,
            notifier=notifier,
            navigator=navigator,
            config=config,
        )

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> None:
        """
        Fetch catalog, grid schema, filter fields and filter candidates.

        Fetch failures are logged (CPQ-030) and leave the affected list
        empty; they are never surfaced to the user.
        """
        catalog, schema, filter_fields, candidates = await asyncio.gather(
            guarded_call(
                self._data_source.fetch_catalog_with_prices(self.price_list_id, self.record_id),
                "fetch_catalog_with_prices", self.correlation_id,
            ),
            guarded_call(
                self._data_source.fetch_configuration_schema(self.record_id),
                "fetch_configuration_schema", self.correlation_id,
            ),
            guarded_call(
                self._data_source.fetch_filterable_fields(),
                "fetch_filterable_fields", self.correlation_id,
            ),
            guarded_call(
                self._data_source.fetch_filter_candidates(self.price_list_id),
                "fetch_filter_candidates", self.correlation_id,
            ),
        )

        if self._usable("fetch_catalog_with_prices", catalog):
            try:
                self.catalog.load(catalog.value, self.price_list_id)
                self.parent_kind = resolve_parent_kind(self.catalog.parent_kind)
            except ValidationError as e:
                self._log_fetch_failure("fetch_catalog_with_prices", str(e))

        if self._usable("fetch_configuration_schema", schema):
            try:
                self.config_columns = build_config_columns(
                    FilterField.model_validate(f) for f in schema.value or []
                )
            except ValidationError as e:
                self._log_fetch_failure("fetch_configuration_schema", str(e))

        if self._usable("fetch_filterable_fields", filter_fields):
            try:
                self.filter_fields = [
                    FilterField.model_validate(f) for f in filter_fields.value or []
                ]
            except ValidationError as e:
                self._log_fetch_failure("fetch_filterable_fields", str(e))

        if self._usable("fetch_filter_candidates", candidates):
            self.catalog.set_filter_candidates(candidates.value or [])

    def _usable(self, operation: str, result: OperationResult) -> bool:
        if result.success:
            return True
        self._log_fetch_failure(operation, result.error_message)
        return False

    def _log_fetch_failure(self, operation: str, message: Optional[str]) -> None:
        logger.error(
            f"[{WizardErrorCode.FETCH_FAILED}] {operation} failed | "
            f"error={message} | record_id={self.record_id} | "
            f"correlation_id={self.correlation_id}"
        )

    # =========================================================================
    # Derived View State
    # =========================================================================

    @property
    def visible_rows(self) -> List[CatalogRow]:
        return list(self.catalog.visible_rows)

    @property
    def product_columns(self) -> List[TableColumn]:
        return list(self.catalog.columns)

    @property
    def grid_rows(self) -> List[Dict[str, Any]]:
        return [entry.as_row() for entry in self.selection]

    @property
    def show_product_table(self) -> bool:
        return self.phase is WizardPhase.BROWSING and self.catalog.loaded

    @property
    def show_configuration_grid(self) -> bool:
        return self.phase is WizardPhase.CONFIGURING

    @property
    def show_filter_panel(self) -> bool:
        return self.phase is WizardPhase.BROWSING and self.filter_overlay_open

    @property
    def show_filter_icon(self) -> bool:
        return self.phase is WizardPhase.BROWSING

    @property
    def filter_icon_disabled(self) -> bool:
        return not self.catalog.loaded

    @property
    def show_pill_container(self) -> bool:
        return self.phase is WizardPhase.BROWSING and bool(self.selection)

    @property
    def show_next_button(self) -> bool:
        return self.phase is WizardPhase.BROWSING

    @property
    def show_cancel_button(self) -> bool:
        return self.phase is WizardPhase.BROWSING

    @property
    def show_back_button(self) -> bool:
        return self.phase is WizardPhase.CONFIGURING

    @property
    def next_disabled(self) -> bool:
        return not self.selection

    @property
    def cancel_disabled(self) -> bool:
        return not self.catalog.loaded

    @property
    def product_table_size(self) -> str:
        return TABLE_SIZE_WITH_FILTER if self.show_filter_panel else TABLE_SIZE_FULL

    @property
    def note_message(self) -> Optional[str]:
        if self.phase is not WizardPhase.CONFIGURING or self.parent_kind is None:
            return None
        return PARENT_KIND_TABLE[self.parent_kind].note_message

    def _require_phase(self, phase: WizardPhase, operation: str) -> None:
        if self.phase is not phase:
            logger.error(
                f"[{WizardErrorCode.INVALID_TRANSITION}] {operation} not allowed in "
                f"{self.phase.value} | correlation_id={self.correlation_id}"
            )
            raise WizardStateError(
                f"{operation} is only allowed while {phase.value}, current phase is {self.phase.value}"
            )

    # =========================================================================
    # Filtering and Sorting
    # =========================================================================

    def open_filter_overlay(self) -> None:
        self._require_phase(WizardPhase.BROWSING, "open_filter_overlay")
        self.filter_overlay_open = True

    def close_filter_overlay(self) -> None:
        self.filter_overlay_open = False

    def set_filter_input(self, name: str, value: Any) -> None:
        """Record one filter input; a blank value removes the constraint."""
        self.apply_disabled = False
        text = "" if value is None else str(value).strip().lower()
        if text:
            self.filter_state = {**self.filter_state, name: text}
        else:
            self.filter_state = {k: v for k, v in self.filter_state.items() if k != name}

    def apply_filter(self) -> List[CatalogRow]:
        self._require_phase(WizardPhase.BROWSING, "apply_filter")
        rows = self.catalog.filter_view(self.filter_state)
        logger.info(
            f"[WIZARD-FILTER] Filter applied | constraints={sorted(self.filter_state)} | "
            f"visible={len(rows)} | correlation_id={self.correlation_id}"
        )
        return rows

    def clear_filter(self) -> List[CatalogRow]:
        """Drop every constraint and restore the unfiltered view in original order."""
        self._require_phase(WizardPhase.BROWSING, "clear_filter")
        self.filter_state = {}
        self.apply_disabled = True
        return self.catalog.reset_view()

    def sort(self, field: str, direction: Union[str, SortDirection] = SortDirection.ASC) -> List[CatalogRow]:
        self._require_phase(WizardPhase.BROWSING, "sort")
        return self.catalog.sort_view(field, SortDirection(direction))

    # =========================================================================
    # Selection
    # =========================================================================

    def _project(self, row: CatalogRow) -> SelectionEntry:
        fields: Dict[str, Any] = {}
        for column in self.config_columns:
            if column.api_name == FIELD_PRODUCT:
                fields[column.api_name] = row.get(FIELD_NAME)
            elif column.api_name in row:
                fields[column.api_name] = row[column.api_name]
            else:
                fields[column.api_name] = ""
        return SelectionEntry(
            source_id=row[FIELD_ID],
            pricebook_entry_id=row.get(FIELD_PRICEBOOK_ENTRY),
            label=row.get(FIELD_NAME) or "",
            fields=fields,
            icon_name=self._config.selection_icon,
        )

    def _rebuild_selection(self) -> None:
        existing = {entry.source_id: entry for entry in self.selection}
        self.selection = [
            existing.get(row_id) or self._project(row)
            for row_id, row in self._selected_rows.items()
        ]

    def select_rows(self, rows: Iterable[CatalogRow]) -> List[SelectionEntry]:
        """
        Merge rows into the selection by Id; already-selected rows are ignored.

        Returns:
            The rebuilt selection entries
        """
        self._require_phase(WizardPhase.BROWSING, "select_rows")
        added = 0
        for row in rows:
            row_id = row.get(FIELD_ID)
            if row_id is None:
                logger.warning(
                    f"[WIZARD-SELECT] Ignoring row without Id | correlation_id={self.correlation_id}"
                )
                continue
            if row_id in self._selected_rows:
                continue
            self._selected_rows[row_id] = row
            added += 1

        self._rebuild_selection()
        logger.debug(
            f"[WIZARD-SELECT] rows_added={added} | selected={len(self.selection)} | "
            f"correlation_id={self.correlation_id}"
        )
        return list(self.selection)

    def remove_selection(self, index: int) -> Optional[SelectionEntry]:
        """
        Remove the entry at index and its underlying selected row.

        The row is matched on the entry identity: PricebookEntryId, or the
        product Id for unpriced rows.
        Out-of-range indexes are ignored.
        """
        self._require_phase(WizardPhase.BROWSING, "remove_selection")
        if not 0 <= index < len(self.selection):
            logger.warning(
                f"[WIZARD-SELECT] Pill index out of range | index={index} | "
                f"selected={len(self.selection)} | correlation_id={self.correlation_id}"
            )
            return None

        entry = self.selection.pop(index)
        identity = entry.identity()
        key = next(
            (
                row_id for row_id, row in self._selected_rows.items()
                if (row.get(FIELD_PRICEBOOK_ENTRY) or row_id) == identity
            ),
            None,
        )
        if key is not None:
            del self._selected_rows[key]
        return entry

    # =========================================================================
    # Phase Transitions
    # =========================================================================

    def advance(self) -> None:
        """
        BROWSING → CONFIGURING.

        Re-projects every entry against the unfiltered initial catalog so
        prices are the canonical joined values; user edits are kept.
        """
        if not self.selection:
            raise WizardStateError("Select at least one product before continuing")
        self.phase = require_transition(self.phase, WizardPhase.CONFIGURING, self.correlation_id)

        for entry in self.selection:
            canonical = self.catalog.row_by_id(entry.source_id)
            if canonical is None:
                continue
            fresh = self._project(canonical)
            for key, value in fresh.fields.items():
                if key not in entry.edited_fields:
                    entry.fields[key] = value
            entry.pricebook_entry_id = fresh.pricebook_entry_id
            entry.label = fresh.label

        self.catalog.reset_view()
        self.filter_overlay_open = False

    def retreat(self) -> None:
        """CONFIGURING → BROWSING; the selection is kept."""
        self.phase = require_transition(self.phase, WizardPhase.BROWSING, self.correlation_id)

    def edit_draft(self, edits: Iterable[Mapping[str, Any]]) -> int:
        """
        Merge inline grid edits onto the selection entries in place.

        Each edit carries an "id" of the form "row-<n>"; edits whose position
        is outside the current selection are dropped.

        Returns:
            Number of edits applied
        """
        self._require_phase(WizardPhase.CONFIGURING, "edit_draft")
        applied = 0
        for edit in edits:
            index = _parse_row_index(edit.get("id"))
            if index is None or index >= len(self.selection):
                logger.warning(
                    f"[WIZARD-DRAFT] Dropping stale edit | id={edit.get('id')} | "
                    f"selected={len(self.selection)} | correlation_id={self.correlation_id}"
                )
                continue
            entry = self.selection[index]
            for key, value in edit.items():
                if key not in DRAFT_IDENTITY_KEYS:
                    entry.apply_edit(key, value)
            applied += 1
        return applied

    def cancel(self) -> Optional[PageReference]:
        """Leave the wizard for the parent record page without committing."""
        object_name = self.parent_kind.value if self.parent_kind else self.catalog.parent_kind
        if not object_name:
            logger.warning(
                f"[WIZARD-NAV] Parent kind unknown, cannot navigate | "
                f"correlation_id={self.correlation_id}"
            )
            return None
        page = record_view_page(object_name, self.record_id)
        self._navigator.navigate(page)
        return page

    # =========================================================================
    # Commit
    # =========================================================================

    def validate_selection(self) -> Optional[str]:
        """Required-field message if any entry lacks Quantity or price, else None."""
        if self.parent_kind is None:
            return None
        kind_spec = PARENT_KIND_TABLE[self.parent_kind]
        for entry in self.selection:
            if _is_blank(entry.fields.get(FIELD_QUANTITY)) or _is_blank(entry.fields.get(FIELD_UNIT_PRICE)):
                return kind_spec.required_fields_message
        return None

    def build_commit_batch(self) -> CommitBatch:
        """One creation request per entry, UI-only keys stripped, parent linked."""
        if self.parent_kind is None:
            raise WizardStateError(
                "Parent record kind is unknown", error_code=WizardErrorCode.UNSUPPORTED_PARENT
            )
        kind_spec = PARENT_KIND_TABLE[self.parent_kind]
        requests = [
            {**entry.to_record_fields(), kind_spec.linkage_field: self.record_id}
            for entry in self.selection
        ]
        return CommitBatch(
            child_type=kind_spec.child_type,
            linkage_field=kind_spec.linkage_field,
            parent_id=self.record_id,
            requests=requests,
            correlation_id=str(uuid.uuid4()),
        )

    async def commit(self, draft_edits: Optional[Iterable[Mapping[str, Any]]] = None) -> CommitResult:
        """
        Create every selection entry as a line item, all or nothing.

        Args:
            draft_edits: Pending grid edits merged before validation

        Returns:
            CommitResult; on failure the wizard stays in CONFIGURING

        Raises:
            WizardStateError: If not in CONFIGURING (CPQ-040)
        """
        self._require_phase(WizardPhase.CONFIGURING, "commit")
        if draft_edits:
            self.edit_draft(draft_edits)

        if self.parent_kind is None:
            message = "Line items cannot be added to this record"
            logger.error(
                f"[{WizardErrorCode.UNSUPPORTED_PARENT}] {message} | "
                f"parent_kind={self.catalog.parent_kind} | correlation_id={self.correlation_id}"
            )
            self._notifier.notify("Error", message, ToastSeverity.ERROR, ToastMode.STICKY)
            return self._finish(CommitResult(
                success=False,
                error_code=WizardErrorCode.UNSUPPORTED_PARENT,
                error_message=message,
                correlation_id=self.correlation_id,
            ))

        kind = self.parent_kind.value
        validation_message = self.validate_selection()
        if validation_message is not None:
            logger.warning(
                f"[{WizardErrorCode.VALIDATION_FAILED}] {validation_message} | "
                f"entries={len(self.selection)} | correlation_id={self.correlation_id}"
            )
            self._notifier.notify("Error", validation_message, ToastSeverity.ERROR, ToastMode.STICKY)
            self._metric(record_commit, kind, OUTCOME_INVALID, correlation_id=self.correlation_id)
            return self._finish(CommitResult(
                success=False,
                error_code=WizardErrorCode.VALIDATION_FAILED,
                error_message=validation_message,
                correlation_id=self.correlation_id,
            ))

        batch = self.build_commit_batch()
        logger.info(
            f"[WIZARD-COMMIT] Creating line items | child_type={batch.child_type} | "
            f"count={len(batch.requests)} | parent_id={batch.parent_id} | "
            f"correlation_id={batch.correlation_id}"
        )

        results = await asyncio.gather(*(
            guarded_call(
                self._record_service.create_record(batch.child_type, fields),
                "create_record", batch.correlation_id,
            )
            for fields in batch.requests
        ))

        failures: List[RecordOperationError] = []
        for result in results:
            if not result.success:
                failures.append(result.error or RecordOperationError())
            elif result.value:
                batch.created_ids.append(str(result.value))
            else:
                logger.warning(
                    f"[WIZARD-COMMIT] Creation succeeded without an Id | "
                    f"correlation_id={batch.correlation_id}"
                )

        if not failures:
            created = list(batch.created_ids)
            self.phase = require_transition(self.phase, WizardPhase.COMMITTED, self.correlation_id)
            logger.info(
                f"[WIZARD-COMMIT] Line items created | count={len(created)} | "
                f"correlation_id={batch.correlation_id}"
            )
            self._metric(record_commit, kind, OUTCOME_SUCCESS, len(created), batch.correlation_id)
            self._notifier.notify("Success", SUCCESS_MESSAGE, ToastSeverity.SUCCESS, ToastMode.DISMISSIBLE)
            self._navigator.navigate(record_view_page(kind, self.record_id))
            return self._finish(CommitResult(
                success=True,
                error_code=None,
                error_message=None,
                correlation_id=batch.correlation_id,
                created_ids=created,
            ))

        created = list(batch.created_ids)
        rolled_back, rollback_failures = await self._rollback(batch)
        message = failures[0].first_message()
        logger.error(
            f"[{WizardErrorCode.COMMIT_FAILED}] Line item creation failed | "
            f"error={message} | failed={len(failures)} | created={len(created)} | "
            f"rolled_back={len(rolled_back)} | correlation_id={batch.correlation_id}"
        )
        self._metric(record_commit, kind, OUTCOME_ROLLED_BACK, correlation_id=batch.correlation_id)
        self._notifier.notify("Error", message, ToastSeverity.ERROR, ToastMode.STICKY)
        return self._finish(CommitResult(
            success=False,
            error_code=WizardErrorCode.COMMIT_FAILED,
            error_message=message,
            correlation_id=batch.correlation_id,
            created_ids=created,
            rolled_back_ids=rolled_back,
            rollback_failures=rollback_failures,
        ))

    async def _rollback(self, batch: CommitBatch) -> Tuple[List[str], List[str]]:
        """
        Delete every record created by batch, concurrently.

        A record already deleted counts as rolled back. Other failures are
        logged (CPQ-021) and left in batch.created_ids.
        """
        record_ids = list(batch.created_ids)
        results = await asyncio.gather(*(
            guarded_call(
                self._record_service.delete_record(record_id),
                "delete_record", batch.correlation_id,
            )
            for record_id in record_ids
        ))

        rolled_back: List[str] = []
        failed: List[str] = []
        for record_id, result in zip(record_ids, results):
            if result.success:
                rolled_back.append(record_id)
                self._metric(record_rollback_deletion, OUTCOME_DELETED, batch.correlation_id)
            elif result.error is not None and result.error.has_error_code(ENTITY_IS_DELETED):
                rolled_back.append(record_id)
                self._metric(record_rollback_deletion, OUTCOME_ALREADY_DELETED, batch.correlation_id)
            else:
                failed.append(record_id)
                self._metric(record_rollback_deletion, OUTCOME_FAILED, batch.correlation_id)
                logger.error(
                    f"[{WizardErrorCode.ROLLBACK_FAILED}] Compensating delete failed | "
                    f"record_id={record_id} | error={result.error_message} | "
                    f"correlation_id={batch.correlation_id}"
                )

        batch.created_ids = failed
        return rolled_back, failed

    def _finish(self, result: CommitResult) -> CommitResult:
        self.last_commit = result
        logger.debug(f"[WIZARD-COMMIT] Commit finished | result={result.to_dict()}")
        return result

    def _metric(self, recorder: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        if self._config.metrics_enabled:
            recorder(*args, **kwargs)


__all__ = [
    "TABLE_SIZE_FULL",
    "TABLE_SIZE_WITH_FILTER",
    "SUCCESS_MESSAGE",
    "build_config_columns",
    "WizardController",
]
