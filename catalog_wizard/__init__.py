"""
============================================================================
Catalog Wizard
============================================================================

Product selection wizard core for CRM parent records: price list
resolution, catalog filtering and sorting, selection reconciliation, grid
draft merging and all-or-nothing line item commits.

============================================================================
"""

from catalog_wizard.wizard_models import (
    PARENT_KIND_TABLE,
    CommitBatch,
    CommitResult,
    ConfigColumn,
    ErrorDetail,
    FilterField,
    ModalOutcome,
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
)

from catalog_wizard.wizard_config import (
    WizardConfig,
    WizardConfigurationError,
    get_wizard_config,
    reset_wizard_config,
)

from catalog_wizard.catalog_engine import (
    CatalogEngine,
    apply_filter,
    fetch_and_join,
    sort_by,
)

from catalog_wizard.collaborators import (
    CatalogDataSource,
    ConfirmationModal,
    Navigator,
    Notifier,
    PageReference,
    RecordService,
)

from catalog_wizard.wizard_controller import WizardController

from catalog_wizard.pricebook_flow import (
    PricebookResolutionFlow,
    PricebookResolutionResult,
    ResolutionOutcome,
)

__all__ = [
    # Models
    "PARENT_KIND_TABLE",
    "CommitBatch",
    "CommitResult",
    "ConfigColumn",
    "ErrorDetail",
    "FilterField",
    "ModalOutcome",
    "OperationResult",
    "ParentKind",
    "RecordOperationError",
    "SelectionEntry",
    "SortDirection",
    "ToastMode",
    "ToastSeverity",
    "WizardErrorCode",
    "WizardPhase",
    "WizardStateError",
    # Configuration
    "WizardConfig",
    "WizardConfigurationError",
    "get_wizard_config",
    "reset_wizard_config",
    # Catalog Engine
    "CatalogEngine",
    "apply_filter",
    "fetch_and_join",
    "sort_by",
    # Collaborators
    "CatalogDataSource",
    "ConfirmationModal",
    "Navigator",
    "Notifier",
    "PageReference",
    "RecordService",
    # Workflows
    "WizardController",
    "PricebookResolutionFlow",
    "PricebookResolutionResult",
    "ResolutionOutcome",
]
