"""
============================================================================
Catalog Wizard - Prometheus Metrics
============================================================================

Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- catalog_wizard_commits_total: Commit attempts by parent kind and outcome
- catalog_wizard_line_items_created_total: Line items kept after a commit
- catalog_wizard_rollback_deletions_total: Compensating deletions by outcome
- catalog_wizard_pricebook_resolutions_total: Price list flow outcomes

Recording helpers never raise; a metrics failure is logged and ignored.

============================================================================
"""

import logging
from typing import Optional

from prometheus_client import Counter

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

COMMITS_TOTAL = Counter(
    "catalog_wizard_commits_total",
    "Total number of line item commit attempts",
    ["parent_kind", "outcome"]
)

LINE_ITEMS_CREATED = Counter(
    "catalog_wizard_line_items_created_total",
    "Total number of line items created by successful commits",
    ["parent_kind"]
)

ROLLBACK_DELETIONS = Counter(
    "catalog_wizard_rollback_deletions_total",
    "Total number of compensating deletions issued after a failed commit",
    ["outcome"]
)

PRICEBOOK_RESOLUTIONS = Counter(
    "catalog_wizard_pricebook_resolutions_total",
    "Total number of price list resolutions by outcome",
    ["outcome"]
)


# Outcome label values
OUTCOME_SUCCESS = "success"
OUTCOME_INVALID = "invalid"
OUTCOME_ROLLED_BACK = "rolled_back"
OUTCOME_DELETED = "deleted"
OUTCOME_ALREADY_DELETED = "already_deleted"
OUTCOME_FAILED = "failed"


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_commit(
    parent_kind: str,
    outcome: str,
    line_items: int = 0,
    correlation_id: Optional[str] = None
) -> None:
    """
    Record one commit attempt.

    Args:
        parent_kind: Parent record kind (e.g. "Order")
        outcome: success | invalid | rolled_back
        line_items: Number of line items kept (success only)
        correlation_id: Optional tracking ID
    """
    try:
        COMMITS_TOTAL.labels(parent_kind=parent_kind, outcome=outcome).inc()
        if line_items:
            LINE_ITEMS_CREATED.labels(parent_kind=parent_kind).inc(line_items)
        logger.debug(
            "Metric: commit | parent_kind=%s | outcome=%s | line_items=%s | "
            "correlation_id=%s",
            parent_kind, outcome, line_items, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record commit metric | error=%s",
            str(e)
        )


def record_rollback_deletion(outcome: str, correlation_id: Optional[str] = None) -> None:
    """Record one compensating deletion (deleted | already_deleted | failed)."""
    try:
        ROLLBACK_DELETIONS.labels(outcome=outcome).inc()
        logger.debug(
            "Metric: rollback_deletion | outcome=%s | correlation_id=%s",
            outcome, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-002] Failed to record rollback metric | error=%s",
            str(e)
        )


def record_pricebook_resolution(outcome: str, correlation_id: Optional[str] = None) -> None:
    try:
        PRICEBOOK_RESOLUTIONS.labels(outcome=outcome).inc()
        logger.debug(
            "Metric: pricebook_resolution | outcome=%s | correlation_id=%s",
            outcome, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-003] Failed to record pricebook metric | error=%s",
            str(e)
        )


__all__ = [
    "COMMITS_TOTAL",
    "LINE_ITEMS_CREATED",
    "ROLLBACK_DELETIONS",
    "PRICEBOOK_RESOLUTIONS",
    "OUTCOME_SUCCESS",
    "OUTCOME_INVALID",
    "OUTCOME_ROLLED_BACK",
    "OUTCOME_DELETED",
    "OUTCOME_ALREADY_DELETED",
    "OUTCOME_FAILED",
    "record_commit",
    "record_rollback_deletion",
    "record_pricebook_resolution",
]
