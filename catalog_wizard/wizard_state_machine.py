"""
============================================================================
Catalog Wizard - Phase State Machine
============================================================================

Traceability: All operations include correlation_id for audit

WIZARD PHASE STATE MACHINE:
    BROWSING → CONFIGURING (selection confirmed, grid shown)
    CONFIGURING → BROWSING (back to the catalog, selection kept)
    CONFIGURING → COMMITTED (every line item created)

    Terminal States: COMMITTED (no further transitions)

    A failed commit is not a transition: the wizard stays in CONFIGURING
    and the commit may be retried.

ERROR CODES:
    - CPQ-040: Invalid phase transition attempted

============================================================================
"""

from typing import Dict, FrozenSet, Optional
import logging

from catalog_wizard.wizard_models import WizardErrorCode, WizardPhase, WizardStateError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# VALID_TRANSITIONS Constant
# =============================================================================

VALID_TRANSITIONS: Dict[WizardPhase, FrozenSet[WizardPhase]] = {
    WizardPhase.BROWSING: frozenset({WizardPhase.CONFIGURING}),
    WizardPhase.CONFIGURING: frozenset({WizardPhase.BROWSING, WizardPhase.COMMITTED}),
    WizardPhase.COMMITTED: frozenset(),  # Terminal
}


# =============================================================================
# require_transition() Function
# =============================================================================

def require_transition(
    current: WizardPhase,
    target: WizardPhase,
    correlation_id: Optional[str] = None
) -> WizardPhase:
    """
    Return target if current → target is allowed, raise otherwise.

    Args:
        current: Phase the wizard is in
        target: Phase requested
        correlation_id: Optional correlation ID for audit logging

    Returns:
        target, so callers can assign it directly

    Raises:
        WizardStateError: CPQ-040 on an invalid transition
    """
    allowed = VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        valid_str = "/".join(sorted(p.value for p in allowed)) or "NONE (terminal state)"
        logger.error(
            f"[{WizardErrorCode.INVALID_TRANSITION}] "
            f"Invalid phase transition: {current.value} → {target.value}. "
            f"Valid transitions from {current.value}: {valid_str}. "
            f"correlation_id={correlation_id}"
        )
        raise WizardStateError(
            f"Cannot move from {current.value} to {target.value}",
            error_code=WizardErrorCode.INVALID_TRANSITION,
        )

    logger.info(
        f"[WIZARD-STATE] Phase transition | "
        f"{current.value} → {target.value} | "
        f"correlation_id={correlation_id}"
    )
    return target


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "VALID_TRANSITIONS",
    "require_transition",
]
