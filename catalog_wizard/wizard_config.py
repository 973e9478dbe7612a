"""
============================================================================
Catalog Wizard - Configuration
============================================================================

Decimal Integrity: Optional price precision is a decimal.Decimal quantum

This module provides configuration management for the catalog wizard:
- Environment variable parsing with type safety (.env files honoured)
- Default values for optional configuration
- Validation with fail-closed behavior (CPQ-060)

ENVIRONMENT VARIABLES:
    - CATALOG_WIZARD_DEFAULT_SORT_FIELD: Initial sort column (default: Name)
    - CATALOG_WIZARD_SELECTION_ICON: Pill icon name (default: utility:checkout)
    - CATALOG_WIZARD_PRODUCT_PAGE: Product selection page API name
    - CATALOG_WIZARD_PRICE_PRECISION: Price quantum (default: unset, prices kept as fetched)
    - CATALOG_WIZARD_METRICS_ENABLED: Emit Prometheus counters (default: true)

ERROR CODES:
    - CPQ-060: Configuration invalid

============================================================================
"""

from decimal import Decimal, InvalidOperation
from typing import List, Optional
from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

from catalog_wizard.wizard_models import DEFAULT_SELECTION_ICON, WizardErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_SORT_FIELD = "Name"

DEFAULT_PRODUCT_PAGE = "rft_cc__Product_Filter"

# Prices pass through unquantized unless a quantum is configured
DEFAULT_PRICE_PRECISION: Optional[Decimal] = None

DEFAULT_METRICS_ENABLED = True


# =============================================================================
# Configuration Validation Exception
# =============================================================================

class WizardConfigurationError(Exception):
    """
    Exception raised when wizard configuration is invalid.

    Raised during startup, enforcing fail-closed behavior per CPQ-060.
    """

    def __init__(self, message: str, error_code: str = WizardErrorCode.CONFIG_INVALID):
        """
        Initialize configuration error.

        Args:
            message: Human-readable error message
            error_code: Wizard error code (default: CPQ-060)
        """
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# =============================================================================
# WizardConfig Class
# =============================================================================

@dataclass
class WizardConfig:
    """
    Catalog wizard configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - default_sort_field: Column the catalog is sorted by on first load
    - selection_icon: Icon shown on each selected product pill
    - product_page: Page the price list flow hands off to
    - price_precision: Optional quantum applied to joined prices (ROUND_HALF_EVEN)
    - metrics_enabled: Whether Prometheus counters are updated
    ============================================================================

    Input Constraints: price_precision, when set, must be positive
    Side Effects: Logs configuration on load
    """

    default_sort_field: str = DEFAULT_SORT_FIELD
    selection_icon: str = DEFAULT_SELECTION_ICON
    product_page: str = DEFAULT_PRODUCT_PAGE
    price_precision: Optional[Decimal] = DEFAULT_PRICE_PRECISION
    metrics_enabled: bool = DEFAULT_METRICS_ENABLED

    def __post_init__(self) -> None:
        if self.price_precision is not None and not isinstance(self.price_precision, Decimal):
            self.price_precision = Decimal(str(self.price_precision))

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            WizardConfigurationError: If any value is blank or out of range
        """
        errors: List[str] = []

        if not self.default_sort_field or not self.default_sort_field.strip():
            errors.append("CATALOG_WIZARD_DEFAULT_SORT_FIELD must be non-empty")

        if not self.product_page or not self.product_page.strip():
            errors.append("CATALOG_WIZARD_PRODUCT_PAGE must be non-empty")

        precision = self.price_precision
        if precision is not None and (not precision.is_finite() or precision <= Decimal("0")):
            errors.append(
                f"CATALOG_WIZARD_PRICE_PRECISION must be positive, got: {self.price_precision}"
            )

        if errors:
            error_msg = "Wizard configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{WizardErrorCode.CONFIG_INVALID}] {error_msg}")
            raise WizardConfigurationError(error_msg)

        logger.info(
            f"[WIZARD-CONFIG] Configuration validated | "
            f"default_sort_field={self.default_sort_field} | "
            f"product_page={self.product_page} | "
            f"price_precision={self.price_precision} | "
            f"metrics_enabled={self.metrics_enabled}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True, load_env_file: bool = True) -> "WizardConfig":
        """
        Load configuration from environment variables.

        Args:
            validate: Whether to validate configuration after loading
            load_env_file: Whether to read a .env file first (python-dotenv)

        Returns:
            WizardConfig instance with values from environment

        Raises:
            WizardConfigurationError: If validation fails (CPQ-060)
        """
        if load_env_file:
            load_dotenv()

        sort_field = os.environ.get(
            "CATALOG_WIZARD_DEFAULT_SORT_FIELD", DEFAULT_SORT_FIELD
        ).strip()
        selection_icon = os.environ.get(
            "CATALOG_WIZARD_SELECTION_ICON", DEFAULT_SELECTION_ICON
        ).strip() or DEFAULT_SELECTION_ICON
        product_page = os.environ.get(
            "CATALOG_WIZARD_PRODUCT_PAGE", DEFAULT_PRODUCT_PAGE
        ).strip()

        precision_str = os.environ.get("CATALOG_WIZARD_PRICE_PRECISION", "").strip()
        price_precision: Optional[Decimal] = DEFAULT_PRICE_PRECISION
        try:
            if precision_str:
                price_precision = Decimal(precision_str)
        except InvalidOperation:
            logger.warning(
                f"[WIZARD-CONFIG] Invalid CATALOG_WIZARD_PRICE_PRECISION value: "
                f"{precision_str}, using default: {DEFAULT_PRICE_PRECISION}"
            )
            price_precision = DEFAULT_PRICE_PRECISION

        metrics_str = os.environ.get("CATALOG_WIZARD_METRICS_ENABLED", "true").lower().strip()
        metrics_enabled = metrics_str in ("true", "1", "yes", "on")

        logger.info(
            f"[WIZARD-CONFIG] Loading configuration from environment | "
            f"CATALOG_WIZARD_DEFAULT_SORT_FIELD={sort_field} | "
            f"CATALOG_WIZARD_PRODUCT_PAGE={product_page} | "
            f"CATALOG_WIZARD_PRICE_PRECISION={price_precision} | "
            f"CATALOG_WIZARD_METRICS_ENABLED={metrics_enabled}"
        )

        config = cls(
            default_sort_field=sort_field,
            selection_icon=selection_icon,
            product_page=product_page,
            price_precision=price_precision,
            metrics_enabled=metrics_enabled,
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization/logging."""
        return {
            "default_sort_field": self.default_sort_field,
            "selection_icon": self.selection_icon,
            "product_page": self.product_page,
            "price_precision": str(self.price_precision) if self.price_precision is not None else None,
            "metrics_enabled": self.metrics_enabled,
        }


# =============================================================================
# Module-Level Configuration Instance
# =============================================================================

_config_instance: Optional[WizardConfig] = None


def get_wizard_config(validate: bool = True) -> WizardConfig:
    """
    Get the global wizard configuration instance.

    Loads from environment variables on first access.
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = WizardConfig.from_environment(validate=validate)

    return _config_instance


def reset_wizard_config() -> None:
    """Reset the global wizard configuration instance (used by tests)."""
    global _config_instance
    _config_instance = None
    logger.debug("[WIZARD-CONFIG] Configuration instance reset")


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "WizardConfig",
    "WizardConfigurationError",
    "DEFAULT_SORT_FIELD",
    "DEFAULT_PRODUCT_PAGE",
    "DEFAULT_PRICE_PRECISION",
    "DEFAULT_METRICS_ENABLED",
    "get_wizard_config",
    "reset_wizard_config",
]
