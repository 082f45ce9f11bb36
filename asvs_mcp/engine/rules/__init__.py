from .priority_rules import PriorityRules
from .rules_config import (
    COMPLIANCE_HIGH_PRIORITY_CATEGORIES,
    CRITICAL_COMPLIANCE_PATTERNS,
    GENERAL_HIGH_PRIORITY_CATEGORIES,
    PriorityConfig,
)

__all__ = [
    "COMPLIANCE_HIGH_PRIORITY_CATEGORIES",
    "CRITICAL_COMPLIANCE_PATTERNS",
    "GENERAL_HIGH_PRIORITY_CATEGORIES",
    "PriorityConfig",
    "PriorityRules",
]
