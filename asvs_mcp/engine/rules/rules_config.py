"""
Rules Config: the fixed lookup tables behind priority scoring.

These are configuration data, not derived values.  They are exposed as
named constants and wrapped in a pydantic model so callers (and tests)
can inspect or override them.
"""

from __future__ import annotations

from pydantic import BaseModel

# Category-name substrings that make a recommendation HIGH priority.
GENERAL_HIGH_PRIORITY_CATEGORIES: tuple[str, ...] = (
    "Authentication",
    "Access Control",
    "Session Management",
    "Validation, Sanitization and Encoding",
)

# Category-name substrings that raise compliance-gap priority.
COMPLIANCE_HIGH_PRIORITY_CATEGORIES: tuple[str, ...] = (
    "Authentication",
    "Access Control",
    "Data Protection",
    "Communication",
)

# Per-framework control references that always make a gap HIGH.
CRITICAL_COMPLIANCE_PATTERNS: dict[str, tuple[str, ...]] = {
    "pci_dss": ("3.2", "3.4", "4.1", "8.2"),
    "hipaa": ("164.312(a)(1)", "164.312(e)(1)", "164.308(a)(4)"),
    "gdpr": ("Article 32",),
    "sox": ("IT General Controls",),
    "iso27001": ("A.9.4", "A.10.1", "A.13.1"),
}


class PriorityConfig(BaseModel):
    """Priority rule configuration."""
    general_high_priority_categories: list[str] = list(GENERAL_HIGH_PRIORITY_CATEGORIES)
    compliance_high_priority_categories: list[str] = list(COMPLIANCE_HIGH_PRIORITY_CATEGORIES)
    critical_compliance_patterns: dict[str, list[str]] = {
        key: list(patterns) for key, patterns in CRITICAL_COMPLIANCE_PATTERNS.items()
    }
