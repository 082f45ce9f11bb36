"""
Priority Rules: deterministic HIGH / MEDIUM / LOW scoring.

Two scorers share one config:
  • recommendation priority, driven only by the owning category name
  • compliance-gap priority, driven by critical control references,
    the category name, and the levels the requirement applies to
"""

from __future__ import annotations

import logging

from asvs_mcp.engine.rules.rules_config import PriorityConfig
from asvs_mcp.models.enums import Priority
from asvs_mcp.models.schemas import Requirement

logger = logging.getLogger(__name__)


def _contains_any(text: str, needles: list[str]) -> bool:
    return any(needle in text for needle in needles)


class PriorityRules:
    """Lookup-table heuristics for ordering recommendations and gaps."""

    def __init__(self, config: PriorityConfig | None = None):
        self.config = config or PriorityConfig()

    def recommendation_priority(self, category_name: str) -> Priority:
        """HIGH for the generally high-priority chapters, else MEDIUM."""
        if _contains_any(category_name, self.config.general_high_priority_categories):
            return Priority.HIGH
        return Priority.MEDIUM

    def is_critical_reference(self, requirement: Requirement, framework: str) -> bool:
        patterns = self.config.critical_compliance_patterns.get(framework, [])
        refs = requirement.compliance_refs(framework)
        return any(pattern in ref for pattern in patterns for ref in refs)

    def gap_priority(self, requirement: Requirement, framework: str) -> Priority:
        """
        HIGH   critical control reference, or high-priority category at L1
        MEDIUM high-priority category, or applies at L2
        LOW    everything else
        """
        high_category = _contains_any(
            requirement.category, self.config.compliance_high_priority_categories
        )

        if self.is_critical_reference(requirement, framework) or (
            high_category and requirement.applies_to(1)
        ):
            return Priority.HIGH
        if high_category or requirement.applies_to(2):
            return Priority.MEDIUM
        return Priority.LOW
