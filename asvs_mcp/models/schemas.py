"""
Dataset records.  Loaded once at startup and never mutated afterwards;
enrichment produces new objects via ``model_copy`` before indexing.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ComplianceFramework

_FRAMEWORK_KEYS = {f.value for f in ComplianceFramework}


class Requirement(BaseModel):
    """A single ASVS verification requirement."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    category: str = ""
    subcategory: str = ""
    description: str = ""
    levels: list[int] = Field(min_length=1)
    cwe: list[str] = []   # weakness references, e.g. "CWE-521"
    nist: list[str] = []  # authentication-guideline sections
    compliance: dict[str, list[str]] = {}

    @field_validator("levels")
    @classmethod
    def _check_levels(cls, value: list[int]) -> list[int]:
        bad = [lvl for lvl in value if lvl not in (1, 2, 3)]
        if bad:
            raise ValueError(f"levels must be within 1-3, got {bad}")
        return sorted(set(value))

    @field_validator("compliance")
    @classmethod
    def _drop_empty_mappings(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        unknown = set(value) - _FRAMEWORK_KEYS
        if unknown:
            raise ValueError(f"unknown compliance frameworks: {sorted(unknown)}")
        return {key: list(refs) for key, refs in value.items() if refs}

    @property
    def min_level(self) -> int:
        return self.levels[0]

    def applies_to(self, level: int) -> bool:
        return level in self.levels

    def compliance_refs(self, framework: str) -> list[str]:
        return self.compliance.get(framework, [])


class Category(BaseModel):
    """A named chapter owning an ordered list of requirements."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    requirements: list[Requirement] = []


class ComplianceCrossReference(BaseModel):
    """
    A control from a second taxonomy (e.g. the HIPAA Security Rule)
    pointing at zero or more ASVS requirement ids.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    reference: str
    description: str = ""
    requirement_type: str = ""
    requirement_ids: list[str] = []
