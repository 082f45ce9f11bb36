"""Data models: dataset records, tool arguments, and enums."""

from .enums import ComplianceFramework, DataSource, ErrorKind, Priority, SecurityTier
from .schemas import Category, ComplianceCrossReference, Requirement

__all__ = [
    "Category",
    "ComplianceCrossReference",
    "ComplianceFramework",
    "DataSource",
    "ErrorKind",
    "Priority",
    "Requirement",
    "SecurityTier",
]
