from enum import Enum


class SecurityTier(str, Enum):
    CONSERVATIVE = "CONSERVATIVE"
    BALANCED = "BALANCED"
    GENEROUS = "GENEROUS"


class ComplianceFramework(str, Enum):
    PCI_DSS = "pci_dss"
    HIPAA = "hipaa"
    GDPR = "gdpr"
    SOX = "sox"
    ISO27001 = "iso27001"

    @property
    def display_name(self) -> str:
        return _FRAMEWORK_NAMES[self]


_FRAMEWORK_NAMES = {
    ComplianceFramework.PCI_DSS: "PCI DSS",
    ComplianceFramework.HIPAA: "HIPAA",
    ComplianceFramework.GDPR: "GDPR",
    ComplianceFramework.SOX: "SOX",
    ComplianceFramework.ISO27001: "ISO 27001",
}


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Sort key: HIGH sorts first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class DataSource(str, Enum):
    LOCAL = "local"
    FALLBACK = "fallback"


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
