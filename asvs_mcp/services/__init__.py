"""Services: DataLoader, RateLimiter, AuditService."""

from asvs_mcp.services.audit_service import AuditService
from asvs_mcp.services.data_loader import LoadedDataset, load_dataset
from asvs_mcp.services.rate_limiter import SlidingWindowRateLimiter

__all__ = ["AuditService", "LoadedDataset", "load_dataset", "SlidingWindowRateLimiter"]
