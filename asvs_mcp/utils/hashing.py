"""
Hashing utilities for dataset integrity verification.
"""

from __future__ import annotations

import hashlib
import hmac


def sha256_hash(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of the given content."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def matches_digest(content: str | bytes, expected_hex: str) -> bool:
    """Constant-time comparison of ``content``'s SHA-256 with ``expected_hex``."""
    return hmac.compare_digest(sha256_hash(content), expected_hex.strip().lower())
