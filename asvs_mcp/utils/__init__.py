from .logger import setup_logging
from .hashing import matches_digest, sha256_hash
from .sanitize import sanitize_for_log, strip_control_chars

__all__ = ["setup_logging", "sha256_hash", "matches_digest", "sanitize_for_log", "strip_control_chars"]
