"""Canonical ID factories for the trade journal.

ID Categories
-------------
1. Internal run IDs: UUID v4 strings (run_id).
2. External IDs: broker-assigned, opaque strings (execution ``external_id``).
3. Content-derived IDs: SHA256[:N] deterministic hashes (``trade_id``).
   Re-running the matcher on the same input must reproduce them exactly.
"""

from __future__ import annotations

import hashlib
import uuid


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for run identifiers."""
    return str(uuid.uuid4())


def content_hash(*parts: str, length: int = 16) -> str:
    """Generate a deterministic SHA256-based ID from content strings.

    Concatenates all *parts* with ``':'`` before hashing.

    Parameters
    ----------
    *parts:
        Strings to hash together.
    length:
        Number of hex characters to return (default 16).
    """
    raw = ":".join(parts)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]
