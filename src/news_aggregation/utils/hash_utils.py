"""
Hash utilities for stable item identifiers.
"""

import hashlib
from typing import Optional

ITEM_ID_LENGTH = 16


def compute_sha256_hash(content: Optional[str]) -> Optional[str]:
    """Compute the SHA256 hex digest of a string.

    Args:
        content: Content to hash

    Returns:
        Hex digest or None for empty content
    """
    if not content:
        return None
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def compute_item_id(url: str) -> str:
    """Derive the item identifier from its canonical URL.

    The identifier depends on the URL only, so the same URL yields the same
    identifier across runs and processes.

    Args:
        url: Normalized absolute URL

    Returns:
        Hex identifier of ITEM_ID_LENGTH characters

    Raises:
        ValueError: If url is empty
    """
    digest = compute_sha256_hash(url)
    if digest is None:
        raise ValueError("Cannot derive an item id from an empty URL")
    return digest[:ITEM_ID_LENGTH]
