"""SHA-256 fingerprints for post change detection"""

import hashlib
import json
from typing import Any


def sha256(content: str) -> str:
    """Return hex-encoded SHA-256 hash of content (64 chars, matches String(64) column)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def frontmatter_hash(frontmatter: dict[str, Any] | None) -> str:
    """Order-independent hash of a JSON-safe front-matter mapping."""
    return sha256(json.dumps(frontmatter or {}, sort_keys=True, ensure_ascii=False))
