"""Unified diffs and change stats between two post bodies"""

import difflib


def diff_summary(old: str, new: str) -> dict[str, int]:
    """Return added/deleted/unchanged line counts."""
    matcher = difflib.SequenceMatcher(None, old.splitlines(), new.splitlines())
    stats = {"added": 0, "deleted": 0, "unchanged": 0}

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            stats["unchanged"] += i2 - i1
        if tag in ("replace", "delete"):
            stats["deleted"] += i2 - i1
        if tag in ("replace", "insert"):
            stats["added"] += j2 - j1

    return stats


def unified_diff(
    old: str,
    new: str,
    from_label: str = "a",
    to_label: str = "b",
    context: int = 3,
    ) -> list[str]:
    """Return unified diff lines comparing old to new; empty if identical.

    Lines keep their newlines, so join with '' for display.
    """
    return list(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=from_label,
        tofile=to_label,
        n=context,
    ))
