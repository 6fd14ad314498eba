# taskchat/engine/normalize.py
from typing import Any


def normalize_title(title: Any) -> str:
    """Matching key for list and task titles: trimmed, lowercased, single-spaced."""
    if not title:
        return ""
    return " ".join(str(title).lower().strip().split())

