# order_hub/services/search.py
"""Free-text search helpers shared by the list queries."""
from __future__ import annotations
from typing import Optional

LIKE_ESCAPE = "\\"


def contains_pattern(search: Optional[str]) -> Optional[str]:
    """
    ILIKE pattern matching search anywhere in a column, or None for a blank
    search. %, _ and the escape character are matched literally; use with
    escape=LIKE_ESCAPE.
    """
    text = (search or "").strip()
    if not text:
        return None
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"
