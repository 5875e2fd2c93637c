"""Utilities for keeping oracle payloads readable and short in logs."""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def sanitize_for_logging(value: Optional[str], max_length: int = 200) -> str:
    """
    Collapse whitespace and truncate a value before it is logged.

    Oracle responses can be long, multi-line and echo row data, so only a
    single-line prefix ever reaches the log.

    Args:
        value: Value to sanitize
        max_length: Maximum number of characters kept

    Returns:
        Single-line string of at most max_length characters plus an ellipsis
    """
    if value is None:
        return ""

    collapsed = _WHITESPACE.sub(" ", str(value)).strip()
    if len(collapsed) <= max_length:
        return collapsed
    return f"{collapsed[:max_length]}... ({len(collapsed)} chars)"
