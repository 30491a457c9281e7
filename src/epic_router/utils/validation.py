"""
Input sanitization for work items entering the router.

Degraded input never aborts a routing decision, so these helpers clean and
clip rather than reject: control characters are removed, oversized fields are
truncated, and label collections are normalized.

Usage:
    from epic_router.utils.validation import clean_text, normalize_names

    title = clean_text(raw_title, MAX_TITLE_LENGTH)
    labels = normalize_names(raw_labels)
"""

import re
from typing import Any, Iterable, Optional


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_TITLE_LENGTH = 512
MAX_BODY_LENGTH = 65536  # GitHub's own issue body limit
MAX_NAME_LENGTH = 256
MAX_NAME_COUNT = 100

_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def strip_control_characters(text: str) -> str:
    """
    Remove ASCII control characters (except tab, newline, carriage return).

    Args:
        text: Input text.

    Returns:
        Text with control characters removed.
    """
    return _CONTROL_CHAR_RE.sub("", text)


def clean_text(value: Optional[Any], max_length: int) -> str:
    """
    Coerce a free-text field into a clean, bounded string.

    ``None`` becomes the empty string, non-strings are converted with
    ``str()``, and the result is truncated to ``max_length`` characters.

    Args:
        value: Raw field value.
        max_length: Maximum number of characters to keep.

    Returns:
        The cleaned string.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    text = strip_control_characters(text).strip()
    if len(text) > max_length:
        text = text[:max_length]
    return text


def normalize_names(values: Optional[Iterable[Any]]) -> tuple[str, ...]:
    """
    Normalize a label or assignee collection.

    Entries are stripped and clipped, empty ones dropped, and duplicates
    (case-insensitive) removed keeping the first spelling seen. At most
    ``MAX_NAME_COUNT`` entries survive.

    Args:
        values: Raw collection (list, tuple, set or None).

    Returns:
        Ordered tuple of unique names.
    """
    if not values:
        return ()
    if isinstance(values, str) or not isinstance(values, Iterable):
        values = [values]

    seen: set[str] = set()
    names: list[str] = []
    for raw in values:
        name = clean_text(raw, MAX_NAME_LENGTH)
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)
        names.append(name)
        if len(names) >= MAX_NAME_COUNT:
            break
    return tuple(names)


def coerce_issue_number(value: Any) -> int:
    """
    Best-effort conversion of an issue identifier to ``int``.

    Missing or unparseable identifiers map to ``-1`` so they still flow
    through the router as a degraded input.
    """
    if isinstance(value, bool):
        return -1
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = value.strip().lstrip("#")
        try:
            return int(candidate)
        except ValueError:
            return -1
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return -1
