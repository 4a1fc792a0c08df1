"""
Date Resolver Service

- Converts relative date references in spoken or typed expenses into concrete dates
- Never guesses: an unrecognised reference resolves to None so the caller asks the user
"""

import re
from datetime import date, timedelta
from typing import Optional

from services.preparser import parse_word_number


def get_today() -> date:
    """Return today's date (system clock)."""
    return date.today()


# At most four number words before "days ago"
_DAYS_AGO_RE = re.compile(r"\b(\d+|(?:[a-z]+[\s-]){0,3}[a-z]+)\s+days?\s+ago\b")


def _days_ago(text: str) -> Optional[int]:
    m = _DAYS_AGO_RE.search(text)
    if not m:
        return None
    token = m.group(1)
    if token.isdigit():
        return int(token)
    # "two days ago", "a couple of" is not a number
    words = token.split()
    for start in range(len(words)):
        value = parse_word_number(" ".join(words[start:]))
        if value is not None:
            return int(value)
    return None


def resolve_offset(text: str) -> Optional[int]:
    """
    Number of days before today the reference points at, or None.
    Checked most specific first.
    """
    text = text.lower().strip()

    n = _days_ago(text)
    if n is not None:
        return n

    if "day before yesterday" in text:
        return 2

    if "yesterday" in text or re.search(r"\blast\s+night\b", text):
        return 1

    if re.search(r"\b(today|tonight|this morning)\b", text):
        return 0

    if re.search(r"\blast\s+week\b", text):
        return 7

    return None


def resolve_date_reference(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Resolve the first recognised relative reference in text to a date.
    Returns None for anything unrecognised.
    """
    offset = resolve_offset(text)
    if offset is None:
        return None
    today = today or get_today()
    return today - timedelta(days=offset)

