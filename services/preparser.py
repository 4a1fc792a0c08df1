# FILE: services/preparser.py
"""
Deterministic extraction helpers for expense text.

Pure functions only: no model calls, no I/O. Everything here can be tested
without any external dependency.
"""

import re
from typing import List, Optional, Tuple

# Numerals with optional thousands (or lakh-style) separators and up to two decimals
_NUM = r"\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?"

_CURRENCY_WORDS = r"rs\.?|rupees?|inr|usd|dollars?|bucks"
_PREFIX = rf"(?:₹|\$|(?<![a-z])(?:rs\.?|rupees?|inr|usd)(?![a-z]))"
_SUFFIX = rf"(?:₹|(?<![a-z])(?:{_CURRENCY_WORDS})(?![a-z]))"

_amount_re = re.compile(
    rf"{_PREFIX}\s*({_NUM})|(?<![\d.,])({_NUM})\s*{_SUFFIX}",
    re.IGNORECASE,
)

# "spent 250", "paid 1,200", "cost 80"
_verb_amount_re = re.compile(
    rf"\b(?:spent|paid|pay|cost|costs|costing)\s+(?:₹\s*|rs\.?\s*)?({_NUM})(?![\d])",
    re.IGNORECASE,
)

# Enhanced category keywords with better coverage
CATEGORY_HINTS = {
    "Food & Dining": ["food", "restaurant", "lunch", "dinner", "breakfast", "cafe", "chai", "coffee", "swiggy", "zomato"],
    "Transportation": ["uber", "ola", "taxi", "cab", "metro", "bus", "fuel", "petrol", "rapido"],
    "Shopping": ["shopping", "amazon", "flipkart", "bought", "purchased", "clothes"],
    "Groceries": ["grocery", "groceries", "dmart", "bigbasket", "blinkit", "zepto", "vegetables"],
    "Entertainment": ["movie", "netflix", "spotify", "concert", "show"],
    "Utilities": ["electricity", "water", "internet", "mobile", "recharge", "bill"],
}

KNOWN_MERCHANTS = [
    "Swiggy", "Zomato", "Uber", "Ola", "Rapido", "CCD", "Starbucks", "DMart",
    "Amazon", "Flipkart", "BigBasket", "Blinkit", "Zepto", "Netflix", "Spotify",
    "PhonePe", "Paytm",
]

_merchant_re = re.compile(
    r"\b(?:at|from|to|in)\s+([A-Z][A-Za-z0-9&']*(?:\s+[A-Z][A-Za-z0-9&']*)*)"
)

# -----------------------------
# Word numbers
# -----------------------------
_UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
_SCALES = {"hundred": 100, "thousand": 1000, "lakh": 100_000, "lakhs": 100_000, "crore": 10_000_000}
_NUMBER_WORDS = set(_UNITS) | set(_TENS) | set(_SCALES)

_MONEY_WORDS = {"rupee", "rupees", "rs", "inr", "bucks", "dollar", "dollars"}
_MONEY_VERBS = {"spent", "paid", "pay", "cost", "costs", "costing", "for"}


def parse_numeral(token: str) -> Optional[float]:
    """
    Strip currency markers and separators and parse as a number.
    parse_numeral(str(parse_numeral(x))) == parse_numeral(x).
    """
    if token is None:
        return None
    cleaned = re.sub(r"(?i)₹|\$|rs\.?|rupees?|inr|usd", "", str(token))
    cleaned = cleaned.replace(",", "").strip()
    try:
        return float(cleaned)
    except ValueError:
        return None


def extract_amount(text: str) -> Optional[float]:
    """
    First currency-marked amount ("₹1,200", "Rs. 50", "300 rupees").
    A bare number is not an amount; no match returns None.
    """
    m = _amount_re.search(text)
    if not m:
        return None
    return parse_numeral(m.group(1) or m.group(2))


def parse_word_number(phrase: str) -> Optional[float]:
    """
    "two hundred" -> 200, "twelve hundred" -> 1200, "one thousand five hundred" -> 1500.
    Returns None unless every word is part of the number.
    """
    words = [w for w in re.split(r"[\s-]+", phrase.lower().strip()) if w]
    if not words:
        return None

    total = 0
    current = 0
    seen_number = False
    for i, word in enumerate(words):
        if word == "and" and seen_number:
            continue
        if word == "a" and i + 1 < len(words) and words[i + 1] in _SCALES:
            current = 1
            continue
        if word in _UNITS:
            current += _UNITS[word]
        elif word in _TENS:
            current += _TENS[word]
        elif word in _SCALES:
            scale = _SCALES[word]
            if scale == 100:
                current = max(current, 1) * 100
            else:
                total += max(current, 1) * scale
                current = 0
        else:
            return None
        seen_number = True

    if not seen_number:
        return None
    return float(total + current)


def _word_number_runs(text: str) -> Tuple[List[Tuple[float, int, int]], List[str]]:
    """Runs of number words as (value, first index, last index), plus the tokens."""
    tokens = re.findall(r"[a-z]+", text.lower().replace("-", " "))
    runs = []
    i = 0
    while i < len(tokens):
        starts_run = tokens[i] in _NUMBER_WORDS or (
            tokens[i] == "a" and i + 1 < len(tokens) and tokens[i + 1] in _SCALES
        )
        if not starts_run:
            i += 1
            continue
        j = i
        while j + 1 < len(tokens) and (
            tokens[j + 1] in _NUMBER_WORDS
            or (tokens[j + 1] == "and" and j + 2 < len(tokens) and tokens[j + 2] in _NUMBER_WORDS)
        ):
            j += 1
        value = parse_word_number(" ".join(tokens[i : j + 1]))
        if value is not None:
            runs.append((value, i, j))
        i = j + 1
    return runs, tokens


def find_word_amount(text: str) -> Optional[float]:
    """
    Spoken amount. Prefers a number next to a currency word, then one after
    a spending verb, then the first number mentioned.
    """
    runs, tokens = _word_number_runs(text)
    if not runs:
        return None
    for value, start, end in runs:
        if end + 1 < len(tokens) and tokens[end + 1] in _MONEY_WORDS:
            return value
    for value, start, end in runs:
        if start > 0 and tokens[start - 1] in _MONEY_VERBS:
            return value
    return runs[0][0]


def extract_spoken_amount(text: str) -> Optional[float]:
    """
    Amount from a transcript. Numerals first; word numbers only when no
    numeral pattern matches.
    """
    amount = extract_amount(text)
    if amount is not None:
        return amount
    m = _verb_amount_re.search(text)
    if m:
        return parse_numeral(m.group(1))
    return find_word_amount(text)


def extract_merchant(text: str) -> Optional[str]:
    """
    Capitalised name after at/from/to/in, else a known merchant mentioned anywhere.
    """
    m = _merchant_re.search(text)
    if m:
        return m.group(1).strip()
    lowered = text.lower()
    for merchant in KNOWN_MERCHANTS:
        if re.search(rf"\b{re.escape(merchant.lower())}\b", lowered):
            return merchant
    return None


def suggest_category(text: str) -> Optional[str]:
    lowered = text.lower()
    for category, keywords in CATEGORY_HINTS.items():
        if any(re.search(rf"\b{re.escape(kw)}\b", lowered) for kw in keywords):
            return category
    return None
