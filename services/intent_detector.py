# FILE: services/intent_detector.py
"""
Keyword intent heuristic.

Rules are a precedence list, not independent scores: the first rule that
applies decides the intent and its confidence.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from core.intent import Intent, Modality
from services.preparser import extract_amount

EXPENSE_KEYWORDS = ["spent", "paid", "bought", "expense", "cost", "rupees", "rs", "inr", "₹", "$"]
QUERY_KEYWORDS = ["how much", "total", "show me", "list", "what did i", "my expenses"]
SPLIT_KEYWORDS = ["split", "share", "divide", "group expense"]
INSIGHT_KEYWORDS = ["suggest", "recommend", "insight", "insights", "analyze", "analyse", "optimize"]

IMAGE_CONFIDENCE = 0.9
EXPENSE_CONFIDENCE = 0.85
SPLIT_CONFIDENCE = 0.8
QUERY_CONFIDENCE = 0.75
INSIGHT_CONFIDENCE = 0.7
UNKNOWN_CONFIDENCE = 0.5


def _keyword_pattern(keyword: str) -> re.Pattern:
    # Symbols match anywhere, words and phrases only from a word start
    if not re.search(r"\w", keyword):
        return re.compile(re.escape(keyword))
    return re.compile(rf"(?<!\w){re.escape(keyword)}")


def _compile(keywords: Iterable[str]):
    return [_keyword_pattern(kw) for kw in keywords]


_EXPENSE = _compile(EXPENSE_KEYWORDS)
_QUERY = _compile(QUERY_KEYWORDS)
_SPLIT = _compile(SPLIT_KEYWORDS)
_INSIGHT = _compile(INSIGHT_KEYWORDS)


def _any(patterns, text: str) -> bool:
    return any(p.search(text) for p in patterns)


@dataclass(frozen=True)
class IntentDetection:
    intent: Intent
    confidence: float
    extracted_amount: Optional[float]
    has_expense_keyword: bool
    has_query_keyword: bool
    has_split_keyword: bool
    has_insight_keyword: bool

    def as_dict(self) -> dict:
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "extracted_amount": self.extracted_amount,
            "has_expense_keyword": self.has_expense_keyword,
            "has_query_keyword": self.has_query_keyword,
            "has_split_keyword": self.has_split_keyword,
            "has_insight_keyword": self.has_insight_keyword,
        }


def detect_intent(text: str, modality: Optional[Modality] = None) -> IntentDetection:
    lowered = (text or "").lower()

    has_expense = _any(_EXPENSE, lowered)
    has_query = _any(_QUERY, lowered)
    has_split = _any(_SPLIT, lowered)
    has_insight = _any(_INSIGHT, lowered)

    if modality is Modality.IMAGE:
        intent, confidence = Intent.ADD_EXPENSE, IMAGE_CONFIDENCE
    elif has_expense and not has_query:
        intent, confidence = Intent.ADD_EXPENSE, EXPENSE_CONFIDENCE
    elif has_split:
        intent, confidence = Intent.SPLIT_EXPENSE, SPLIT_CONFIDENCE
    elif has_query:
        intent, confidence = Intent.QUERY_EXPENSES, QUERY_CONFIDENCE
    elif has_insight:
        intent, confidence = Intent.GET_INSIGHTS, INSIGHT_CONFIDENCE
    else:
        intent, confidence = Intent.UNKNOWN, UNKNOWN_CONFIDENCE

    return IntentDetection(
        intent=intent,
        confidence=confidence,
        extracted_amount=extract_amount(text or ""),
        has_expense_keyword=has_expense,
        has_query_keyword=has_query,
        has_split_keyword=has_split,
        has_insight_keyword=has_insight,
    )
