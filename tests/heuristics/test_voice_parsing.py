from datetime import date

import pytest

from agents.expense_tools import PARSE_NATURAL_LANGUAGE
from agents.voice_agent import clarification_needed, derive_intent
from models.voice import VoiceIntent
from services import date_resolver


@pytest.mark.parametrize(
    "transcript, amount, intent",
    [
        ("How much did I spend on food", 200.0, VoiceIntent.QUERY),
        ("show me last week's expenses", None, VoiceIntent.QUERY),
        ("split this with Ana", 300.0, VoiceIntent.SPLIT),
        ("hello there", None, VoiceIntent.OTHER),
        ("spent fifty on chai", 50.0, VoiceIntent.ADD_EXPENSE),
    ],
)
def test_voice_intent(transcript, amount, intent):
    assert derive_intent(transcript, amount) is intent


def test_clarification_checks_are_independent():
    assert clarification_needed(None, 0.9) == ["amount"]
    assert clarification_needed(100.0, 0.4) == ["review_all_fields"]
    assert clarification_needed(None, 0.3) == ["amount", "review_all_fields"]


def test_threshold_is_strict():
    assert clarification_needed(100.0, 0.7) == []


def test_parse_natural_language_tool(monkeypatch):
    monkeypatch.setattr(date_resolver, "get_today", lambda: date(2024, 3, 15))

    result = PARSE_NATURAL_LANGUAGE.execute(
        {"text": "Paid two hundred for Uber last night", "user_currency": "usd"}
    )

    assert result == {
        "amount": 200.0,
        "merchant": "Uber",
        "date": "2024-03-14",
        "currency": "USD",
        "confidence": 0.85,
    }


def test_parse_natural_language_without_amount():
    result = PARSE_NATURAL_LANGUAGE.execute({"text": "I bought something nice"})
    assert result["amount"] is None
    assert result["currency"] == "INR"
    assert result["confidence"] == 0.5


def test_spoken_chai_expense():
    result = PARSE_NATURAL_LANGUAGE.execute({"text": "I spent fifty rupees on chai at CCD", "user_currency": "INR"})
    assert result["amount"] == 50.0
    assert result["merchant"] == "CCD"
    assert result["currency"] == "INR"
    assert result["confidence"] >= 0.8
