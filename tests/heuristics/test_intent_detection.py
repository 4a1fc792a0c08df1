import pytest

from core.intent import Intent, Modality
from services.intent_detector import detect_intent


@pytest.mark.parametrize(
    "text, intent, confidence",
    [
        ("I spent 500 rupees on lunch", Intent.ADD_EXPENSE, 0.85),
        ("Paid ₹120 for chai", Intent.ADD_EXPENSE, 0.85),
        ("Split the dinner bill with Rahul", Intent.SPLIT_EXPENSE, 0.8),
        ("How much did I spend on food?", Intent.QUERY_EXPENSES, 0.75),
        ("Group my expenses by category", Intent.QUERY_EXPENSES, 0.75),
        ("Suggest ways to cut my grocery bill", Intent.GET_INSIGHTS, 0.7),
        ("hello there", Intent.UNKNOWN, 0.5),
    ],
)
def test_keyword_precedence(text, intent, confidence):
    result = detect_intent(text)
    assert result.intent is intent
    assert result.confidence == confidence


def test_query_words_block_expense_classification():
    result = detect_intent("How much have I spent this month?")
    assert result.has_expense_keyword is True
    assert result.has_query_keyword is True
    assert result.intent is Intent.QUERY_EXPENSES


def test_split_beats_query_when_both_present():
    result = detect_intent("Show me how to split this with Ana")
    assert result.intent is Intent.SPLIT_EXPENSE


def test_image_is_always_an_expense():
    result = detect_intent("how much is this?", Modality.IMAGE)
    assert result.intent is Intent.ADD_EXPENSE
    assert result.confidence == 0.9


def test_keywords_match_from_word_start_only():
    # "rs" inside "first" is not an expense signal
    result = detect_intent("My first party")
    assert result.has_expense_keyword is False
    assert result.intent is Intent.UNKNOWN


def test_amount_is_reported_when_marked_with_currency():
    assert detect_intent("bought shoes for 2,499 rupees").extracted_amount == 2499.0
    assert detect_intent("bought 3 shoes").extracted_amount is None


def test_empty_text_is_unknown():
    result = detect_intent("")
    assert result.intent is Intent.UNKNOWN
    assert result.as_dict()["intent"] == "unknown"


@pytest.mark.parametrize(
    "text, intent",
    [
        ("Splitting the dinner bill with Rita", Intent.SPLIT_EXPENSE),
        ("We shared a cab home", Intent.SPLIT_EXPENSE),
        ("Any recommendations for my budget?", Intent.GET_INSIGHTS),
        ("Suggestions to save on food", Intent.GET_INSIGHTS),
        ("Listing of March purchases", Intent.QUERY_EXPENSES),
        ("Totals for March please", Intent.QUERY_EXPENSES),
        ("Expenses from the trip", Intent.ADD_EXPENSE),
    ],
)
def test_inflected_keywords_still_match(text, intent):
    assert detect_intent(text).intent is intent
