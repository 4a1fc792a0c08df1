import pytest

from core.errors import ErrorKind, ParseError
from core.intent import Intent
from models.expense import ExtractedExpense
from models.routing import RoutingReasoningOutput
from services.structured_output import extract_structured, find_json_object, parse_json_object


def test_object_is_found_inside_prose():
    text = 'Sure! Here is the decision: {"detected_intent": "add_expense", "confidence": 0.9} Hope it helps.'
    result = extract_structured(text, RoutingReasoningOutput)
    assert result.detected_intent is Intent.ADD_EXPENSE
    assert result.confidence == 0.9


def test_fenced_json_block():
    text = '```json\n{"detected_intent": "get_insights", "next_steps": null}\n```'
    result = extract_structured(text, RoutingReasoningOutput)
    assert result.detected_intent is Intent.GET_INSIGHTS
    assert result.next_steps == []


def test_nested_objects_are_kept_whole():
    text = 'x {"a": {"b": {"c": 1}}, "d": 2} y {"e": 3}'
    assert parse_json_object(text) == {"a": {"b": {"c": 1}}, "d": 2}


def test_braces_inside_strings_are_ignored():
    text = '{"reasoning": "user typed } and {", "detected_intent": "unknown"}'
    result = extract_structured(text, RoutingReasoningOutput)
    assert result.reasoning == "user typed } and {"


def test_unbalanced_brace_skips_to_next_object():
    assert find_json_object('{ oops and then {"a": 1}') == '{"a": 1}'


@pytest.mark.parametrize(
    "text",
    [
        "",
        "I could not decide.",
        "[1, 2, 3]",
        "{not json at all}",
        '{"detected_intent": "add_expense"',
    ],
)
def test_unusable_text_raises_parse_error(text):
    with pytest.raises(ParseError) as exc:
        extract_structured(text, RoutingReasoningOutput)
    assert exc.value.kind is ErrorKind.PARSE


def test_schema_mismatch_raises_parse_error():
    with pytest.raises(ParseError, match="RoutingReasoningOutput"):
        extract_structured('{"detected_intent": "buy_stuff"}', RoutingReasoningOutput)


def test_expense_fields_are_normalised():
    text = '{"amount": 50, "currency": "usd", "date": "15 March 2024", "confidence": 1.4}'
    expense = extract_structured(text, ExtractedExpense)
    assert expense.amount == 50.0
    assert expense.currency == "USD"
    assert expense.date == "2024-03-15"
    assert expense.confidence == 1.0


def test_unparseable_expense_date_is_unknown():
    expense = extract_structured('{"amount": 10, "date": "whenever"}', ExtractedExpense)
    assert expense.date is None


def test_negative_amount_is_rejected():
    with pytest.raises(ParseError):
        extract_structured('{"amount": -5}', ExtractedExpense)


@pytest.mark.parametrize("text", ['{"amount": 10}', '{"amount": 10, "currency": null}', '{"amount": 10, "currency": " "}'])
def test_unstated_expense_currency_is_none(text):
    assert extract_structured(text, ExtractedExpense).currency is None
