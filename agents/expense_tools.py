# agents/expense_tools.py
"""
Local tools shared by the router and voice agents.
Each wraps a pure helper from services/ behind a typed input shape.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from config import DEFAULT_CURRENCY
from core.intent import Intent, Modality, requires_user_confirmation, route_for
from core.tool import Tool, ToolInput
from services.date_resolver import resolve_date_reference
from services.intent_detector import detect_intent
from services.preparser import extract_amount, extract_merchant, extract_spoken_amount, suggest_category


# -----------------------------
# detect_intent
# -----------------------------
class DetectIntentInput(ToolInput):
    input_text: str = Field(..., description="Text input to analyze")
    input_type: Optional[str] = Field(None, description="Type of input (voice, image, text, sms)")


def _detect_intent(args: DetectIntentInput) -> dict:
    try:
        modality = Modality(args.input_type) if args.input_type else None
    except ValueError:
        modality = None
    return detect_intent(args.input_text, modality).as_dict()


DETECT_INTENT = Tool(
    name="detect_intent",
    description="Analyze input and determine user intent",
    input_model=DetectIntentInput,
    handler=_detect_intent,
)


# -----------------------------
# extract_entities
# -----------------------------
class ExtractEntitiesInput(ToolInput):
    text: str = Field(..., description="Input text")


def _extract_entities(args: ExtractEntitiesInput) -> dict:
    resolved = resolve_date_reference(args.text)
    return {
        "amount": extract_amount(args.text),
        "date": resolved.isoformat() if resolved else None,
        "merchant_name": extract_merchant(args.text),
        "suggested_category": suggest_category(args.text),
        "raw_text": args.text,
    }


EXTRACT_ENTITIES = Tool(
    name="extract_entities",
    description="Extract key entities from input (merchant, amount, date, category)",
    input_model=ExtractEntitiesInput,
    handler=_extract_entities,
)


# -----------------------------
# route_to_agent
# -----------------------------
class RouteToAgentInput(ToolInput):
    intent: Intent = Field(..., strict=False, description="Detected user intent")
    input_type: Modality = Field(..., strict=False, description="Type of input")


def _route_to_agent(args: RouteToAgentInput) -> dict:
    processor = route_for(args.intent, args.input_type)
    return {
        "agent": processor.value,
        "endpoint": processor.endpoint,
        "requires_user_confirmation": requires_user_confirmation(args.intent),
    }


ROUTE_TO_AGENT = Tool(
    name="route_to_agent",
    description="Determine which agent or endpoint should handle the request",
    input_model=RouteToAgentInput,
    handler=_route_to_agent,
)


# -----------------------------
# parse_natural_language
# -----------------------------
class ParseNaturalLanguageInput(ToolInput):
    text: str = Field(..., description="Transcribed text from voice input")
    user_currency: Optional[str] = Field(None, description="User's default currency (e.g., INR, USD)")


def _parse_natural_language(args: ParseNaturalLanguageInput) -> dict:
    amount = extract_spoken_amount(args.text)
    resolved = resolve_date_reference(args.text)
    return {
        "amount": amount,
        "merchant": extract_merchant(args.text),
        "date": resolved.isoformat() if resolved else None,
        "currency": (args.user_currency or DEFAULT_CURRENCY).upper(),
        "confidence": 0.85 if amount is not None else 0.5,
    }


PARSE_NATURAL_LANGUAGE = Tool(
    name="parse_natural_language",
    description="Extract expense fields from natural language transcription",
    input_model=ParseNaturalLanguageInput,
    handler=_parse_natural_language,
)


# -----------------------------
# resolve_date_reference
# -----------------------------
class ResolveDateReferenceInput(ToolInput):
    reference: str = Field(..., description='Date reference like "yesterday", "last week", "3 days ago"')


def _resolve_date_reference(args: ResolveDateReferenceInput) -> dict:
    resolved = resolve_date_reference(args.reference)
    if resolved is None:
        return {"date": None, "timestamp": None}
    return {
        "date": resolved.isoformat(),
        "timestamp": datetime.combine(resolved, datetime.now().time()).isoformat(),
    }


RESOLVE_DATE_REFERENCE = Tool(
    name="resolve_date_reference",
    description="Convert relative date references to absolute dates",
    input_model=ResolveDateReferenceInput,
    handler=_resolve_date_reference,
)
