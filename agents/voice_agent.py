import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import (
    CLARIFICATION_THRESHOLD,
    DEFAULT_CURRENCY,
    VOICE_DEFAULT_CONFIDENCE,
    VOICE_FALLBACK_CONFIDENCE,
)
from core.context import ExecutionContext
from core.logs import get_logger
from core.tool import ToolRegistry
from agents.expense_tools import PARSE_NATURAL_LANGUAGE, RESOLVE_DATE_REFERENCE
from models.expense import ExtractedExpense
from models.voice import TranscriptionResult, VoiceIntent, VoiceRequest, VoiceResult
from services.transcription import DeepgramTranscriber, SpeechToText

logger = get_logger("voice_agent")

SYSTEM_PROMPT = """You are a voice expense parser for an Indian expense tracking app.

Your job is to extract expense details from natural language voice transcriptions.

Common patterns:
- "I spent fifty rupees on chai at CCD" -> amount: 50, description: "Chai", merchant: "CCD"
- "Paid two hundred for Uber last night" -> amount: 200, merchant: "Uber", date: yesterday
- "Bought groceries for twelve hundred at DMart" -> amount: 1200, description: "Groceries", merchant: "DMart"

EXTRACTION RULES:
1. Convert word numbers to digits ("fifty" -> 50, "hundred" -> 100)
2. Infer currency from context (default given in the message)
3. Use the resolved date from the hints for relative references; if none, date is null
4. Match merchants to known names (Swiggy, Zomato, Uber, CCD, etc.)
5. Extract description from context
6. If the amount is not stated, amount is null. Never guess 0.

Return ONLY a JSON object:
{
  "amount": number | null,
  "currency": "INR" | "USD" | ...,
  "description": string | null,
  "merchant_name": string | null,
  "category": string | null,
  "date": "YYYY-MM-DD" | null,
  "time": "HH:MM" | null,
  "confidence": 0.0-1.0
}"""


@dataclass(frozen=True)
class VoiceState:
    request: VoiceRequest
    transcription: TranscriptionResult
    currency: str
    parse_hint: Dict[str, Any]
    date_hint: Dict[str, Any]


def derive_intent(transcript: str, amount: Optional[float]) -> VoiceIntent:
    lower_text = transcript.lower()
    if "how much" in lower_text or "show me" in lower_text:
        return VoiceIntent.QUERY
    if "split" in lower_text:
        return VoiceIntent.SPLIT
    if amount is None:
        return VoiceIntent.OTHER
    return VoiceIntent.ADD_EXPENSE


def clarification_needed(amount: Optional[float], confidence: float) -> List[str]:
    """
    Independent checks: a missing amount and a low overall confidence can both apply.
    """
    needs = []
    if amount is None:
        needs.append("amount")
    if confidence < CLARIFICATION_THRESHOLD:
        needs.append("review_all_fields")
    return needs


class VoiceAgent:
    name = "voice_agent"
    description = "Transcribes voice input and extracts expense details"
    event_type = "voice.transcribed"
    system_instruction = SYSTEM_PROMPT
    output_model = ExtractedExpense

    def __init__(self, transcriber: Optional[SpeechToText] = None):
        self.tools = ToolRegistry([PARSE_NATURAL_LANGUAGE, RESOLVE_DATE_REFERENCE])
        self.transcriber = transcriber or DeepgramTranscriber()

    async def prepare(self, request: VoiceRequest, context: ExecutionContext) -> VoiceState:
        # Perform speech-to-text
        transcription = await self.transcriber.transcribe(
            request.audio_url,
            language=request.language,
            audio_format=request.audio_format,
        )

        currency = str(
            request.default_currency
            or context.metadata.get("default_currency")
            or DEFAULT_CURRENCY
        ).upper()

        parse_hint = self.tools.invoke(
            "parse_natural_language", {"text": transcription.text, "user_currency": currency}
        )
        date_hint = self.tools.invoke("resolve_date_reference", {"reference": transcription.text})

        return VoiceState(
            request=request,
            transcription=transcription,
            currency=currency,
            parse_hint=parse_hint,
            date_hint=date_hint,
        )

    def build_prompt(self, state: VoiceState, context: ExecutionContext) -> str:
        return (
            f'User said: "{state.transcription.text}"\n\n'
            f"Default currency: {state.currency}\n"
            f"parse_natural_language: {json.dumps(state.parse_hint)}\n"
            f"resolve_date_reference: {json.dumps(state.date_hint)}\n\n"
            f"Available tools:\n{self.tools.render_for_prompt()}\n\n"
            "Extract expense details in JSON format."
        )

    def fallback(self, state: VoiceState, context: ExecutionContext) -> ExtractedExpense:
        return ExtractedExpense(
            amount=None,
            currency=state.currency,
            description=state.transcription.text,
            confidence=VOICE_FALLBACK_CONFIDENCE,
        )

    def finalize(
        self,
        state: VoiceState,
        parsed: ExtractedExpense,
        context: ExecutionContext,
        *,
        fallback_used: bool,
    ) -> VoiceResult:
        updates: Dict[str, Any] = {}
        if not parsed.currency:
            updates["currency"] = state.currency
        if parsed.confidence is None:
            updates["confidence"] = VOICE_DEFAULT_CONFIDENCE
        expense = parsed.model_copy(update=updates) if updates else parsed

        overall = min(expense.confidence, state.transcription.confidence)
        needs = clarification_needed(expense.amount, overall)
        if needs:
            logger.info(f"Clarification needed: {needs} (overall confidence {overall:.2f})")

        return VoiceResult(
            transcription=state.transcription,
            extracted_expense=expense,
            intent=derive_intent(state.transcription.text, expense.amount),
            needs_clarification=needs,
            fallback_used=fallback_used,
        )

    def event_data(self, result: VoiceResult) -> Dict[str, Any]:
        return {
            "text": result.transcription.text,
            "confidence": result.transcription.confidence,
            "intent": result.intent.value,
        }
