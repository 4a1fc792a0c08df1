import json
from dataclasses import dataclass
from typing import Any, Dict

from config import ROUTER_FALLBACK_CONFIDENCE
from core.context import ExecutionContext
from core.intent import (
    Intent,
    Modality,
    requires_user_confirmation,
    resolve_modality,
    route_for,
)
from core.logs import get_logger
from core.tool import ToolRegistry
from agents.expense_tools import DETECT_INTENT, EXTRACT_ENTITIES, ROUTE_TO_AGENT
from models.routing import RouterDecision, RouterRequest, RoutingReasoningOutput

logger = get_logger("router_agent")

FALLBACK_REASONING = "Fallback routing based on input type"
FALLBACK_NEXT_STEPS = ["Process input with specialized agent"]
PLACEHOLDER_TEXT = "Image or voice input"

SYSTEM_PROMPT = """You are an intelligent routing agent for an expense tracking system.

Your job is to:
1. Detect user intent from multi-modal input (voice, image, text, SMS)
2. Extract relevant entities (amount, merchant, date, category)
3. Route the request to the appropriate specialized agent

INTENTS:
- add_expense: User wants to record an expense
- query_expenses: User wants to see/search expenses
- split_expense: User wants to split an expense with others
- get_insights: User wants spending insights or recommendations
- unknown: Cannot determine intent

INTENT RULES (apply the first that matches):
1. Image input is always add_expense.
2. Expense words ("spent", "paid", "bought", "cost", rupees, ₹) without query words -> add_expense.
3. "split", "share", "divide" -> split_expense.
4. "how much", "show me", "list", "total" -> query_expenses.
5. "suggest", "recommend", "analyze" -> get_insights.
6. Otherwise unknown.

ROUTING LOGIC:
- Voice input -> voice-agent
- Image input -> ocr-agent
- SMS input -> sms-parser
- Text input with expense keywords -> auto-classifier-agent
- Query requests -> api/expenses
- Split requests -> split-settlement-agent
- Insights requests -> insights-agent
- Unknown -> manual-review

The user message includes heuristic hints computed locally. Use them, but
correct them when the text clearly says otherwise. Never invent an amount
or a date: use null when the input does not state one.

Return ONLY a JSON object:
{
  "detected_intent": "add_expense" | "query_expenses" | "split_expense" | "get_insights" | "unknown",
  "routed_to": "agent-name",
  "confidence": 0.0-1.0,
  "extracted_params": {
    "amount": number | null,
    "merchant_name": string | null,
    "date": "YYYY-MM-DD" | null,
    "category": string | null
  },
  "next_steps": ["step 1", "step 2"],
  "reasoning": "Why this routing decision was made"
}"""


@dataclass(frozen=True)
class RoutingState:
    request: RouterRequest
    modality: Modality
    input_text: str
    intent_hint: Dict[str, Any]
    entities_hint: Dict[str, Any]
    route_hint: Dict[str, Any]


def classify_modality(request: RouterRequest) -> Modality:
    data = request.input_data
    return resolve_modality(
        request.input_type,
        has_audio=bool(data.audio_url),
        has_image=bool(data.image_url),
        has_sms=bool(data.sms_text),
    )


def input_text_of(request: RouterRequest) -> str:
    data = request.input_data
    return data.text or data.sms_text or PLACEHOLDER_TEXT


class RouterAgent:
    name = "router"
    description = "Orchestrates multi-modal input routing to specialized agents"
    event_type = "routing.completed"
    system_instruction = SYSTEM_PROMPT
    output_model = RoutingReasoningOutput

    def __init__(self):
        self.tools = ToolRegistry([DETECT_INTENT, EXTRACT_ENTITIES, ROUTE_TO_AGENT])

    async def prepare(self, request: RouterRequest, context: ExecutionContext) -> RoutingState:
        modality = classify_modality(request)
        input_text = input_text_of(request)

        intent_hint = self.tools.invoke(
            "detect_intent", {"input_text": input_text, "input_type": modality.value}
        )
        entities_hint = self.tools.invoke("extract_entities", {"text": input_text})
        route_hint = self.tools.invoke(
            "route_to_agent", {"intent": intent_hint["intent"], "input_type": modality.value}
        )

        return RoutingState(
            request=request,
            modality=modality,
            input_text=input_text,
            intent_hint=intent_hint,
            entities_hint=entities_hint,
            route_hint=route_hint,
        )

    def build_prompt(self, state: RoutingState, context: ExecutionContext) -> str:
        request = state.request
        parts = [
            "Route this user input:",
            f"\nInput Type: {state.modality.value}",
            f'\nInput Text: "{state.input_text}"',
        ]

        if request.entity_id:
            parts.append(f"\nEntity ID: {request.entity_id} (business context)")

        if request.group_id:
            parts.append(f"\nGroup ID: {request.group_id} (group expense context)")

        if request.input_data.metadata:
            parts.append(f"\nMetadata: {json.dumps(request.input_data.metadata, default=str)}")

        parts.append(f"\nAvailable tools:\n{self.tools.render_for_prompt()}")
        parts.append("\nHeuristic hints:")
        parts.append(f"- detect_intent: {json.dumps(state.intent_hint)}")
        parts.append(f"- extract_entities: {json.dumps(state.entities_hint)}")
        parts.append(f"- route_to_agent: {json.dumps(state.route_hint)}")
        parts.append("\nReturn routing decision in JSON format.")

        return "\n".join(parts)

    def fallback(self, state: RoutingState, context: ExecutionContext) -> RoutingReasoningOutput:
        return RoutingReasoningOutput(
            detected_intent=Intent.ADD_EXPENSE,
            confidence=ROUTER_FALLBACK_CONFIDENCE,
            extracted_params={},
            next_steps=list(FALLBACK_NEXT_STEPS),
            reasoning=FALLBACK_REASONING,
        )

    def finalize(
        self,
        state: RoutingState,
        parsed: RoutingReasoningOutput,
        context: ExecutionContext,
        *,
        fallback_used: bool,
    ) -> RouterDecision:
        intent = parsed.detected_intent
        confidence = min(max(parsed.confidence, 0.0), 1.0)

        # Receipts are always expenses, whatever the model said
        if state.modality is Modality.IMAGE and intent is not Intent.ADD_EXPENSE:
            logger.info(f"Overriding intent {intent.value} -> add_expense for image input")
            intent = Intent.ADD_EXPENSE
        if state.modality is Modality.IMAGE:
            confidence = max(confidence, ROUTER_FALLBACK_CONFIDENCE)

        processor = route_for(intent, state.modality)
        if parsed.routed_to and parsed.routed_to != processor.value:
            logger.info(f"Model suggested {parsed.routed_to}, routing table chose {processor.value}")

        return RouterDecision(
            detected_intent=intent,
            routed_to=processor,
            modality=state.modality,
            confidence=confidence,
            extracted_params=parsed.extracted_params,
            next_steps=parsed.next_steps,
            reasoning=parsed.reasoning,
            requires_user_confirmation=requires_user_confirmation(intent),
            fallback_used=fallback_used,
        )

    def event_data(self, decision: RouterDecision) -> Dict[str, Any]:
        return {
            "intent": decision.detected_intent.value,
            "routed_to": decision.routed_to.value,
            "confidence": decision.confidence,
        }


# Router agent
router_agent = RouterAgent()
