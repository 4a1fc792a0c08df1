# core/intent.py
from enum import Enum
from typing import NoReturn


class Intent(str, Enum):
    """
    The classified purpose of a user request.
    """

    ADD_EXPENSE = "add_expense"
    QUERY_EXPENSES = "query_expenses"
    SPLIT_EXPENSE = "split_expense"
    GET_INSIGHTS = "get_insights"
    UNKNOWN = "unknown"


class Modality(str, Enum):
    """
    The channel the input arrived on.
    """

    VOICE = "voice"
    IMAGE = "image"
    TEXT = "text"
    SMS = "sms"


class InputType(str, Enum):
    """
    What the caller declares. AUTO is resolved to a Modality.
    """

    AUTO = "auto"
    VOICE = "voice"
    IMAGE = "image"
    TEXT = "text"
    SMS = "sms"


class Processor(str, Enum):
    """
    Downstream handlers a routing decision can name.
    """

    VOICE = "voice-agent"
    OCR = "ocr-agent"
    AUTO_CLASSIFIER = "auto-classifier-agent"
    SMS_PARSER = "sms-parser"
    QUERY = "api/expenses"
    SPLIT_SETTLEMENT = "split-settlement-agent"
    INSIGHTS = "insights-agent"
    MANUAL_REVIEW = "manual-review"

    @property
    def endpoint(self) -> str:
        if self.value.startswith("api/"):
            return f"/{self.value}"
        return f"/api/{self.value}"


def _unreachable(value: object) -> NoReturn:
    raise AssertionError(f"Unhandled value: {value!r}")


def resolve_modality(
    input_type: InputType,
    *,
    has_audio: bool,
    has_image: bool,
    has_sms: bool,
) -> Modality:
    """
    Total over every InputType. AUTO picks audio, then image, then sms,
    then text.
    """
    if input_type is InputType.AUTO:
        if has_audio:
            return Modality.VOICE
        if has_image:
            return Modality.IMAGE
        if has_sms:
            return Modality.SMS
        return Modality.TEXT
    return Modality(input_type.value)


def route_for(intent: Intent, modality: Modality) -> Processor:
    """
    Fixed routing table. Only add_expense depends on the modality.
    """
    if intent is Intent.ADD_EXPENSE:
        if modality is Modality.VOICE:
            return Processor.VOICE
        if modality is Modality.IMAGE:
            return Processor.OCR
        if modality is Modality.TEXT:
            return Processor.AUTO_CLASSIFIER
        if modality is Modality.SMS:
            return Processor.SMS_PARSER
        _unreachable(modality)
    if intent is Intent.QUERY_EXPENSES:
        return Processor.QUERY
    if intent is Intent.SPLIT_EXPENSE:
        return Processor.SPLIT_SETTLEMENT
    if intent is Intent.GET_INSIGHTS:
        return Processor.INSIGHTS
    if intent is Intent.UNKNOWN:
        return Processor.MANUAL_REVIEW
    _unreachable(intent)


def requires_user_confirmation(intent: Intent) -> bool:
    return intent is Intent.UNKNOWN
