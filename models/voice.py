# models/voice.py
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.expense import ExtractedExpense


class VoiceRequest(BaseModel):
    audio_url: str
    audio_format: str = "audio/webm"
    language: Optional[str] = None
    duration_seconds: Optional[float] = None
    user_id: str
    group_id: Optional[str] = None
    default_currency: Optional[str] = None


class TranscriptionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    language_detected: str
    # Provider ranking, best first, primary excluded
    alternative_transcriptions: List[str] = Field(default_factory=list)


class VoiceIntent(str, Enum):
    ADD_EXPENSE = "add_expense"
    QUERY = "query"
    SPLIT = "split"
    OTHER = "other"


class VoiceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    transcription: TranscriptionResult
    extracted_expense: ExtractedExpense
    intent: VoiceIntent
    needs_clarification: List[str] = Field(default_factory=list)
    fallback_used: bool = False
