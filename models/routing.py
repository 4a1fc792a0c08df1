# FILE: models/routing.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.intent import InputType, Intent, Modality, Processor


# -----------------------------
# Router Input
# -----------------------------
class InputData(BaseModel):
    text: Optional[str] = None
    audio_url: Optional[str] = None
    image_url: Optional[str] = None
    sms_text: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class RouterRequest(BaseModel):
    input_type: InputType = InputType.AUTO
    input_data: InputData = Field(default_factory=InputData)
    user_id: str
    entity_id: Optional[str] = None
    group_id: Optional[str] = None


# -----------------------------
# Reasoning output (Model -> Router)
# -----------------------------
class RoutingReasoningOutput(BaseModel):
    """
    What the model is asked to return. routed_to is advisory only:
    the routing table has the final word.
    """

    model_config = ConfigDict(extra="ignore")

    detected_intent: Intent
    routed_to: Optional[str] = None
    confidence: float = 0.5
    extracted_params: Dict[str, Any] = Field(default_factory=dict)
    next_steps: List[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("extracted_params", mode="before")
    @classmethod
    def params_default(cls, v):
        return v or {}

    @field_validator("next_steps", mode="before")
    @classmethod
    def steps_default(cls, v):
        return v or []


# -----------------------------
# Router Decision (Router -> caller)
# -----------------------------
class RouterDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected_intent: Intent
    routed_to: Processor
    modality: Modality
    confidence: float = Field(..., ge=0.0, le=1.0)
    extracted_params: Dict[str, Any] = Field(default_factory=dict)
    next_steps: List[str] = Field(default_factory=list)
    reasoning: str
    requires_user_confirmation: bool = False
    fallback_used: bool = False

    @property
    def endpoint(self) -> str:
        return self.routed_to.endpoint
