# core/context.py
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExecutionContext(BaseModel):
    """
    Who is acting and which call this is.
    Built fresh by the caller for every inbound request and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    entity_id: Optional[str] = None
    session_id: str
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def new(
        cls,
        user_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        **metadata: Any,
    ) -> "ExecutionContext":
        """Fresh context with generated session and request ids."""
        return cls(
            user_id=user_id,
            entity_id=entity_id,
            session_id=str(uuid.uuid4()),
            metadata=metadata,
        )
