from typing import Any, Dict, Optional

from pydantic import ValidationError

from agents.voice_agent import VoiceAgent
from core.agent import AgentRunner
from core.context import ExecutionContext
from core.errors import InvalidRequest
from core.intent import Processor
from executors.base import BaseProcessor
from models.voice import VoiceRequest
from services.runtime import get_runner
from services.utils import deep_serialize


class VoiceProcessor(BaseProcessor):
    """
    The voice-agent processor a routing decision can name.
    """

    name = Processor.VOICE.value

    def __init__(self, agent: Optional[VoiceAgent] = None, runner: Optional[AgentRunner] = None):
        self.agent = agent or VoiceAgent()
        self._runner = runner

    @property
    def runner(self) -> AgentRunner:
        return self._runner or get_runner()

    async def execute(self, request: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        try:
            voice_request = VoiceRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidRequest(f"Invalid voice request: {e.error_count()} error(s)") from e

        result = await self.runner.run(self.agent, voice_request, context)

        return {
            "type": "voice",
            "data": deep_serialize(result),
            "needs_clarification": list(result.needs_clarification),
        }
