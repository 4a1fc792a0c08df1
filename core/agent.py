# core/agent.py
"""
Shared execution lifecycle for every agent.

An agent is a definition (prompt builder, system instruction, output shape,
fallback, post-processing). AgentRunner drives one call through:

    prepare -> build prompt -> reason -> extract (or fall back) -> finalize
            -> log -> emit -> return

Exactly one ExecutionLogEntry is written per call. Failures are logged
before they propagate; events are emitted only on success.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Protocol, Type

from pydantic import BaseModel

from core.context import ExecutionContext
from core.errors import ErrorKind, ParseError, error_kind_of
from core.events import AgentEvent, EventSink
from core.execution_log import (
    ExecutionLogEntry,
    ExecutionLogSink,
    ExecutionStatus,
    LoggingExecutionLog,
)
from core.logs import get_logger
from core.tool import ToolRegistry
from services.pricing import calculate_cost
from services.reasoning import ReasoningClient, ReasoningResult
from services.structured_output import extract_structured
from services.utils import deep_serialize

logger = get_logger("agent_runner")


class AgentDefinition(Protocol):
    name: str
    description: str
    event_type: str
    system_instruction: str
    output_model: Type[BaseModel]
    tools: ToolRegistry

    async def prepare(self, request: BaseModel, context: ExecutionContext) -> Any:
        """Agent-specific pre-work: resolve inputs, run tools for hints."""

    def build_prompt(self, prepared: Any, context: ExecutionContext) -> str:
        ...

    def fallback(self, prepared: Any, context: ExecutionContext) -> BaseModel:
        """Deterministic output used when extraction fails. Must not raise."""

    def finalize(self, prepared: Any, parsed: BaseModel, context: ExecutionContext, *, fallback_used: bool) -> BaseModel:
        """Clamp, normalise and derive secondary fields."""

    def event_data(self, output: BaseModel) -> Dict[str, Any]:
        ...


def describe(agent: AgentDefinition) -> Dict[str, Any]:
    return {
        "name": agent.name,
        "description": agent.description,
        "tools": agent.tools.describe(),
    }


class AgentRunner:
    def __init__(
        self,
        reasoning: ReasoningClient,
        log_sink: Optional[ExecutionLogSink] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self.reasoning = reasoning
        self.log_sink = log_sink or LoggingExecutionLog()
        self.event_sink = event_sink

    async def run(self, agent: AgentDefinition, request: BaseModel, context: ExecutionContext) -> BaseModel:
        started = time.perf_counter()
        reasoning_result: Optional[ReasoningResult] = None
        fallback_used = False

        try:
            prepared = await agent.prepare(request, context)
            prompt = agent.build_prompt(prepared, context)

            reasoning_result = await self.reasoning.complete(agent.system_instruction, prompt)

            try:
                parsed = extract_structured(reasoning_result.text, agent.output_model)
            except ParseError as e:
                logger.warning(f"[{agent.name}] request_id={context.request_id} using fallback: {e}")
                parsed = agent.fallback(prepared, context)
                fallback_used = True

            output = agent.finalize(prepared, parsed, context, fallback_used=fallback_used)

        except asyncio.CancelledError:
            logger.warning(f"[{agent.name}] request_id={context.request_id} cancelled")
            await self._record(
                agent,
                request,
                context,
                started,
                status=ExecutionStatus.FAILURE,
                error="Request cancelled by caller",
                error_kind=ErrorKind.CANCELLATION,
                reasoning_result=reasoning_result,
            )
            raise
        except Exception as e:
            logger.error(f"[{agent.name}] request_id={context.request_id} failed: {type(e).__name__}: {e}")
            await self._record(
                agent,
                request,
                context,
                started,
                status=ExecutionStatus.FAILURE,
                error=str(e) or type(e).__name__,
                error_kind=error_kind_of(e),
                reasoning_result=reasoning_result,
            )
            raise

        await self._record(
            agent,
            request,
            context,
            started,
            status=ExecutionStatus.SUCCESS,
            output=output,
            reasoning_result=reasoning_result,
            fallback_used=fallback_used,
        )
        self._emit(agent, output, context)
        return output

    async def _record(
        self,
        agent: AgentDefinition,
        request: BaseModel,
        context: ExecutionContext,
        started: float,
        *,
        status: ExecutionStatus,
        output: Optional[BaseModel] = None,
        error: Optional[str] = None,
        error_kind: Optional[ErrorKind] = None,
        reasoning_result: Optional[ReasoningResult] = None,
        fallback_used: bool = False,
    ) -> None:
        tokens = cost = None
        if reasoning_result is not None:
            tokens = reasoning_result.total_tokens
            cost = calculate_cost(
                reasoning_result.model_name,
                reasoning_result.input_tokens,
                reasoning_result.output_tokens,
            )

        try:
            entry = ExecutionLogEntry(
                agent_name=agent.name,
                context=context,
                input=deep_serialize(request),
                output=deep_serialize(output) if output is not None else None,
                status=status,
                error=error,
                error_kind=error_kind,
                duration_ms=int((time.perf_counter() - started) * 1000),
                tokens_used=tokens,
                cost_usd=cost,
                tools_used=agent.tools.names,
                fallback_used=fallback_used,
            )
            await self.log_sink.write(entry)
        except Exception:
            # The sink failing must never mask the agent's own outcome
            logger.exception(f"[{agent.name}] failed to write execution log entry")

    def _emit(self, agent: AgentDefinition, output: BaseModel, context: ExecutionContext) -> None:
        if self.event_sink is None:
            return
        try:
            self.event_sink.emit(
                AgentEvent(
                    type=agent.event_type,
                    agent_name=agent.name,
                    data=agent.event_data(output),
                    context=context,
                )
            )
        except Exception:
            logger.exception(f"[{agent.name}] failed to emit {agent.event_type}")
