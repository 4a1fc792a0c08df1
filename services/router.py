# services/router.py
from typing import Optional

from agents.router_agent import router_agent
from core.agent import AgentRunner
from core.context import ExecutionContext
from models.routing import InputData, RouterDecision, RouterRequest
from services.runtime import get_runner


async def get_route(
    request: RouterRequest,
    context: Optional[ExecutionContext] = None,
    runner: Optional[AgentRunner] = None,
) -> RouterDecision:
    """
    Uses the Router Agent to pick the processor for one inbound request.
    The caller dispatches to decision.routed_to.
    """
    context = context or ExecutionContext.new(request.user_id, entity_id=request.entity_id)
    runner = runner or get_runner()
    return await runner.run(router_agent, request, context)


async def route_text(text: str, user_id: str, runner: Optional[AgentRunner] = None) -> RouterDecision:
    request = RouterRequest(input_data=InputData(text=text), user_id=user_id)
    return await get_route(request, runner=runner)
