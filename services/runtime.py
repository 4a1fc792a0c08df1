# services/runtime.py
"""
Process-wide wiring: one event bus and one runner shared by every request.
Both are safe to share; per-request state lives in ExecutionContext.
"""

from functools import lru_cache

from core.agent import AgentRunner
from core.events import EventBus
from services.reasoning import ReasoningClient

event_bus = EventBus()


@lru_cache(maxsize=1)
def get_runner() -> AgentRunner:
    return AgentRunner(ReasoningClient(), event_sink=event_bus)
