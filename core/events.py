# core/events.py
import asyncio
import inspect
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Protocol, Set

from pydantic import BaseModel, ConfigDict, Field

from core.context import ExecutionContext
from core.logs import get_logger

logger = get_logger("agent_events")


class AgentEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    agent_name: str
    data: Dict[str, Any] = Field(default_factory=dict)
    context: ExecutionContext
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventSink(Protocol):
    def emit(self, event: AgentEvent) -> None:
        ...


Listener = Callable[[AgentEvent], Any]


class EventBus:
    """
    Best-effort, in-process event emitter.

    Sync listeners run inline, coroutine listeners are scheduled as tasks
    so emit() never waits on them. Listener failures are logged only.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._pending: Set[asyncio.Task] = set()

    def on(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: AgentEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    self._schedule(result, event)
            except Exception:
                logger.exception(f"Event listener failed for {event.type}")

    def _schedule(self, awaitable, event: AgentEvent) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    f"Async event listener failed for {event.type}: {t.exception()}"
                )

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for scheduled listeners. Useful at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
