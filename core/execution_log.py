# core/execution_log.py
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from core.context import ExecutionContext
from core.errors import ErrorKind
from core.logs import get_logger


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class ExecutionLogEntry(BaseModel):
    """
    One record per agent invocation, success or failure.
    """

    model_config = ConfigDict(frozen=True)

    agent_name: str
    context: ExecutionContext
    input: Dict[str, Any]
    output: Optional[Dict[str, Any]] = None
    status: ExecutionStatus
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: int
    tokens_used: Optional[int] = None
    cost_usd: Optional[float] = None
    tools_used: List[str] = Field(default_factory=list)
    fallback_used: bool = False
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ExecutionLogSink(Protocol):
    async def write(self, entry: ExecutionLogEntry) -> None:
        ...


class LoggingExecutionLog:
    """
    Writes each entry as one JSON line on the execution_log logger.
    """

    def __init__(self, logger_name: str = "execution_log"):
        self.logger = get_logger(logger_name)

    async def write(self, entry: ExecutionLogEntry) -> None:
        self.logger.info(json.dumps(entry.model_dump(mode="json")))


class InMemoryExecutionLog:
    """Keeps entries in a list. Used by tests and local runs."""

    def __init__(self):
        self.entries: List[ExecutionLogEntry] = []

    async def write(self, entry: ExecutionLogEntry) -> None:
        self.entries.append(entry)

    def for_request(self, request_id: str) -> List[ExecutionLogEntry]:
        return [e for e in self.entries if e.context.request_id == request_id]
