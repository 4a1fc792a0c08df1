# tests/conftest.py
import sys
from pathlib import Path

# ---------------------------------------------------------
# Ensure project root is on PYTHONPATH BEFORE app imports
# ---------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# ---------------------------------------------------------
# Now safe to import app + dependencies
# ---------------------------------------------------------
import pytest

from core.agent import AgentRunner
from core.context import ExecutionContext
from core.events import EventBus
from core.execution_log import InMemoryExecutionLog
from services.reasoning import ReasoningResult


class ScriptedReasoning:
    """
    Stands in for ReasoningClient. Each call pops the next scripted item:
    a string is returned as model text, an exception is raised.
    """

    def __init__(self, *script, model_name="gemini-1.5-flash"):
        self.script = list(script)
        self.model_name = model_name
        self.calls = []

    async def complete(self, system_instruction, prompt):
        self.calls.append({"system_instruction": system_instruction, "prompt": prompt})
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return ReasoningResult(
            text=item,
            input_tokens=120,
            output_tokens=40,
            model_name=self.model_name,
        )


@pytest.fixture
def context():
    return ExecutionContext.new("user-1", default_currency="INR")


@pytest.fixture
def log_sink():
    return InMemoryExecutionLog()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def emitted(event_bus):
    events = []
    event_bus.on(events.append)
    return events


@pytest.fixture
def make_runner(log_sink, event_bus):
    def _make(*script):
        reasoning = ScriptedReasoning(*script)
        return AgentRunner(reasoning, log_sink=log_sink, event_sink=event_bus), reasoning

    return _make
