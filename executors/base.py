from abc import ABC, abstractmethod
from typing import Any, Dict

from core.context import ExecutionContext


class BaseProcessor(ABC):
    """
    Base contract for all downstream processors.
    A processor is addressed by name, takes a plain request mapping and
    returns a plain result mapping. Failures are raised, never returned.
    No routing here.
    """

    name: str

    @abstractmethod
    async def execute(self, request: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        pass
