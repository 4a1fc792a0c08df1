# core/tool.py
"""
Named, schema-described callables an agent can use while reasoning.

Tools run locally and synchronously: pattern matching, date arithmetic and
table lookups. They never call the reasoning client.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Tuple, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from core.errors import InvalidToolInput


class ToolInput(BaseModel):
    """
    Base for tool input shapes. Types are checked strictly, unknown
    fields are ignored.
    """

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: Callable[[Any], Dict[str, Any]]

    @property
    def input_schema(self) -> Dict[str, Any]:
        schema = self.input_model.model_json_schema()
        return {
            "type": "object",
            "properties": schema.get("properties", {}),
            "required": schema.get("required", []),
        }

    def execute(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise InvalidToolInput(self.name, "input must be a mapping")
        try:
            parsed = self.input_model.model_validate(payload)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidToolInput(self.name, problems) from e
        return self.handler(parsed)


class ToolRegistry:
    """
    Ordered, fixed set of tools declared once at agent construction.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        ordered: Tuple[Tool, ...] = tuple(tools)
        names = [t.name for t in ordered]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tool names: {', '.join(duplicates)}")
        self._tools = ordered
        self._by_name = {t.name: t for t in ordered}

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._tools]

    def get(self, name: str) -> Tool:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Tool {name} not found") from None

    def invoke(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.get(name).execute(payload)

    def describe(self) -> List[Dict[str, str]]:
        return [{"name": t.name, "description": t.description} for t in self._tools]

    def render_for_prompt(self) -> str:
        """JSON listing of every tool and its input schema."""
        return json.dumps(
            [
                {
                    "name": t.name,
                    "description": t.description,
                    "input_schema": t.input_schema,
                }
                for t in self._tools
            ],
            indent=2,
        )
