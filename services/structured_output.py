# FILE: services/structured_output.py
"""
Pull a typed object out of free-form model text.

The first balanced {...} block is located (braces inside JSON strings are
ignored), decoded as JSON and validated against a pydantic model. Any
failure raises ParseError so the caller can fall back.
"""

import json
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import ParseError

T = TypeVar("T", bound=BaseModel)


def find_json_object(text: str) -> str:
    """
    Return the first balanced curly-brace substring of text.
    """
    if not text:
        raise ParseError("Empty response")

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from here; try the next opening brace
        start = text.find("{", start + 1)

    raise ParseError("No JSON object found")


def parse_json_object(text: str) -> Dict[str, Any]:
    candidate = find_json_object(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON object: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Top-level JSON value is not an object")
    return data


def extract_structured(text: str, model: Type[T]) -> T:
    """
    Parse the first JSON object in text into model.
    """
    data = parse_json_object(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Response does not match {model.__name__}: {e.error_count()} error(s)") from e
