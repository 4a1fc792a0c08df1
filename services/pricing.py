# services/pricing.py
from typing import Dict

# USD per million tokens
MODEL_COSTS: Dict[str, Dict[str, float]] = {
    "gemini-1.5-flash": {"input": 0.075, "output": 0.30},
    "gemini-1.5-pro": {"input": 1.25, "output": 5.00},
    "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
}


def calculate_cost(model_name: str, input_tokens: int, output_tokens: int) -> float:
    """Estimated spend for one call. Unknown models cost 0."""
    costs = MODEL_COSTS.get(model_name)
    if not costs:
        return 0.0
    return (input_tokens / 1_000_000) * costs["input"] + (output_tokens / 1_000_000) * costs["output"]
