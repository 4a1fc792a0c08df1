# FILE: services/reasoning.py
"""
Text-in / text-out boundary to the external reasoning model.

- Knows nothing about the calling agent's output shape
- Retries transient failures (network, timeouts, 408/429/5xx) with backoff
- Fails fast on configuration problems and non-retryable upstream errors
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Optional

import httpx
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from config import (
    GEMINI_MODEL_NAME,
    REASONING_BACKOFF_MULTIPLIER,
    REASONING_BACKOFF_SECONDS,
    REASONING_MAX_ATTEMPTS,
    REASONING_TIMEOUT_SECONDS,
    get_env_var,
)
from core.errors import AgentError, TransientUpstreamError, UpstreamError
from core.logs import get_logger

logger = get_logger("reasoning_client")

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class ReasoningResult:
    text: str
    input_tokens: int
    output_tokens: int
    model_name: str
    attempts: int = 1

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy configuration."""

    max_attempts: int = 3
    timeout: float = 30.0
    backoff: float = 1.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            max_attempts=REASONING_MAX_ATTEMPTS,
            timeout=REASONING_TIMEOUT_SECONDS,
            backoff=REASONING_BACKOFF_SECONDS,
            backoff_multiplier=REASONING_BACKOFF_MULTIPLIER,
        )

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based attempt failed."""
        return self.backoff * self.backoff_multiplier ** (attempt - 1)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, ModelHTTPError):
        return exc.status_code in RETRYABLE_STATUS_CODES or exc.status_code >= 500
    return isinstance(exc, (httpx.TransportError, asyncio.TimeoutError, ConnectionError))


def build_default_model() -> Model:
    """Gemini via pydantic_ai. Raises ConfigurationError without GOOGLE_API_KEY."""
    provider = GoogleProvider(api_key=get_env_var("GOOGLE_API_KEY"))
    return GoogleModel(GEMINI_MODEL_NAME, provider=provider)


class ReasoningClient:
    def __init__(self, model: Optional[Model] = None, retry_policy: Optional[RetryPolicy] = None):
        self._model = model
        self.retry_policy = retry_policy or RetryPolicy.from_config()

    @property
    def model(self) -> Model:
        if self._model is None:
            self._model = build_default_model()
        return self._model

    async def complete(self, system_instruction: str, prompt: str) -> ReasoningResult:
        """
        Run one reasoning call, retrying transient failures.

        Raises:
            ConfigurationError: credentials missing
            UpstreamError: provider rejected the request
            TransientUpstreamError: retry budget exhausted
        """
        policy = self.retry_policy
        last_error: Optional[BaseException] = None

        for attempt in range(1, policy.max_attempts + 1):
            try:
                logger.info(f"Reasoning call attempt {attempt}/{policy.max_attempts} (prompt_chars={len(prompt)})")
                result = await asyncio.wait_for(
                    self._invoke(system_instruction, prompt),
                    timeout=policy.timeout,
                )
                logger.info(
                    f"Reasoning call succeeded: model={result.model_name}, tokens={result.total_tokens}"
                )
                return replace(result, attempts=attempt)

            except AgentError:
                raise
            except Exception as e:
                if not is_transient(e):
                    logger.error(f"Reasoning call failed (not retryable): {type(e).__name__}: {e}")
                    raise UpstreamError(
                        f"Reasoning call rejected: {e}",
                        status_code=getattr(e, "status_code", None),
                    ) from e

                last_error = e
                if attempt < policy.max_attempts:
                    wait = policy.delay(attempt)
                    logger.warning(
                        f"Reasoning call transient failure ({type(e).__name__}), retrying in {wait:.2f}s"
                    )
                    await asyncio.sleep(wait)

        logger.error(f"Reasoning call exhausted {policy.max_attempts} attempts: {last_error}")
        raise TransientUpstreamError(
            f"Reasoning call failed after {policy.max_attempts} attempts: {last_error}",
            attempts=policy.max_attempts,
        ) from last_error

    async def _invoke(self, system_instruction: str, prompt: str) -> ReasoningResult:
        model = self.model
        agent = Agent(model, system_prompt=system_instruction, output_type=str)
        run = await agent.run(prompt)
        usage = run.usage()
        return ReasoningResult(
            text=run.output,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
            model_name=model.model_name,
        )
