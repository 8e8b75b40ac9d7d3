"""LLM client implementing the text generation adapter contract.

This module wraps OpenAI's async API (through Instructor, optionally traced
with Langfuse) behind a single ``invoke(prompt, max_output_units)`` call that
returns plain text or raises one of the typed adapter failures.
"""

import hashlib
import logging
import time
from typing import Optional, Protocol, runtime_checkable

import instructor
import openai
from langfuse import observe
from openai import AsyncOpenAI
from pydantic import BaseModel

from lesson_pipeline.constants import (
    ENABLE_LANGFUSE,
    LLM_MODEL,
    LLM_REQUEST_TIMEOUT,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
)
from lesson_pipeline.errors import NetworkError, QuotaExceeded, TruncatedNoContent

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are an experienced English teacher who writes clear, level-appropriate "
    "lesson material. Follow the requested output format exactly and do not add "
    "commentary."
)


@runtime_checkable
class TextGenerationAdapter(Protocol):
    """Anything that turns a prompt into text.

    Implementations raise ``TruncatedNoContent``, ``QuotaExceeded`` or
    ``NetworkError`` for the corresponding service failures.
    """

    async def invoke(self, prompt: str, max_output_units: Optional[int] = None) -> str:
        ...


def hash_prompt(prompt: str) -> str:
    """First 16 hex characters of the prompt's SHA256, for logging."""
    return hashlib.sha256(prompt.encode()).hexdigest()[:16]


class TokenUsage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cached_tokens: int = 0


class LLMClient:
    """Async OpenAI adapter for lesson generation.

    Features:
    - Instructor-wrapped client (raw completions, no response model)
    - Langfuse tracing when enabled
    - Translation of provider errors into adapter failures
    - Token usage tracking and cost estimation
    - Request/response logging (prompt hash, budget, tokens, latency)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        timeout: float = LLM_REQUEST_TIMEOUT,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        enable_langfuse: bool = ENABLE_LANGFUSE,
    ):
        """Initialize the client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY)
            model: Model name (defaults to LLM_MODEL)
            base_url: Optional OpenAI-compatible endpoint
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds
            system_prompt: System message sent with every prompt
            enable_langfuse: Use the Langfuse-wrapped OpenAI client
        """
        self.model = model or LLM_MODEL
        self.temperature = temperature
        self.system_prompt = system_prompt
        self.enable_langfuse = enable_langfuse
        self.total_usage = TokenUsage()

        client_kwargs = {
            "api_key": api_key or OPENAI_API_KEY,
            "base_url": base_url or OPENAI_BASE_URL,
            "timeout": timeout,
            # Retries are decided by the pipeline, not the SDK
            "max_retries": 0,
        }
        if enable_langfuse:
            from langfuse.openai import AsyncOpenAI as TracedAsyncOpenAI

            client = TracedAsyncOpenAI(**client_kwargs)
            logger.info("Langfuse tracing enabled for OpenAI")
        else:
            client = AsyncOpenAI(**client_kwargs)

        self.client = instructor.from_openai(client)

        logger.info(f"LLMClient initialized with model={self.model}, timeout={timeout}")

    @observe(as_type="generation")
    async def invoke(self, prompt: str, max_output_units: Optional[int] = None) -> str:
        """Generate text for ``prompt``.

        Args:
            prompt: User prompt
            max_output_units: Output token budget, None for the service default

        Returns:
            Generated text (possibly cut short if the budget was hit)

        Raises:
            TruncatedNoContent: Budget hit before any text was produced
            QuotaExceeded: Rate limit or quota rejection
            NetworkError: Connection failure, timeout or gateway error
        """
        prompt_hash = hash_prompt(prompt)
        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]
        api_params = {
            "model": self.model,
            "messages": messages,
            "response_model": None,
        }
        # gpt-5 and o* models take max_completion_tokens and the default temperature
        if self.model.startswith(("gpt-5", "o1", "o3", "o4")):
            if max_output_units is not None:
                api_params["max_completion_tokens"] = max_output_units
        else:
            api_params["temperature"] = self.temperature
            if max_output_units is not None:
                api_params["max_tokens"] = max_output_units

        start_time = time.time()
        try:
            completion = await self.client.chat.completions.create(**api_params)
        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            translated = self._translate_error(e)
            self._log_response(
                prompt_hash, max_output_units, latency_ms, success=False, error=str(e)[:200]
            )
            if translated is not None:
                raise translated from e
            raise

        latency_ms = (time.time() - start_time) * 1000
        usage = self._extract_usage(completion)
        self._update_total_usage(usage)

        choice = completion.choices[0]
        text = (choice.message.content or "").strip()
        if not text and choice.finish_reason == "length":
            self._log_response(
                prompt_hash, max_output_units, latency_ms, success=False, usage=usage,
                error="truncated with no content",
            )
            raise TruncatedNoContent(max_output_units)

        self._log_response(prompt_hash, max_output_units, latency_ms, success=True, usage=usage)
        return text

    def _translate_error(self, error: BaseException) -> Optional[Exception]:
        """Map provider exceptions (or their causes) onto adapter failures."""
        current: Optional[BaseException] = error
        while current is not None:
            if isinstance(current, openai.RateLimitError):
                return QuotaExceeded(str(current))
            if isinstance(current, (openai.APITimeoutError, openai.APIConnectionError)):
                return NetworkError(str(current))
            if isinstance(current, openai.APIStatusError):
                if current.status_code == 429:
                    return QuotaExceeded(str(current))
                if current.status_code in (502, 503, 504):
                    return NetworkError(str(current))
                return None
            current = current.__cause__
        return None

    def _extract_usage(self, completion) -> TokenUsage:
        usage = TokenUsage()
        raw_usage = getattr(completion, "usage", None)
        if raw_usage is None:
            return usage
        usage.prompt_tokens = getattr(raw_usage, "prompt_tokens", 0) or 0
        usage.completion_tokens = getattr(raw_usage, "completion_tokens", 0) or 0
        usage.total_tokens = getattr(raw_usage, "total_tokens", 0) or 0
        details = getattr(raw_usage, "prompt_tokens_details", None)
        if details is not None:
            usage.cached_tokens = getattr(details, "cached_tokens", 0) or 0
        return usage

    def _update_total_usage(self, usage: TokenUsage) -> None:
        self.total_usage.prompt_tokens += usage.prompt_tokens
        self.total_usage.completion_tokens += usage.completion_tokens
        self.total_usage.total_tokens += usage.total_tokens
        self.total_usage.cached_tokens += usage.cached_tokens

    def get_usage_summary(self) -> dict:
        """Get summary of total token usage.

        Returns:
            Dictionary with usage stats and cost estimates
        """
        # Cost per 1M tokens
        costs = {
            "gpt-4o-mini": {"input": 0.15, "output": 0.60, "cached": 0.075},
            "gpt-4.1-nano": {"input": 0.1, "output": 0.4, "cached": 0.025},
            "gpt-4.1-mini": {"input": 0.4, "output": 1.6, "cached": 0.1},
            "gpt-4.1": {"input": 2, "output": 8, "cached": 0.5},
            "gpt-5-mini": {"input": 0.25, "output": 2, "cached": 0.025},
        }
        model_cost = costs.get(self.model, costs["gpt-4o-mini"])

        uncached_prompt = self.total_usage.prompt_tokens - self.total_usage.cached_tokens
        input_cost = (
            uncached_prompt * model_cost["input"]
            + self.total_usage.cached_tokens * model_cost["cached"]
        ) / 1_000_000
        output_cost = self.total_usage.completion_tokens * model_cost["output"] / 1_000_000

        return {
            "model": self.model,
            "prompt_tokens": self.total_usage.prompt_tokens,
            "completion_tokens": self.total_usage.completion_tokens,
            "total_tokens": self.total_usage.total_tokens,
            "cached_tokens": self.total_usage.cached_tokens,
            "estimated_cost_usd": round(input_cost + output_cost, 4),
        }

    def reset_usage(self) -> None:
        """Reset token usage counters."""
        self.total_usage = TokenUsage()

    def _log_response(
        self,
        prompt_hash: str,
        budget: Optional[int],
        latency_ms: float,
        success: bool,
        usage: Optional[TokenUsage] = None,
        error: Optional[str] = None,
    ) -> None:
        log_data = {
            "prompt_hash": prompt_hash,
            "model": self.model,
            "budget": budget,
            "latency_ms": round(latency_ms, 2),
            "success": success,
        }
        if usage:
            log_data["tokens"] = {
                "prompt": usage.prompt_tokens,
                "completion": usage.completion_tokens,
                "total": usage.total_tokens,
                "cached": usage.cached_tokens,
            }
        if error:
            log_data["error"] = error

        if success:
            logger.info(f"LLM response: {log_data}")
        else:
            logger.warning(f"LLM response failed: {log_data}")
