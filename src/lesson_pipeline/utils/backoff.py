"""Output budget backoff around a single adapter call.

A truncated response with no usable text is retried with a smaller budget,
then once more with the service default, before giving up. Quota and network
failures are never retried here.
"""

import logging
import time
from typing import Callable, List, Optional

from lesson_pipeline.constants import MIN_OUTPUT_BUDGET
from lesson_pipeline.errors import (
    NetworkError,
    QuotaExceeded,
    ServiceUnavailable,
    TokenLimitExceeded,
    TruncatedNoContent,
)
from lesson_pipeline.models.schema import GenerationRequest
from lesson_pipeline.utils.llm_client import TextGenerationAdapter, hash_prompt

logger = logging.getLogger(__name__)


def budget_schedule(budget: Optional[int]) -> List[Optional[int]]:
    """Budgets tried in order for one call.

    Example:
        >>> budget_schedule(60)
        [60, 30, None]
        >>> budget_schedule(30)
        [30, 20, None]
    """
    if budget is None:
        return [None]
    return [budget, max(budget // 2, MIN_OUTPUT_BUDGET), None]


async def invoke_with_budget_backoff(
    adapter: TextGenerationAdapter,
    prompt: str,
    budget: Optional[int],
    checkpoint: Optional[Callable[[], None]] = None,
) -> str:
    """Invoke the adapter, stepping down the output budget on truncation.

    Args:
        adapter: Text generation adapter
        prompt: Prompt text
        budget: Initial output budget, or None for the service default
        checkpoint: Called before every sub-call; raises to abandon the call

    Returns:
        Generated text

    Raises:
        ServiceUnavailable: Quota or network failure (not retried)
        TokenLimitExceeded: Every budget step was truncated
    """
    schedule = budget_schedule(budget)
    prompt_hash = hash_prompt(prompt)

    for step, step_budget in enumerate(schedule, 1):
        if checkpoint is not None:
            checkpoint()

        start_time = time.time()
        try:
            text = await adapter.invoke(prompt, max_output_units=step_budget)
        except TruncatedNoContent:
            logger.warning(
                f"Truncated with no content at budget={step_budget} "
                f"(step {step}/{len(schedule)}), prompt_hash={prompt_hash}",
                extra={"prompt_hash": prompt_hash, "budget": step_budget, "step": step},
            )
            continue
        except QuotaExceeded as e:
            raise ServiceUnavailable("quota", e) from e
        except NetworkError as e:
            raise ServiceUnavailable("network", e) from e

        latency_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Adapter call succeeded: prompt_hash={prompt_hash}, budget={step_budget}, "
            f"latency_ms={latency_ms:.2f}",
            extra={"prompt_hash": prompt_hash, "budget": step_budget, "step": step},
        )
        return text

    logger.error(f"All budget steps truncated for prompt_hash={prompt_hash}: {schedule}")
    raise TokenLimitExceeded(schedule)


class PromptInvoker:
    """An adapter bound to one generation request.

    Every call goes through the budget backoff with the request's
    cancellation check as the checkpoint. ``sub_calls`` counts the adapter
    invocations actually made, including truncated ones.
    """

    def __init__(
        self,
        adapter: TextGenerationAdapter,
        request: GenerationRequest,
        default_budget: Optional[int] = None,
    ):
        self.adapter = adapter
        self.request = request
        self.default_budget = default_budget
        self.sub_calls = 0

    def _checkpoint(self) -> None:
        self.request.raise_if_cancelled()
        self.sub_calls += 1

    async def __call__(self, prompt: str, budget: Optional[int] = None) -> str:
        return await invoke_with_budget_backoff(
            self.adapter,
            prompt,
            budget if budget is not None else self.default_budget,
            checkpoint=self._checkpoint,
        )
