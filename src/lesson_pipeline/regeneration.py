"""Regeneration controller.

Each section runs through a small state machine::

    GENERATE -> VALIDATE -> ACCEPT
                         -> REGENERATE (attempt < MAX_ATTEMPTS) -> GENERATE
                         -> DEGRADE | FAIL (attempts exhausted)

A regenerated attempt is narrowed with the previous attempt's issues. Once
attempts are exhausted the section's failure policy decides: structural
sections fail the artifact, the others are accepted with their issues
downgraded to warnings. An attempt with critical issues (wrong fixed count,
leakage) is never kept; if no other attempt is usable the section fails.

An unparseable response, or one truncated at every output budget, counts as
a failed attempt. Service and cancellation failures propagate immediately.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from pydantic import BaseModel

from lesson_pipeline.constants import MAX_ATTEMPTS
from lesson_pipeline.errors import MalformedResponse, TokenLimitExceeded, ValidationFailure
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import FailurePolicy, SectionName, SectionResult, ValidationOutcome
from lesson_pipeline.models.sections import SectionContent
from lesson_pipeline.quality_metrics import QualityMetricsTracker
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.validators.base import BaseSectionValidator

logger = logging.getLogger(__name__)

RegenerateCallback = Callable[[SectionName, int], Awaitable[object]]


class AttemptState(str, Enum):
    GENERATE = "generate"
    VALIDATE = "validate"
    REGENERATE = "regenerate"
    ACCEPT = "accept"
    DEGRADE = "degrade"
    FAIL = "fail"


@dataclass(frozen=True)
class SectionHandler:
    """Generator and validator for one section kind."""

    generator: BaseSectionGenerator
    validator: BaseSectionValidator

    @property
    def name(self) -> SectionName:
        return self.generator.section


class RegenerationController:
    """Bounded generate/validate/regenerate loop for a single section."""

    def __init__(self, max_attempts: int = MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts

    async def run(
        self,
        handler: SectionHandler,
        section_input: SectionInput,
        invoker: PromptInvoker,
        metrics: Optional[QualityMetricsTracker] = None,
        on_regenerate: Optional[RegenerateCallback] = None,
    ) -> SectionResult:
        """Produce an accepted (or degraded) section result.

        Args:
            handler: Generator and validator for the section
            section_input: Context and prior results for the first attempt
            invoker: Adapter bound to the current request
            metrics: Optional tracker receiving the section's final metrics
            on_regenerate: Awaited with the section and the new attempt number
                before each regeneration

        Returns:
            SectionResult with ``attempts`` <= ``max_attempts``

        Raises:
            ValidationFailure: Attempts exhausted and the section cannot degrade
            ServiceUnavailable: Quota or network failure
            GenerationCancelled: The request was cancelled
        """
        name = handler.name
        vocabulary = section_input.lesson_vocabulary()
        start_time = time.time()

        state = AttemptState.GENERATE
        attempt = 1
        current_input = section_input
        content: Optional[BaseModel] = None
        outcome = ValidationOutcome()
        best: Optional[Tuple[SectionContent, ValidationOutcome]] = None

        while True:
            if state == AttemptState.GENERATE:
                logger.debug(f"Generating {name.value} (attempt {attempt}/{self.max_attempts})")
                try:
                    content = await handler.generator.generate(current_input, invoker)
                    state = AttemptState.VALIDATE
                except (MalformedResponse, TokenLimitExceeded) as e:
                    logger.warning(
                        f"{name.value} attempt {attempt} produced no usable content: {e}",
                        extra={"section": name.value, "attempt": attempt},
                    )
                    content = None
                    outcome = ValidationOutcome(issues=[e.message], score=0)
                    state = self._after_failed_attempt(attempt)

            elif state == AttemptState.VALIDATE:
                outcome = handler.validator.validate(content, current_input.context, vocabulary)
                if (
                    not content.is_empty()
                    and outcome.is_degradable
                    and (best is None or outcome.score >= best[1].score)
                ):
                    best = (content, outcome)
                state = AttemptState.ACCEPT if outcome.is_valid else self._after_failed_attempt(attempt)

            elif state == AttemptState.REGENERATE:
                attempt += 1
                logger.info(
                    f"Regenerating {name.value} after {len(outcome.issues)} issue(s)",
                    extra={"section": name.value, "attempt": attempt, "issues": outcome.issues[:5]},
                )
                current_input = section_input.with_feedback(outcome.issues, attempt)
                if on_regenerate is not None:
                    await on_regenerate(name, attempt)
                state = AttemptState.GENERATE

            elif state == AttemptState.ACCEPT:
                result = SectionResult(
                    name=name,
                    content=content,
                    attempts=attempt,
                    quality_score=outcome.score,
                    warnings=outcome.warnings,
                )
                self._record(metrics, result, outcome, start_time)
                return result

            elif state == AttemptState.DEGRADE:
                if name.failure_policy == FailurePolicy.FAIL or best is None:
                    state = AttemptState.FAIL
                    continue
                kept, kept_outcome = best
                logger.warning(
                    f"Accepting degraded {name.value} after {attempt} attempt(s)",
                    extra={"section": name.value, "issues": kept_outcome.issues[:5]},
                )
                result = SectionResult(
                    name=name,
                    content=kept,
                    attempts=attempt,
                    quality_score=kept_outcome.score,
                    warnings=kept_outcome.warnings + kept_outcome.issues,
                    degraded=True,
                )
                self._record(metrics, result, kept_outcome, start_time)
                return result

            else:
                logger.error(
                    f"{name.value} failed validation after {attempt} attempt(s)",
                    extra={"section": name.value, "issues": outcome.issues[:5]},
                )
                raise ValidationFailure(name.value, outcome.issues, attempt)

    def _after_failed_attempt(self, attempt: int) -> AttemptState:
        return AttemptState.REGENERATE if attempt < self.max_attempts else AttemptState.DEGRADE

    @staticmethod
    def _record(
        metrics: Optional[QualityMetricsTracker],
        result: SectionResult,
        outcome: ValidationOutcome,
        start_time: float,
    ) -> None:
        if metrics is None:
            return
        metrics.record_section(
            section_name=result.name.value,
            validation_score=result.quality_score,
            attempt_count=result.attempts,
            generation_time_ms=(time.time() - start_time) * 1000,
            issue_count=len(outcome.issues),
            warning_count=len(outcome.warnings),
            degraded=result.degraded,
        )
