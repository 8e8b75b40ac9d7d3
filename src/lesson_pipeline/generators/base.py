"""Base generator abstract class for all lesson sections.

Provides common functionality:
- The ``SectionInput`` record each generator receives
- Prompt narrowing from the previous attempt's issues
- Access to words produced by earlier sections

Generators never substitute canned content: adapter failures propagate to
the regeneration controller untouched, and unparseable responses raise
``MalformedResponse``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List

from lesson_pipeline.constants import REINFORCED_VOCABULARY_WORDS
from lesson_pipeline.models.schema import GenerationContext, SectionName, SectionResult
from lesson_pipeline.models.sections import SectionContent, VocabularySection
from lesson_pipeline.prompts.section_prompts import build_feedback_block
from lesson_pipeline.utils.backoff import PromptInvoker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionInput:
    """Read-only input for one generation attempt.

    Attributes:
        context: Shared generation context
        prior_results: Accepted results of the sections generated so far
        feedback: Blocking issues from the previous attempt (empty on the first)
        attempt: 1-based attempt number
    """

    context: GenerationContext
    prior_results: Dict[SectionName, SectionResult] = field(default_factory=dict)
    feedback: List[str] = field(default_factory=list)
    attempt: int = 1

    def lesson_vocabulary(self, limit: int = REINFORCED_VOCABULARY_WORDS) -> List[str]:
        """Words the section should reinforce.

        Taken from the accepted vocabulary section when there is one, otherwise
        from the ranked vocabulary of the shared context.
        """
        result = self.prior_results.get(SectionName.VOCABULARY)
        if result is not None and isinstance(result.content, VocabularySection):
            words = result.content.word_list()
            if words:
                return words[:limit]
        return list(self.context.ranked_vocabulary[:limit])

    def with_feedback(self, issues: List[str], attempt: int) -> "SectionInput":
        return SectionInput(
            context=self.context,
            prior_results=self.prior_results,
            feedback=list(issues),
            attempt=attempt,
        )


class BaseSectionGenerator(ABC):
    """Abstract base class for section generators.

    Subclasses must implement:
    - section (class attribute): SectionName this generator produces
    - generate(): build the prompt(s), call the invoker, parse the record
    """

    section: SectionName
    instruction: str = ""

    @abstractmethod
    async def generate(
        self,
        section_input: SectionInput,
        invoker: PromptInvoker,
    ) -> SectionContent:
        """Generate an unvalidated section record.

        Args:
            section_input: Context, prior results and retry feedback
            invoker: Adapter bound to the current request

        Returns:
            Structured section content

        Raises:
            MalformedResponse: The response could not be parsed
            ServiceUnavailable: Quota or network failure from the adapter
            TokenLimitExceeded: Every output budget step was truncated
        """
        pass

    def prompt_with_feedback(self, prompt: str, section_input: SectionInput) -> str:
        """Append the previous attempt's issues as negative constraints."""
        if section_input.feedback:
            logger.debug(
                f"Narrowing {self.section.value} prompt with {len(section_input.feedback)} issue(s)",
                extra={"section": self.section.value, "attempt": section_input.attempt},
            )
        return prompt + build_feedback_block(section_input.feedback)
