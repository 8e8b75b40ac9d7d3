"""Generators for the plain question sections.

Warm-up, comprehension, discussion and wrap-up sections share one shape: a
single adapter call whose response is one question per line.
"""

import logging
from typing import List, Type

from lesson_pipeline.constants import (
    CLOSING_QUESTION_COUNT,
    COMPREHENSION_QUESTION_COUNT,
    DISCUSSION_QUESTION_COUNT,
    OPENING_QUESTION_COUNT,
)
from lesson_pipeline.errors import MalformedResponse
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.models.sections import (
    ClosingSection,
    ComprehensionSection,
    DiscussionSection,
    OpeningSection,
    QuestionSection,
    ReadingSection,
)
from lesson_pipeline.prompts.section_prompts import (
    build_closing_prompt,
    build_comprehension_prompt,
    build_discussion_prompt,
    build_opening_prompt,
)
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import parse_lines

logger = logging.getLogger(__name__)


class QuestionGenerator(BaseSectionGenerator):
    """One call, one question per line, capped at ``question_count``."""

    record_type: Type[QuestionSection] = QuestionSection
    question_count: int = 0
    require_question = True

    def build_prompt(self, section_input: SectionInput) -> str:
        raise NotImplementedError

    async def generate(self, section_input: SectionInput, invoker: PromptInvoker) -> QuestionSection:
        prompt = self.prompt_with_feedback(self.build_prompt(section_input), section_input)
        response = await invoker(prompt)
        questions = self.parse(response)
        if not questions:
            raise MalformedResponse(self.section.value, "no questions found in response")

        logger.debug(
            f"Parsed {len(questions)} {self.section.value} question(s)",
            extra={"section": self.section.value, "attempt": section_input.attempt},
        )
        return self.record_type(instruction=self.instruction, questions=questions)

    def parse(self, response: str) -> List[str]:
        return parse_lines(
            response,
            min_length=10,
            require_question=self.require_question,
            limit=self.question_count,
        )


class OpeningGenerator(QuestionGenerator):
    section = SectionName.WARMUP
    record_type = OpeningSection
    question_count = OPENING_QUESTION_COUNT
    instruction = (
        "Have the following conversations or discussions with your tutor before reading the text:"
    )

    def build_prompt(self, section_input: SectionInput) -> str:
        return build_opening_prompt(section_input.context)


class ComprehensionGenerator(QuestionGenerator):
    section = SectionName.COMPREHENSION
    record_type = ComprehensionSection
    question_count = COMPREHENSION_QUESTION_COUNT
    instruction = "After reading the text, answer these comprehension questions:"

    def build_prompt(self, section_input: SectionInput) -> str:
        # Ask about the rewritten passage when it exists, else the summary
        reading = section_input.prior_results.get(SectionName.READING)
        passage = ""
        if reading is not None and isinstance(reading.content, ReadingSection):
            passage = reading.content.passage
        return build_comprehension_prompt(section_input.context, passage)


class DiscussionGenerator(QuestionGenerator):
    section = SectionName.DISCUSSION
    record_type = DiscussionSection
    question_count = DISCUSSION_QUESTION_COUNT
    instruction = "Discuss these questions with your tutor to explore the topic in depth:"

    def build_prompt(self, section_input: SectionInput) -> str:
        return build_discussion_prompt(section_input.context)


class ClosingGenerator(QuestionGenerator):
    section = SectionName.WRAPUP
    record_type = ClosingSection
    question_count = CLOSING_QUESTION_COUNT
    instruction = "Reflect on your learning by discussing these wrap-up questions:"

    def build_prompt(self, section_input: SectionInput) -> str:
        return build_closing_prompt(section_input.context, section_input.lesson_vocabulary())
