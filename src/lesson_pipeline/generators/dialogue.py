"""Generators for the two dialogue variants.

The practice dialogue is followed by a second call for follow-up questions;
the fill-in-the-gap dialogue by a second call listing the words that fill
each gap. Both second calls read the parsed dialogue, never the prompt.
"""

import logging
import re
from typing import List

from lesson_pipeline.constants import FOLLOW_UP_QUESTION_COUNT
from lesson_pipeline.errors import MalformedResponse
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.models.sections import (
    DialogueFillGapSection,
    DialogueLine,
    DialoguePracticeSection,
)
from lesson_pipeline.prompts.section_prompts import (
    build_dialogue_fill_gap_prompt,
    build_dialogue_practice_prompt,
    build_follow_up_prompt,
    build_gap_answers_prompt,
)
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import parse_lines, strip_numbering

logger = logging.getLogger(__name__)

DIALOGUE_LINE = re.compile(r"^\**(Student|Tutor)\**\s*:\s*\**\s*(.+)$", re.I)


def parse_dialogue(response: str) -> List[DialogueLine]:
    """Parse ``Speaker: text`` lines; anything else is ignored.

    Example:
        >>> [l.speaker for l in parse_dialogue("Student: Hi!\\nnoise\\ntutor: Hello.")]
        ['Student', 'Tutor']
    """
    lines = []
    for raw in response.splitlines():
        match = DIALOGUE_LINE.match(strip_numbering(raw.strip()))
        if match:
            text = match.group(2).strip().strip("*").strip()
            if text:
                lines.append(DialogueLine(speaker=match.group(1).title(), text=text))
    return lines


class DialoguePracticeGenerator(BaseSectionGenerator):
    section = SectionName.DIALOGUE_PRACTICE
    instruction = "Practice this conversation with your tutor:"

    async def generate(
        self, section_input: SectionInput, invoker: PromptInvoker
    ) -> DialoguePracticeSection:
        context = section_input.context
        prompt = build_dialogue_practice_prompt(context, section_input.lesson_vocabulary())
        response = await invoker(self.prompt_with_feedback(prompt, section_input))
        lines = parse_dialogue(response)
        if not lines:
            raise MalformedResponse(self.section.value, "no Student/Tutor lines found")

        section = DialoguePracticeSection(instruction=self.instruction, lines=lines)
        follow_up = await invoker(build_follow_up_prompt(context, section.as_text()))
        section.follow_up_questions = parse_lines(
            follow_up, min_length=10, require_question=True, limit=FOLLOW_UP_QUESTION_COUNT
        )

        logger.debug(
            f"Parsed practice dialogue: {len(lines)} lines, "
            f"{len(section.follow_up_questions)} follow-up question(s)",
            extra={"section": self.section.value, "attempt": section_input.attempt},
        )
        return section


class DialogueFillGapGenerator(BaseSectionGenerator):
    section = SectionName.DIALOGUE_FILL_GAP
    instruction = "Fill in the gaps in this conversation:"

    async def generate(
        self, section_input: SectionInput, invoker: PromptInvoker
    ) -> DialogueFillGapSection:
        prompt = build_dialogue_fill_gap_prompt(section_input.context, section_input.lesson_vocabulary())
        response = await invoker(self.prompt_with_feedback(prompt, section_input))
        lines = parse_dialogue(response)
        if not lines:
            raise MalformedResponse(self.section.value, "no Student/Tutor lines found")

        section = DialogueFillGapSection(instruction=self.instruction, lines=lines)
        gaps = section.gap_count
        if gaps:
            answers = await invoker(build_gap_answers_prompt(section.as_text(), gaps))
            section.answers = parse_lines(answers, limit=gaps)

        logger.debug(
            f"Parsed fill-gap dialogue: {len(lines)} lines, {gaps} gap(s), {len(section.answers)} answer(s)",
            extra={"section": self.section.value, "attempt": section_input.attempt},
        )
        return section
