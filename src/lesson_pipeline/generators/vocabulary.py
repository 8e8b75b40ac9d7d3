import logging
from typing import List

from lesson_pipeline.constants import MAX_VOCABULARY_WORDS
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import GenerationContext, SectionName
from lesson_pipeline.models.sections import VocabularyEntry, VocabularySection
from lesson_pipeline.prompts.section_prompts import build_definition_prompt, build_examples_prompt
from lesson_pipeline.prompts.tier_guidance import examples_per_word
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import parse_lines

logger = logging.getLogger(__name__)

MAX_MEANING_CHARS = 150


class VocabularyGenerator(BaseSectionGenerator):
    """Key words from the shared context, each defined and illustrated.

    Two calls per word: a learner-level definition, then exactly the tier's
    number of example sentences (5, 5, 4, 3, 2 for A1..C1).
    """

    section = SectionName.VOCABULARY
    instruction = "Study the following words with your tutor before reading the text:"

    async def generate(self, section_input: SectionInput, invoker: PromptInvoker) -> VocabularySection:
        context = section_input.context
        count = examples_per_word(context.tier)
        entries: List[VocabularyEntry] = []

        for word in context.ranked_vocabulary[:MAX_VOCABULARY_WORDS]:
            entries.append(await self._build_entry(word, count, context, section_input, invoker))

        logger.info(
            f"Generated {len(entries)} vocabulary entries with {count} examples each",
            extra={"section": self.section.value, "tier": context.tier.value},
        )
        return VocabularySection(instruction=self.instruction, words=entries)

    async def _build_entry(
        self,
        word: str,
        count: int,
        context: GenerationContext,
        section_input: SectionInput,
        invoker: PromptInvoker,
    ) -> VocabularyEntry:
        definition = await invoker(build_definition_prompt(word, context))
        meaning = definition.strip()[:MAX_MEANING_CHARS]

        prompt = self.prompt_with_feedback(build_examples_prompt(word, context, count), section_input)
        response = await invoker(prompt)
        examples = parse_lines(response, min_length=10, limit=count)

        return VocabularyEntry(word=word[:1].upper() + word[1:], meaning=meaning, examples=examples)
