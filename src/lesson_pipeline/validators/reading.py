from typing import List

from lesson_pipeline.constants import MIN_VOCABULARY_INTEGRATION
from lesson_pipeline.models.schema import GenerationContext, SectionName, Tier
from lesson_pipeline.models.sections import ReadingSection
from lesson_pipeline.prompts.tier_guidance import guidance_for
from lesson_pipeline.utils.text import count_integrated, split_sentences
from lesson_pipeline.validators.base import BaseSectionValidator

MIN_PASSAGE_WORDS = 60
TARGET_PASSAGE_WORDS = (150, 450)


class ReadingValidator(BaseSectionValidator):
    """Main passage: length, sentence length for the tier, vocabulary reuse."""

    section = SectionName.READING

    def check_structure(
        self,
        content: ReadingSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        count = content.word_count
        if count < MIN_PASSAGE_WORDS:
            issues.append(f"Reading passage too short: {count} words (minimum {MIN_PASSAGE_WORDS})")
        elif not TARGET_PASSAGE_WORDS[0] <= count <= TARGET_PASSAGE_WORDS[1]:
            warnings.append(
                f"Reading passage is {count} words "
                f"(target {TARGET_PASSAGE_WORDS[0]}-{TARGET_PASSAGE_WORDS[1]})"
            )

    def check_tier_fit(
        self,
        content: ReadingSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        sentences = split_sentences(content.passage)
        if not sentences:
            return
        average = sum(len(s.split()) for s in sentences) / len(sentences)
        low, high = guidance_for(context.tier).sentence_length
        if context.tier <= Tier.A2 and average > high + 5:
            warnings.append(
                f"Average sentence length {average:.1f} words is long for {context.tier.value} "
                f"(target {low}-{high})"
            )
        if context.tier >= Tier.B2 and average < low - 5:
            warnings.append(
                f"Average sentence length {average:.1f} words is short for {context.tier.value} "
                f"(target {low}-{high})"
            )

    def check_integration(
        self,
        content: ReadingSection,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if not vocabulary:
            return
        used = count_integrated(content.passage, vocabulary)
        required = min(MIN_VOCABULARY_INTEGRATION, len(vocabulary))
        if len(used) < required:
            issues.append(
                f"Reading passage uses {len(used)} lesson vocabulary word(s), "
                f"expected at least {required}: {', '.join(vocabulary[:8])}"
            )
