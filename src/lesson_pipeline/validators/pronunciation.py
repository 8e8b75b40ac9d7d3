"""Validator for pronunciation practice.

At least five target words, each with an IPA transcription, and at least two
tongue twisters. Tips and practice sentences are expected but not blocking.
"""

from typing import List

from lesson_pipeline.constants import MIN_PRONUNCIATION_WORDS, MIN_TONGUE_TWISTERS
from lesson_pipeline.models.schema import GenerationContext, SectionName
from lesson_pipeline.models.sections import PronunciationSection
from lesson_pipeline.utils.text import contains_word
from lesson_pipeline.validators.base import BaseSectionValidator


class PronunciationValidator(BaseSectionValidator):
    section = SectionName.PRONUNCIATION
    issue_penalty = 15

    def check_structure(
        self,
        content: PronunciationSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if len(content.words) < MIN_PRONUNCIATION_WORDS:
            issues.append(
                f"Expected at least {MIN_PRONUNCIATION_WORDS} pronunciation words, got {len(content.words)}"
            )
        if len(content.tongue_twisters) < MIN_TONGUE_TWISTERS:
            issues.append(
                f"Expected at least {MIN_TONGUE_TWISTERS} tongue twisters, got {len(content.tongue_twisters)}"
            )

        for index, item in enumerate(content.words, 1):
            if len(item.word.strip()) < 2:
                issues.append(f"Word {index} is missing")
                continue
            if len(item.ipa.strip()) < 2:
                issues.append(f'Word "{item.word}" has no IPA transcription')
            if not item.tips:
                warnings.append(f'Word "{item.word}" has no pronunciation tips')
            if len(item.practice_sentence) < 10 or not contains_word(item.practice_sentence, item.word):
                warnings.append(f'Word "{item.word}" has no usable practice sentence')

        for index, twister in enumerate(content.tongue_twisters, 1):
            if len(twister.text.strip()) < 15:
                issues.append(f"Tongue twister {index} is too short")
            if not twister.target_sounds:
                warnings.append(f"Tongue twister {index} has no target sounds")

    def score_bonus(self, content: PronunciationSection) -> int:
        bonus = 0
        if len(content.words) >= MIN_PRONUNCIATION_WORDS:
            bonus += 5
        if len(content.tongue_twisters) >= MIN_TONGUE_TWISTERS:
            bonus += 5
        return bonus
