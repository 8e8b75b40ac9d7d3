"""Section validators.

One validator per section kind. ``VALIDATORS`` maps each section to the
validator instance the orchestrator uses by default.
"""

from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.validators.base import BaseSectionValidator
from lesson_pipeline.validators.dialogue import DialogueFillGapValidator, DialoguePracticeValidator
from lesson_pipeline.validators.grammar import GrammarValidator
from lesson_pipeline.validators.opening import OpeningValidator
from lesson_pipeline.validators.pronunciation import PronunciationValidator
from lesson_pipeline.validators.questions import (
    ClosingValidator,
    ComprehensionValidator,
    DiscussionValidator,
)
from lesson_pipeline.validators.reading import ReadingValidator
from lesson_pipeline.validators.vocabulary import VocabularyValidator

VALIDATORS = {
    SectionName.WARMUP: OpeningValidator(),
    SectionName.VOCABULARY: VocabularyValidator(),
    SectionName.READING: ReadingValidator(),
    SectionName.COMPREHENSION: ComprehensionValidator(),
    SectionName.DISCUSSION: DiscussionValidator(),
    SectionName.DIALOGUE_PRACTICE: DialoguePracticeValidator(),
    SectionName.DIALOGUE_FILL_GAP: DialogueFillGapValidator(),
    SectionName.GRAMMAR: GrammarValidator(),
    SectionName.PRONUNCIATION: PronunciationValidator(),
    SectionName.WRAPUP: ClosingValidator(),
}

__all__ = [
    "BaseSectionValidator",
    "ClosingValidator",
    "ComprehensionValidator",
    "DialogueFillGapValidator",
    "DialoguePracticeValidator",
    "DiscussionValidator",
    "GrammarValidator",
    "OpeningValidator",
    "PronunciationValidator",
    "ReadingValidator",
    "VALIDATORS",
    "VocabularyValidator",
]
