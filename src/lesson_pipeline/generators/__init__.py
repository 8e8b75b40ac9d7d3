"""Section generators.

One generator per section kind. ``GENERATORS`` maps each section to the
generator instance the orchestrator uses by default.
"""

from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.generators.dialogue import DialogueFillGapGenerator, DialoguePracticeGenerator
from lesson_pipeline.generators.grammar import GrammarGenerator
from lesson_pipeline.generators.pronunciation import PronunciationGenerator
from lesson_pipeline.generators.questions import (
    ClosingGenerator,
    ComprehensionGenerator,
    DiscussionGenerator,
    OpeningGenerator,
)
from lesson_pipeline.generators.reading import ReadingGenerator
from lesson_pipeline.generators.vocabulary import VocabularyGenerator
from lesson_pipeline.models.schema import SectionName

GENERATORS = {
    SectionName.WARMUP: OpeningGenerator(),
    SectionName.VOCABULARY: VocabularyGenerator(),
    SectionName.READING: ReadingGenerator(),
    SectionName.COMPREHENSION: ComprehensionGenerator(),
    SectionName.DISCUSSION: DiscussionGenerator(),
    SectionName.DIALOGUE_PRACTICE: DialoguePracticeGenerator(),
    SectionName.DIALOGUE_FILL_GAP: DialogueFillGapGenerator(),
    SectionName.GRAMMAR: GrammarGenerator(),
    SectionName.PRONUNCIATION: PronunciationGenerator(),
    SectionName.WRAPUP: ClosingGenerator(),
}

__all__ = [
    "BaseSectionGenerator",
    "ClosingGenerator",
    "ComprehensionGenerator",
    "DialogueFillGapGenerator",
    "DialoguePracticeGenerator",
    "DiscussionGenerator",
    "GENERATORS",
    "GrammarGenerator",
    "OpeningGenerator",
    "PronunciationGenerator",
    "ReadingGenerator",
    "SectionInput",
    "VocabularyGenerator",
]
