"""Structured content records, one per section kind.

Generators return these unvalidated; validators inspect them; the
orchestrator places accepted ones into the ``LessonArtifact``.
"""

import re
from typing import List

from pydantic import BaseModel, Field

GAP_MARKER = "_____"


class SectionContent(BaseModel):
    """Common shape: every section carries a learner-facing instruction."""

    instruction: str = Field(default="", description="Instruction shown to the learner")

    def is_empty(self) -> bool:
        raise NotImplementedError


class QuestionSection(SectionContent):
    questions: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.questions


# ============================================================================
# Question sections
# ============================================================================


class OpeningSection(QuestionSection):
    """Warm-up questions probing prior knowledge of the topic."""


class ComprehensionSection(QuestionSection):
    """Questions checking understanding of the reading passage."""


class DiscussionSection(QuestionSection):
    """Open discussion questions."""


class ClosingSection(QuestionSection):
    """Wrap-up reflection questions."""


# ============================================================================
# Vocabulary and reading
# ============================================================================


class VocabularyEntry(BaseModel):
    """One key word with a learner-level meaning and example sentences."""

    word: str = Field(..., description="Key word, capitalised")
    meaning: str = Field(default="", description="Definition at the learner's tier")
    examples: List[str] = Field(default_factory=list)


class VocabularySection(SectionContent):
    words: List[VocabularyEntry] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.words

    def word_list(self) -> List[str]:
        return [entry.word for entry in self.words]


class ReadingSection(SectionContent):
    passage: str = ""

    def is_empty(self) -> bool:
        return not self.passage.strip()

    @property
    def word_count(self) -> int:
        return len(self.passage.split())


# ============================================================================
# Dialogue
# ============================================================================


class DialogueLine(BaseModel):
    """A single turn of a student/tutor dialogue."""

    speaker: str = Field(..., description="Student or Tutor")
    text: str

    @property
    def has_gap(self) -> bool:
        return GAP_MARKER in self.text

    @property
    def gap_count(self) -> int:
        return len(re.findall(r"_{3,}", self.text))


class DialogueSection(SectionContent):
    lines: List[DialogueLine] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.lines

    def as_text(self) -> str:
        return "\n".join(f"{line.speaker}: {line.text}" for line in self.lines)


class DialoguePracticeSection(DialogueSection):
    follow_up_questions: List[str] = Field(default_factory=list)


class DialogueFillGapSection(DialogueSection):
    answers: List[str] = Field(
        default_factory=list, description="Words filling each gap, in order"
    )

    @property
    def gap_count(self) -> int:
        return sum(line.gap_count for line in self.lines)


# ============================================================================
# Grammar
# ============================================================================


class GrammarExplanation(BaseModel):
    form: str = ""
    usage: str = ""
    level_notes: str = ""


class GrammarExercise(BaseModel):
    prompt: str
    answer: str = ""
    explanation: str = ""


class GrammarSection(SectionContent):
    grammar_point: str = ""
    explanation: GrammarExplanation = Field(default_factory=GrammarExplanation)
    examples: List[str] = Field(default_factory=list)
    exercises: List[GrammarExercise] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.grammar_point and not self.exercises


# ============================================================================
# Pronunciation
# ============================================================================


class PronunciationWord(BaseModel):
    """Target word with IPA, difficult sounds and practice material."""

    word: str
    ipa: str
    difficult_sounds: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    practice_sentence: str = ""


class TongueTwister(BaseModel):
    text: str
    target_sounds: List[str] = Field(default_factory=list)
    difficulty: str = "medium"


class PronunciationSection(SectionContent):
    words: List[PronunciationWord] = Field(default_factory=list)
    tongue_twisters: List[TongueTwister] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.words and not self.tongue_twisters
