"""Validators for the practice and fill-in-the-gap dialogues.

Both variants need at least twelve lines and must reuse lesson vocabulary.
Words characteristic of higher tiers are rejected at A1/A2; grammar above
the tier's ceiling and lines outside its length band are flagged.
"""

import re
from typing import List

from lesson_pipeline.constants import (
    FOLLOW_UP_QUESTION_COUNT,
    MIN_DIALOGUE_GAPS,
    MIN_DIALOGUE_LINES,
    MIN_VOCABULARY_INTEGRATION,
)
from lesson_pipeline.models.schema import GenerationContext, SectionName, Tier
from lesson_pipeline.models.sections import (
    DialogueFillGapSection,
    DialoguePracticeSection,
    DialogueSection,
)
from lesson_pipeline.prompts.tier_guidance import guidance_for
from lesson_pipeline.utils.text import count_integrated
from lesson_pipeline.validators.base import BaseSectionValidator

ABOVE_BEGINNER_WORDS = (
    "sophisticated", "comprehensive", "multifaceted", "nuanced", "intricate",
    "elaborate", "substantial", "considerable", "significant", "fundamental",
    "nevertheless", "furthermore", "consequently", "subsequently", "whereby",
)
VERY_SIMPLE_WORDS = {"good", "bad", "nice", "big", "small", "like", "want", "go", "come", "get"}

PRESENT_PERFECT = re.compile(r"\b(have|has)\s+(\w+ed|been|gone|done|seen|made)\b", re.I)
PASSIVE = re.compile(r"\b(is|are|was|were|been)\s+\w+ed\b", re.I)
RELATIVE_CLAUSE = re.compile(r"\b(which|that|who|whom|whose)\b", re.I)
CONDITIONAL = re.compile(r"\b(if|unless|provided|assuming|were)\b.*\b(would|could|might)\b", re.I)
PERFECT = re.compile(r"\b(have|has|had)\s+(been|gone|done|seen|made|\w+ed)\b", re.I)


class DialogueValidator(BaseSectionValidator):
    """Checks shared by both dialogue variants."""

    section = SectionName.DIALOGUE_PRACTICE

    def check_structure(
        self,
        content: DialogueSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        lines = content.lines
        if len(lines) < MIN_DIALOGUE_LINES:
            issues.append(
                f"Insufficient dialogue lines: expected at least {MIN_DIALOGUE_LINES}, got {len(lines)}"
            )
        for index in range(1, len(lines)):
            if lines[index].speaker == lines[index - 1].speaker:
                warnings.append(
                    f"Lines {index} and {index + 1} have the same speaker (should alternate)"
                )
                break
        if lines and lines[0].speaker != "Student":
            warnings.append("Dialogue should start with Student speaking")

    def check_tier_fit(
        self,
        content: DialogueSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        lines = content.lines
        if not lines:
            return
        tier = context.tier
        text = " ".join(line.text for line in lines)
        lowered = text.lower()

        low, high = guidance_for(tier).dialogue_line_range
        counts = [len(line.text.split()) for line in lines]
        too_short = sum(1 for c in counts if c < low)
        too_long = sum(1 for c in counts if c > high)
        if too_short > len(lines) * 0.3:
            warnings.append(f"{too_short} lines may be too short for {tier.value} level")
        if too_long > len(lines) * 0.3:
            warnings.append(f"{too_long} lines may be too long for {tier.value} level")

        if tier <= Tier.A2:
            found = [w for w in ABOVE_BEGINNER_WORDS if re.search(rf"\b{w}\b", lowered)]
            if found:
                issues.append(
                    f"Found vocabulary above {tier.value} level: {', '.join(found)}"
                )
            if PRESENT_PERFECT.search(text):
                warnings.append(f"Present perfect tense may be too complex for {tier.value} level")
            if PASSIVE.search(text):
                warnings.append(f"Passive voice may be too complex for {tier.value} level")

        if tier >= Tier.B2:
            tokens = lowered.split()
            simple_ratio = sum(1 for t in tokens if t.strip(".,!?") in VERY_SIMPLE_WORDS) / len(tokens)
            if simple_ratio > 0.15:
                warnings.append(
                    f"Vocabulary may be too simple for {tier.value} level "
                    f"({round(simple_ratio * 100)}% basic words)"
                )
            has_complex = (
                RELATIVE_CLAUSE.search(text) or CONDITIONAL.search(text) or PERFECT.search(text)
            )
            if not has_complex and len(lines) >= MIN_DIALOGUE_LINES:
                warnings.append(f"Dialogue lacks complex grammar structures expected for {tier.value} level")

    def check_integration(
        self,
        content: DialogueSection,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if not vocabulary:
            return
        used = count_integrated(self.integration_text(content), vocabulary)
        required = min(MIN_VOCABULARY_INTEGRATION, len(vocabulary))
        if len(used) < required:
            issues.append(
                f"Dialogue uses {len(used)} lesson vocabulary word(s), expected at least {required}"
            )

    def integration_text(self, content: DialogueSection) -> str:
        return content.as_text()

    def score_bonus(self, content: DialogueSection) -> int:
        return 10 if len(content.lines) >= MIN_DIALOGUE_LINES else 0


class DialoguePracticeValidator(DialogueValidator):
    section = SectionName.DIALOGUE_PRACTICE

    def check_structure(
        self,
        content: DialoguePracticeSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        super().check_structure(content, context, issues, warnings)
        if len(content.follow_up_questions) < FOLLOW_UP_QUESTION_COUNT:
            warnings.append(
                f"Expected {FOLLOW_UP_QUESTION_COUNT} follow-up questions, "
                f"got {len(content.follow_up_questions)}"
            )


class DialogueFillGapValidator(DialogueValidator):
    section = SectionName.DIALOGUE_FILL_GAP

    def check_structure(
        self,
        content: DialogueFillGapSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        super().check_structure(content, context, issues, warnings)
        gaps = content.gap_count
        if gaps < MIN_DIALOGUE_GAPS:
            warnings.append(f"Fill-in-gap dialogue should have at least {MIN_DIALOGUE_GAPS} gaps, found {gaps}")
        if gaps and len(content.answers) != gaps:
            issues.append(f"Gap answers do not match gaps: {gaps} gap(s), {len(content.answers)} answer(s)")

    def integration_text(self, content: DialogueFillGapSection) -> str:
        # Blanked words only survive in the answer key
        return " ".join([content.as_text()] + list(content.answers))
