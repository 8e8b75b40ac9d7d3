import re
from typing import List

from lesson_pipeline.constants import MIN_GRAMMAR_EXAMPLES, MIN_GRAMMAR_EXERCISES
from lesson_pipeline.models.schema import GenerationContext, SectionName
from lesson_pipeline.models.sections import GrammarSection
from lesson_pipeline.validators.base import BaseSectionValidator, mentions_any, theme_keywords


class GrammarValidator(BaseSectionValidator):
    """One grammar point, explained, illustrated and drilled."""

    section = SectionName.GRAMMAR
    issue_penalty = 15

    def check_structure(
        self,
        content: GrammarSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if not content.grammar_point.strip():
            issues.append("Grammar point is missing")
        if len(content.explanation.form.strip()) < 10:
            issues.append("Grammar explanation is missing the form")
        if len(content.explanation.usage.strip()) < 10:
            issues.append("Grammar explanation is missing the usage")

        if len(content.examples) < MIN_GRAMMAR_EXAMPLES:
            issues.append(
                f"Expected at least {MIN_GRAMMAR_EXAMPLES} examples, got {len(content.examples)}"
            )
        for index, example in enumerate(content.examples, 1):
            if not re.match(r"^[A-Z\"']", example) or not re.search(r"[.!?][\"']?$", example):
                warnings.append(f"Example {index} is not a complete sentence")

        if len(content.exercises) < MIN_GRAMMAR_EXERCISES:
            issues.append(
                f"Expected at least {MIN_GRAMMAR_EXERCISES} exercises, got {len(content.exercises)}"
            )
        for index, exercise in enumerate(content.exercises, 1):
            if len(exercise.prompt.strip()) < 5:
                issues.append(f"Exercise {index} has no prompt")
            if not exercise.answer.strip():
                issues.append(f"Exercise {index} has no answer")

    def check_integration(
        self,
        content: GrammarSection,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        keywords = theme_keywords(context) + [v.lower() for v in vocabulary]
        material = content.examples + [e.prompt for e in content.exercises]
        if keywords and material and not any(mentions_any(m, keywords) for m in material):
            warnings.append("Grammar examples are not connected to the lesson topic")

    def score_bonus(self, content: GrammarSection) -> int:
        return 10 if len(content.exercises) >= MIN_GRAMMAR_EXERCISES else 0
