"""Validators for the plain question sections: comprehension, discussion, wrap-up."""

import re
from typing import List

from lesson_pipeline.constants import (
    CLOSING_QUESTION_COUNT,
    COMPREHENSION_QUESTION_COUNT,
    DISCUSSION_QUESTION_COUNT,
)
from lesson_pipeline.models.schema import GenerationContext, SectionName, Tier
from lesson_pipeline.models.sections import QuestionSection
from lesson_pipeline.prompts.tier_guidance import guidance_for
from lesson_pipeline.validators.base import BaseSectionValidator, mentions_any, theme_keywords

ANALYTICAL = re.compile(r"why do you think|what factors|how might|to what extent|in what ways|implications|evaluate")
TOO_COMPLEX_FOR_BEGINNERS = re.compile(r"hypothetically|analy[sz]e|evaluate|implications")
EXTENDED_RESPONSE = re.compile(r"^(why|how|what|in what|to what|describe|explain|which)\b", re.I)


def _check_format(questions: List[str], issues: List[str]) -> None:
    for index, question in enumerate(questions, 1):
        if not question.endswith("?"):
            issues.append(f"Question {index} doesn't end with question mark")
        if len(question) < 10:
            issues.append(f"Question {index} too short")


class ComprehensionValidator(BaseSectionValidator):
    section = SectionName.COMPREHENSION

    def check_structure(
        self,
        content: QuestionSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if len(content.questions) < COMPREHENSION_QUESTION_COUNT:
            issues.append(
                f"Expected {COMPREHENSION_QUESTION_COUNT} comprehension questions, "
                f"got {len(content.questions)}"
            )
        _check_format(content.questions, issues)


class DiscussionValidator(BaseSectionValidator):
    """Exactly five questions, varied, pitched at the tier."""

    section = SectionName.DISCUSSION

    def check_fixed_counts(self, content: QuestionSection, critical: List[str]) -> None:
        if len(content.questions) != DISCUSSION_QUESTION_COUNT:
            critical.append(
                f"Expected exactly {DISCUSSION_QUESTION_COUNT} questions, got {len(content.questions)}"
            )

    def check_structure(
        self,
        content: QuestionSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        questions = content.questions
        _check_format(questions, issues)

        starters = {q.split()[0].lower() for q in questions if q.split()}
        if questions and len(starters) < 3:
            warnings.append("Limited question variety")

    def check_tier_fit(
        self,
        content: QuestionSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        questions = content.questions
        if not questions:
            return
        text = " ".join(questions).lower()
        tier = context.tier
        if tier >= Tier.B2 and not ANALYTICAL.search(text):
            warnings.append(f"Questions lack analytical depth for {tier.value} level")
        if tier <= Tier.A2 and TOO_COMPLEX_FOR_BEGINNERS.search(text):
            warnings.append(f"Questions may be too complex for {tier.value} level")

        low, high = guidance_for(tier).discussion_word_range
        for index, question in enumerate(questions, 1):
            count = len(question.split())
            if count < low:
                warnings.append(f"Question {index} is short for {tier.value} ({count} words)")
            elif count > high:
                warnings.append(f"Question {index} is long for {tier.value} ({count} words)")
            if tier >= Tier.B1 and not EXTENDED_RESPONSE.search(question):
                warnings.append(f"Question {index} may not invite an extended response")

    def check_integration(
        self,
        content: QuestionSection,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        keywords = theme_keywords(context) + [v.lower() for v in vocabulary]
        if keywords and content.questions and not any(
            mentions_any(q, keywords) for q in content.questions
        ):
            warnings.append("Questions do not mention the lesson themes or vocabulary")

    def score_bonus(self, content: QuestionSection) -> int:
        return 10 if len(content.questions) == DISCUSSION_QUESTION_COUNT else 0


class ClosingValidator(BaseSectionValidator):
    section = SectionName.WRAPUP

    def check_structure(
        self,
        content: QuestionSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if len(content.questions) < CLOSING_QUESTION_COUNT:
            issues.append(
                f"Expected {CLOSING_QUESTION_COUNT} wrap-up questions, got {len(content.questions)}"
            )
        _check_format(content.questions, issues)
