"""Base validator for all lesson sections.

Validators run their checks in a fixed order:
1. structure: counts and format against the fixed section targets
2. tier fit: phrases above the requested tier, under-complexity at high tiers
3. leakage: source-specific facts where only prior knowledge is wanted
4. integration: shared vocabulary appearing verbatim where it should

Blocking problems go to ``issues``; non-blocking notes go to ``warnings``.
Fixed-count shortfalls and leakage are also listed in ``critical``: a
section showing them is never accepted in degraded form.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from pydantic import BaseModel

from lesson_pipeline.models.schema import GenerationContext, SectionName, ValidationOutcome

logger = logging.getLogger(__name__)


class BaseSectionValidator(ABC):
    """Abstract base class for section validators.

    Subclasses must implement:
    - section (class attribute): SectionName this validator checks
    - check_structure(): count and format checks

    and may override:
    - check_fixed_counts(): exact item counts the section must always meet
    - check_tier_fit(), check_leakage(), check_integration()
    - score_bonus(): extra points for meeting the structural target
    """

    section: SectionName
    issue_penalty = 20
    warning_penalty = 5

    def validate(
        self,
        content: BaseModel,
        context: GenerationContext,
        vocabulary: Sequence[str] = (),
    ) -> ValidationOutcome:
        """Validate one generation attempt.

        Args:
            content: Section record returned by the generator
            context: Shared generation context
            vocabulary: Lesson vocabulary the section is expected to reinforce

        Returns:
            ValidationOutcome with issues, warnings and a 0-100 score
        """
        critical: List[str] = []
        warnings: List[str] = []

        self.check_fixed_counts(content, critical)
        issues: List[str] = list(critical)
        self.check_structure(content, context, issues, warnings)
        self.check_tier_fit(content, context, issues, warnings)

        leaks: List[str] = []
        self.check_leakage(content, context, leaks, warnings)
        critical.extend(leaks)
        issues.extend(leaks)

        self.check_integration(content, context, list(vocabulary), issues, warnings)

        outcome = ValidationOutcome(
            issues=issues,
            warnings=warnings,
            critical=critical,
            score=self.score(issues, warnings, content),
        )

        if issues:
            logger.warning(
                f"{self.section.value} validation failed: {len(issues)} issue(s)",
                extra={"section": self.section.value, "issues": issues[:5], "score": outcome.score},
            )
        elif warnings:
            logger.info(
                f"{self.section.value} validation passed with {len(warnings)} warning(s)",
                extra={"section": self.section.value, "warnings": warnings[:5], "score": outcome.score},
            )
        return outcome

    def check_fixed_counts(self, content: BaseModel, critical: List[str]) -> None:
        return None

    @abstractmethod
    def check_structure(
        self,
        content: BaseModel,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        pass

    def check_tier_fit(
        self,
        content: BaseModel,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        return None

    def check_leakage(
        self,
        content: BaseModel,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        return None

    def check_integration(
        self,
        content: BaseModel,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        return None

    def score_bonus(self, content: BaseModel) -> int:
        return 0

    def score(self, issues: List[str], warnings: List[str], content: BaseModel) -> int:
        value = 100
        value -= len(issues) * self.issue_penalty
        value -= len(warnings) * self.warning_penalty
        value += self.score_bonus(content)
        return max(0, min(100, value))


def theme_keywords(context: GenerationContext) -> List[str]:
    """Significant words of the main themes, used for relevance checks."""
    skip = {"the", "and", "for", "with", "from", "about"}
    keywords = []
    for theme in context.main_themes:
        for word in theme.lower().split():
            if len(word) > 3 and word not in skip and word not in keywords:
                keywords.append(word)
    return keywords


def mentions_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)
