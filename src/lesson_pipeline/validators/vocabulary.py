"""Validator for the vocabulary section.

Each word needs exactly the tier's number of example sentences, every
example must use the word, start with a capital, end with punctuation and
sit inside the tier's word-count band.
"""

import math
import re
from typing import List

from lesson_pipeline.models.schema import GenerationContext, SectionName, Tier
from lesson_pipeline.models.sections import VocabularyEntry, VocabularySection
from lesson_pipeline.prompts.tier_guidance import guidance_for
from lesson_pipeline.validators.base import BaseSectionValidator, theme_keywords

GENERIC_PATTERNS = [
    re.compile(r"^(I|You|We|They|He|She)\s+(am|is|are|was|were|have|has|had)\s+", re.I),
    re.compile(r"\b(very|really|so|quite)\s+\w+\b", re.I),
]
SUMMARY_SKIP = {"about", "their", "which", "these", "those", "there", "where"}


class VocabularyValidator(BaseSectionValidator):
    section = SectionName.VOCABULARY
    issue_penalty = 10

    def check_structure(
        self,
        content: VocabularySection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        if not content.words:
            issues.append("No vocabulary words generated")
            return

        expected = guidance_for(context.tier).examples_per_word
        for entry in content.words:
            if not entry.meaning.strip():
                issues.append(f'Word "{entry.word}" has no definition')
            if len(entry.examples) != expected:
                issues.append(
                    f'Word "{entry.word}": expected {expected} examples for '
                    f"{context.tier.value}, got {len(entry.examples)}"
                )
            for index, example in enumerate(entry.examples, 1):
                if entry.word.lower() not in example.lower():
                    issues.append(f'Example {index} for "{entry.word}" does not contain the word')
                if not re.match(r"^[A-Z\"']", example):
                    issues.append(f'Example {index} for "{entry.word}" should start with a capital letter')
                if not re.search(r"[.!?][\"']?$", example):
                    issues.append(f'Example {index} for "{entry.word}" should end with punctuation')

            starts = {" ".join(ex.split()[:2]).lower() for ex in entry.examples}
            if entry.examples and len(starts) < len(entry.examples) * 0.7:
                warnings.append(
                    f'Examples for "{entry.word}" may lack structural diversity '
                    f"({len(starts)} unique starts out of {len(entry.examples)})"
                )

    def check_tier_fit(
        self,
        content: VocabularySection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        low, high = guidance_for(context.tier).example_word_range
        for entry in content.words:
            for index, example in enumerate(entry.examples, 1):
                count = len(example.split())
                if count < low:
                    issues.append(
                        f'Example {index} for "{entry.word}" too short: {count} words '
                        f"(minimum {low} for {context.tier.value})"
                    )
                elif count > high:
                    warnings.append(
                        f'Example {index} for "{entry.word}" may be too long: {count} words '
                        f"(recommended max {high} for {context.tier.value})"
                    )

    def check_integration(
        self,
        content: VocabularySection,
        context: GenerationContext,
        vocabulary: List[str],
        issues: List[str],
        warnings: List[str],
    ) -> None:
        # Examples should stay on topic rather than being generic dictionary sentences
        if not context.main_themes:
            return
        keywords = theme_keywords(context)
        summary_words = [
            w for w in context.content_summary.lower().split() if len(w) > 4 and w not in SUMMARY_SKIP
        ]
        for entry in content.words:
            relevant = [self._is_relevant(entry, ex, keywords, summary_words, context) for ex in entry.examples]
            threshold = math.ceil(len(entry.examples) * 0.6)
            if sum(relevant) < threshold:
                warnings.append(
                    f'Only {sum(relevant)}/{len(entry.examples)} examples for "{entry.word}" '
                    f"are contextually relevant (expected at least {threshold})"
                )
            if context.tier >= Tier.B2:
                for index, (example, is_relevant) in enumerate(zip(entry.examples, relevant), 1):
                    if not is_relevant and any(p.search(example) for p in GENERIC_PATTERNS):
                        warnings.append(
                            f'Example {index} for "{entry.word}" may be too generic for {context.tier.value}'
                        )

    @staticmethod
    def _is_relevant(
        entry: VocabularyEntry,
        example: str,
        keywords: List[str],
        summary_words: List[str],
        context: GenerationContext,
    ) -> bool:
        lowered = example.lower()
        if any(k in lowered for k in keywords):
            return True
        word = entry.word.lower()
        if any(v != word and len(v) > 3 and v in lowered for v in context.ranked_vocabulary):
            return True
        return any(w.strip(".,!?;:") in lowered for w in summary_words if w.strip(".,!?;:"))
