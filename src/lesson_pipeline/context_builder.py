"""Shared context construction.

The context builder runs once per artifact, before any section. It asks the
adapter for a summary, ranked vocabulary and main themes; when one of those
calls fails it falls back to a local heuristic derived from the source text
instead of aborting. The context is advisory (it steers prompts and
validators) and never appears in the lesson itself.

The lesson title is produced here as well: one short call, with a
source-derived fallback.
"""

import logging
import re
from typing import List

from lesson_pipeline.constants import SOURCE_EXCERPT_CHARS, TITLE_OUTPUT_BUDGET
from lesson_pipeline.errors import ServiceUnavailable, TokenLimitExceeded
from lesson_pipeline.models.schema import GenerationContext, GenerationRequest, Tier
from lesson_pipeline.prompts.section_prompts import (
    build_summary_prompt,
    build_theme_extraction_prompt,
    build_title_prompt,
    build_vocabulary_extraction_prompt,
)
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import extract_named_entities, rank_keywords, strip_numbering

logger = logging.getLogger(__name__)

# Failures the context tolerates; cancellation always propagates
RECOVERABLE = (ServiceUnavailable, TokenLimitExceeded)

MAX_SUMMARY_CHARS = 300
FALLBACK_SUMMARY_CHARS = 200
MIN_EXTRACTED_WORDS = 6
MAX_EXTRACTED_WORDS = 12
MIN_EXTRACTED_THEMES = 2
MAX_THEMES = 5

THEME_KEYWORDS = {
    "sports": ("sport", "game", "team"),
    "business": ("business", "company", "work"),
    "travel": ("travel", "country", "culture"),
    "technology": ("technology", "computer", "internet"),
    "health": ("health", "medical", "doctor"),
}

TITLE_TOPICS = {
    "golf": "Golf Competition",
    "competition": "Sports Competition",
    "travel": "Travel & Tourism",
    "business": "Business Communication",
    "technology": "Technology Today",
    "environment": "Environmental Issues",
    "health": "Health & Wellness",
    "education": "Education System",
    "culture": "Cultural Exchange",
    "food": "Food & Cuisine",
    "sports": "Sports & Recreation",
    "music": "Music & Arts",
    "history": "Historical Events",
    "science": "Science & Discovery",
}

KIND_NAMES = {
    "discussion": "Discussion",
    "grammar": "Grammar Focus",
    "travel": "Travel & Tourism",
    "business": "Business English",
    "pronunciation": "Pronunciation Practice",
}


# ============================================================================
# Local heuristics
# ============================================================================


def fallback_summary(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= FALLBACK_SUMMARY_CHARS:
        return text
    return text[:FALLBACK_SUMMARY_CHARS] + "..."


def fallback_vocabulary(text: str) -> List[str]:
    return rank_keywords(text, limit=8)


def fallback_themes(text: str) -> List[str]:
    """Themes from a keyword table, else the top keywords of the text."""
    lowered = text.lower()
    themes = [
        theme for theme, keys in THEME_KEYWORDS.items() if any(key in lowered for key in keys)
    ]
    return themes or rank_keywords(text, limit=3)


class SharedContextBuilder:
    """Builds the ``GenerationContext`` shared by every section generator."""

    async def build(self, request: GenerationRequest, invoker: PromptInvoker) -> GenerationContext:
        """Derive summary, ranked vocabulary and themes for one request.

        Args:
            request: Current generation request
            invoker: Adapter bound to the request

        Returns:
            Read-only generation context

        Raises:
            GenerationCancelled: The request was cancelled mid-build
        """
        text = request.document.text
        tier = request.tier

        summary = await self._summary(text, tier, invoker)
        vocabulary = await self._vocabulary(text, tier, invoker)
        themes = await self._themes(text, tier, invoker)

        context = GenerationContext(
            tier=tier,
            target_language=request.target_language,
            content_summary=summary,
            ranked_vocabulary=vocabulary,
            main_themes=themes,
            source_excerpt=text[:SOURCE_EXCERPT_CHARS],
            source_entities=extract_named_entities(text),
            artifact_kind=request.artifact_kind,
        )

        logger.info(
            f"Shared context ready: {len(vocabulary)} words, {len(themes)} themes, "
            f"{len(context.source_entities)} source entities",
            extra={"request_id": request.request_id, "tier": tier.value},
        )
        return context

    async def _summary(self, text: str, tier: Tier, invoker: PromptInvoker) -> str:
        try:
            response = await invoker(build_summary_prompt(text, tier))
        except RECOVERABLE as e:
            logger.warning(f"Summary call failed, using truncation: {e}")
            return fallback_summary(text)
        summary = response.strip()[:MAX_SUMMARY_CHARS]
        return summary or fallback_summary(text)

    async def _vocabulary(self, text: str, tier: Tier, invoker: PromptInvoker) -> List[str]:
        try:
            response = await invoker(build_vocabulary_extraction_prompt(text, tier))
        except RECOVERABLE as e:
            logger.warning(f"Vocabulary extraction failed, using keyword ranking: {e}")
            return fallback_vocabulary(text)

        extracted: List[str] = []
        for line in response.splitlines():
            word = strip_numbering(line).strip(" .,;:\"'").lower()
            if 2 < len(word) < 20 and word not in extracted:
                extracted.append(word)
        if len(extracted) < MIN_EXTRACTED_WORDS:
            logger.info(
                f"Only {len(extracted)} vocabulary word(s) extracted, using keyword ranking"
            )
            return fallback_vocabulary(text)
        return extracted[:MAX_EXTRACTED_WORDS]

    async def _themes(self, text: str, tier: Tier, invoker: PromptInvoker) -> List[str]:
        try:
            response = await invoker(build_theme_extraction_prompt(text, tier))
        except RECOVERABLE as e:
            logger.warning(f"Theme extraction failed, using keyword detection: {e}")
            return fallback_themes(text)

        themes: List[str] = []
        for line in response.splitlines():
            theme = strip_numbering(line).strip(" .").lower()
            if 3 < len(theme) < 50 and theme not in themes:
                themes.append(theme)
        if len(themes) < MIN_EXTRACTED_THEMES:
            return fallback_themes(text)
        return themes[:MAX_THEMES]


# ============================================================================
# Lesson title
# ============================================================================


def fallback_title(text: str, artifact_kind: str, tier: Tier) -> str:
    """Title from a topic table, the first short proper noun, or the kind and tier."""
    lowered = text.lower()
    for keyword, topic in TITLE_TOPICS.items():
        if keyword in lowered:
            return f"{topic} Discussion"

    proper_nouns = re.findall(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b", text)
    if proper_nouns and len(proper_nouns[0]) < 20:
        return f"{proper_nouns[0]} Discussion"

    return f"{KIND_NAMES.get(artifact_kind, 'English')} - {tier.value} Level"


def is_acceptable_title(title: str) -> bool:
    return 5 < len(title) < 80 and "lesson" not in title.lower()


class LessonTitleGenerator:
    """Short contextual title for the artifact."""

    async def generate(self, request: GenerationRequest, invoker: PromptInvoker) -> str:
        text = request.document.text
        prompt = build_title_prompt(text, request.tier, request.artifact_kind)
        try:
            response = await invoker(prompt, budget=TITLE_OUTPUT_BUDGET)
        except RECOVERABLE as e:
            logger.warning(f"Title generation failed, using fallback: {e}")
            return fallback_title(text, request.artifact_kind, request.tier)

        title = re.sub(r"^Title:?\s*", "", response.strip().replace('"', "").replace("'", ""), flags=re.I)
        title = title.splitlines()[0].strip()[:80] if title else ""
        if is_acceptable_title(title):
            return title

        logger.info(f"Rejected generated title {title!r}, using fallback")
        return fallback_title(text, request.artifact_kind, request.tier)
