"""Structural floor for source documents.

Runs before any adapter call so unusable input never costs a request. The
extraction collaborator's hints are trusted for tier suggestion only; word
and sentence counts are always recomputed here.
"""

import logging
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from lesson_pipeline.constants import MIN_SOURCE_QUALITY, MIN_SOURCE_SENTENCES, MIN_SOURCE_WORDS
from lesson_pipeline.errors import ContentInsufficient
from lesson_pipeline.models.schema import SourceDocument, Tier
from lesson_pipeline.utils.text import split_sentences

logger = logging.getLogger(__name__)


class QualityFactors(BaseModel):
    word_count: int
    sentence_count: int
    average_words_per_sentence: float
    has_varied_vocabulary: bool
    has_complete_thoughts: bool


class QualityScore(BaseModel):
    score: int = Field(..., ge=0, le=100)
    factors: QualityFactors


class ContentCheck(BaseModel):
    """Outcome of the structural floor check."""

    is_valid: bool
    reason: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    quality: Optional[QualityScore] = None


def sanitize(text: str) -> str:
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"[^\w\s.,!?;:'\"()-]", "", text)
    return text.strip()


def get_words(text: str) -> List[str]:
    return [w for w in text.split() if re.search(r"\w", w)]


class ContentValidator:
    """Checks that a document can support a lesson."""

    def __init__(
        self,
        min_words: int = MIN_SOURCE_WORDS,
        min_sentences: int = MIN_SOURCE_SENTENCES,
        min_quality: int = MIN_SOURCE_QUALITY,
    ):
        self.min_words = min_words
        self.min_sentences = min_sentences
        self.min_quality = min_quality

    def validate(self, text: str) -> ContentCheck:
        """Apply the floor: non-empty, word count, sentence count, quality score."""
        clean = sanitize(text)
        if not clean:
            return ContentCheck(
                is_valid=False,
                reason="No content provided",
                suggestions=["Please select or paste some text content to generate a lesson from"],
            )

        count = len(get_words(clean))
        if count < self.min_words:
            return ContentCheck(
                is_valid=False,
                reason=f"Content too short ({count} words, minimum {self.min_words} required)",
                suggestions=[
                    "Select more text from the webpage",
                    "Choose a longer article or passage",
                    "Combine multiple paragraphs for better lesson content",
                ],
            )

        sentences = len(split_sentences(clean))
        if sentences < self.min_sentences:
            return ContentCheck(
                is_valid=False,
                reason=(
                    f"Content lacks structure ({sentences} sentences, "
                    f"minimum {self.min_sentences} required)"
                ),
                suggestions=[
                    "Select content with complete sentences",
                    "Choose text with proper punctuation",
                    "Avoid selecting only titles or bullet points",
                ],
            )

        quality = self.quality(clean)
        if quality.score < self.min_quality:
            return ContentCheck(
                is_valid=False,
                reason=f"Content quality insufficient for lesson generation (score: {quality.score}/100)",
                suggestions=self.improvement_suggestions(quality),
                quality=quality,
            )
        return ContentCheck(is_valid=True, quality=quality)

    def ensure_sufficient(self, document: SourceDocument) -> ContentCheck:
        """Validate a document, raising ``ContentInsufficient`` when it fails.

        Raises:
            ContentInsufficient: The document is below the structural floor
        """
        check = self.validate(document.text)
        if not check.is_valid:
            logger.warning(
                f"Source document rejected: {check.reason}",
                extra={"reason": check.reason},
            )
            raise ContentInsufficient(check.reason or "unknown", check.suggestions)
        return check

    def quality(self, text: str) -> QualityScore:
        """Score 0-100: word count 30, sentence length 25, variety 25, complete sentences 20."""
        clean = sanitize(text)
        tokens = get_words(clean)
        sentences = split_sentences(clean)
        count = len(tokens)
        sentence_count = len(sentences)
        average = count / sentence_count if sentence_count else 0.0

        variety = len({t.lower() for t in tokens}) / count if count else 0.0
        complete = sum(1 for s in sentences if re.search(r"[.!?]$", s))
        complete_ratio = complete / sentence_count if sentence_count else 0.0

        score = 0.0
        if count >= self.min_words:
            score += min(30.0, count / 200 * 30)
        if 8 <= average <= 25:
            score += 25
        elif average >= 5:
            score += 15
        if variety > 0.4:
            score += 25
        elif variety > 0.25:
            score += 15
        if complete_ratio > 0.7:
            score += 20
        elif complete_ratio > 0.5:
            score += 10

        return QualityScore(
            score=int(score + 0.5),
            factors=QualityFactors(
                word_count=count,
                sentence_count=sentence_count,
                average_words_per_sentence=round(average, 1),
                has_varied_vocabulary=variety > 0.4,
                has_complete_thoughts=complete_ratio > 0.7,
            ),
        )

    @staticmethod
    def improvement_suggestions(quality: QualityScore) -> List[str]:
        factors = quality.factors
        suggestions = []
        if factors.word_count < 100:
            suggestions.append("Select longer content with more detailed information")
        if factors.average_words_per_sentence < 8:
            suggestions.append("Choose content with more complex, complete sentences")
        if not factors.has_varied_vocabulary:
            suggestions.append("Select content with more diverse vocabulary and topics")
        if not factors.has_complete_thoughts:
            suggestions.append("Choose well-structured text with proper punctuation")
        if not suggestions:
            suggestions.append(
                "Try selecting different content that is more suitable for language learning"
            )
        return suggestions

    def suggest_tier(self, document: SourceDocument) -> Tier:
        """Tier suggested by the extraction hints, else by text complexity."""
        if document.hints is not None and document.hints.suggested_tier is not None:
            return document.hints.suggested_tier

        clean = sanitize(document.text)
        tokens = get_words(clean)
        sentences = split_sentences(clean)
        if not tokens or not sentences:
            return Tier.B1
        average_sentence = len(tokens) / len(sentences)
        average_word = sum(len(t.strip(".,!?;:'\"()")) for t in tokens) / len(tokens)

        if average_sentence < 8 and average_word < 4.5:
            return Tier.A1
        if average_sentence < 12:
            return Tier.A2
        if average_sentence < 17:
            return Tier.B1
        if average_sentence < 22 or average_word < 5.5:
            return Tier.B2
        return Tier.C1
