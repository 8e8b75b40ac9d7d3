"""Pydantic models for the lesson generation pipeline.

This module defines the request, context and bookkeeping records that flow
between the pipeline components. Section content records live in
``models.sections`` and streamed events in ``models.events``.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, field_validator

from lesson_pipeline.constants import DEFAULT_PHASE_WEIGHTS
from lesson_pipeline.errors import GenerationCancelled


# ============================================================================
# Enums
# ============================================================================


class Tier(str, Enum):
    """Proficiency tier (CEFR), ordered beginner to advanced.

    Members compare ordinally, so ``Tier.A2 < Tier.B1`` holds and rules such
    as "at or below A2" can be written as ``tier <= Tier.A2``.
    """

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def _compare(self, other, op):
        if not isinstance(other, Tier):
            return NotImplemented
        return op(self.rank, other.rank)

    def __lt__(self, other):
        return self._compare(other, lambda a, b: a < b)

    def __le__(self, other):
        return self._compare(other, lambda a, b: a <= b)

    def __gt__(self, other):
        return self._compare(other, lambda a, b: a > b)

    def __ge__(self, other):
        return self._compare(other, lambda a, b: a >= b)

    @classmethod
    def parse(cls, value: "str | Tier") -> "Tier":
        """Parse a tier from CEFR code, ``T1``..``T5`` or a level name.

        Raises:
            ValueError: If the value names no known tier
        """
        if isinstance(value, Tier):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key in _TIER_ALIASES:
            return _TIER_ALIASES[key]
        raise ValueError(f"Unknown proficiency tier: {value!r}")


_TIER_ORDER = [Tier.A1, Tier.A2, Tier.B1, Tier.B2, Tier.C1]

_TIER_ALIASES: Dict[str, Tier] = {}
for _index, _tier in enumerate(_TIER_ORDER):
    _TIER_ALIASES[_tier.value.lower()] = _tier
    _TIER_ALIASES[f"t{_index + 1}"] = _tier
for _name, _tier in (
    ("beginner", Tier.A1),
    ("elementary", Tier.A2),
    ("intermediate", Tier.B1),
    ("upper-intermediate", Tier.B2),
    ("advanced", Tier.C1),
):
    _TIER_ALIASES[_name] = _tier


class FailurePolicy(str, Enum):
    """What the regeneration controller does once attempts are exhausted."""

    FAIL = "fail"
    DEGRADE = "degrade"


class SectionName(str, Enum):
    """Closed set of section kinds a lesson can contain."""

    WARMUP = "warmup"
    VOCABULARY = "vocabulary"
    READING = "reading"
    COMPREHENSION = "comprehension"
    DISCUSSION = "discussion"
    DIALOGUE_PRACTICE = "dialogue_practice"
    DIALOGUE_FILL_GAP = "dialogue_fill_gap"
    GRAMMAR = "grammar"
    PRONUNCIATION = "pronunciation"
    WRAPUP = "wrapup"

    @property
    def phase(self) -> str:
        """Progress phase reported for this section."""
        if self in (SectionName.DIALOGUE_PRACTICE, SectionName.DIALOGUE_FILL_GAP):
            return "dialogue"
        return self.value

    @property
    def failure_policy(self) -> FailurePolicy:
        # Structural sections have no safe partial form
        if self in (
            SectionName.DIALOGUE_PRACTICE,
            SectionName.DIALOGUE_FILL_GAP,
            SectionName.GRAMMAR,
            SectionName.PRONUNCIATION,
        ):
            return FailurePolicy.FAIL
        return FailurePolicy.DEGRADE

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


# ============================================================================
# Source document
# ============================================================================


class SourceMetadata(BaseModel):
    """Optional descriptive metadata supplied with a source document."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = Field(default=None, description="Document title")
    url: Optional[str] = Field(default=None, description="Original URL")
    domain: Optional[str] = Field(default=None, description="Source domain")


class SuitabilityHints(BaseModel):
    """Hints from the content extraction collaborator.

    Trusted for tier suggestion only; the structural floor is always
    re-checked by the pipeline.
    """

    model_config = ConfigDict(frozen=True)

    word_count: Optional[int] = Field(default=None, ge=0)
    detected_language: Optional[str] = None
    content_category: Optional[str] = None
    suggested_tier: Optional[Tier] = None


class SourceDocument(BaseModel):
    """Immutable input document owned by the caller."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Cleaned document text")
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)
    hints: Optional[SuitabilityHints] = None


# ============================================================================
# Generation request and shared context
# ============================================================================


@dataclass(frozen=True)
class GenerationRequest:
    """Everything one artifact generation needs, threaded through every call.

    No state survives between requests: two concurrent requests share
    nothing but the adapter.
    """

    document: SourceDocument
    tier: Tier
    target_language: str = "English"
    artifact_kind: str = "discussion"
    request_id: str = field(default_factory=lambda: uuid4().hex)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event, compare=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ``GenerationCancelled`` when the caller has gone away."""
        if self.cancel_event.is_set():
            raise GenerationCancelled(self.request_id)


class GenerationContext(BaseModel):
    """Summary, vocabulary and themes derived once per artifact.

    Read-only after construction; every section generator receives the
    same instance.
    """

    model_config = ConfigDict(frozen=True)

    tier: Tier
    target_language: str
    content_summary: str
    ranked_vocabulary: List[str] = Field(default_factory=list)
    main_themes: List[str] = Field(default_factory=list)
    source_excerpt: str = Field(
        default="", description="Leading slice of the source used for rewriting"
    )
    source_entities: List[str] = Field(
        default_factory=list,
        description="Named entities and years found in the source",
    )
    artifact_kind: str = "discussion"

    @property
    def main_theme(self) -> str:
        return self.main_themes[0] if self.main_themes else "general topics"


# ============================================================================
# Sections, validation and progress
# ============================================================================


class SectionSpec(BaseModel):
    """Static node of the section dependency graph."""

    model_config = ConfigDict(frozen=True)

    name: SectionName
    depends_on: List[SectionName] = Field(default_factory=list)


class ValidationOutcome(BaseModel):
    """Result of validating one generation attempt."""

    issues: List[str] = Field(default_factory=list, description="Blocking problems")
    warnings: List[str] = Field(default_factory=list, description="Non-blocking notes")
    critical: List[str] = Field(
        default_factory=list,
        description="Issues (also listed in issues) that may never be downgraded to warnings",
    )
    score: int = Field(default=100, ge=0, le=100, description="0-100 quality score")

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def is_degradable(self) -> bool:
        return not self.critical


class SectionResult(BaseModel):
    """Accepted (or degraded) content of one section."""

    name: SectionName
    content: SerializeAsAny[BaseModel]
    attempts: int = Field(..., ge=1)
    quality_score: int = Field(default=100, ge=0, le=100)
    warnings: List[str] = Field(default_factory=list)
    degraded: bool = False


class ProgressUpdate(BaseModel):
    """One progress notification; the last one seen is the progress state."""

    model_config = ConfigDict(frozen=True)

    step: str
    progress: int = Field(..., ge=0, le=100)
    phase: str
    section: Optional[str] = None

    def as_state(self) -> Dict[str, object]:
        return self.model_dump(exclude_none=True)


class PhaseWeights(BaseModel):
    """Relative weight of each section in overall progress.

    Weights need not sum to anything; the aggregator normalises over the
    sections planned for one artifact.
    """

    weights: Dict[SectionName, float] = Field(default_factory=dict)

    @field_validator("weights")
    @classmethod
    def weights_non_negative(cls, v: Dict[SectionName, float]) -> Dict[SectionName, float]:
        for name, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for {name.value} must be >= 0, got {weight}")
        return v

    @classmethod
    def default(cls) -> "PhaseWeights":
        return cls(weights={SectionName(k): v for k, v in DEFAULT_PHASE_WEIGHTS.items()})

    def weight_of(self, name: SectionName) -> float:
        return self.weights.get(name, 0.0)


class LessonArtifact(BaseModel):
    """Assembled lesson handed to the rendering collaborator."""

    request_id: str
    title: str
    tier: Tier
    target_language: str
    artifact_kind: str
    sections: Dict[str, SerializeAsAny[BaseModel]] = Field(
        default_factory=dict, description="Section name to structured content"
    )
    section_warnings: Dict[str, List[str]] = Field(default_factory=dict)
    attempts: Dict[str, int] = Field(default_factory=dict)
    quality: Dict[str, object] = Field(default_factory=dict)

    def to_record(self) -> Dict[str, object]:
        return self.model_dump(mode="json")
