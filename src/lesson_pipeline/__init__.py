"""
Progressive Lesson Generation Pipeline

This package turns a source document into a structured language lesson
calibrated to one of five proficiency tiers (A1-C1). Every section is
generated by an LLM, validated against structural and tier rules, and
regenerated once with narrowed instructions when it fails.

**Version**: 0.1.0
**Python**: >=3.11
**Key Dependencies**: openai, instructor, pydantic, langfuse, loguru
"""

__version__ = "0.1.0"

from lesson_pipeline.errors import LessonPipelineError
from lesson_pipeline.models.schema import (
    GenerationRequest,
    LessonArtifact,
    SourceDocument,
    SourceMetadata,
    Tier,
)
from lesson_pipeline.orchestrator import LessonPipeline, plan_sections

__all__ = [
    "__version__",
    "GenerationRequest",
    "LessonArtifact",
    "LessonPipeline",
    "LessonPipelineError",
    "SourceDocument",
    "SourceMetadata",
    "Tier",
    "plan_sections",
]
