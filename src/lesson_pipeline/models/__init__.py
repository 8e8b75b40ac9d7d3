from lesson_pipeline.models.events import (
    CompleteEvent,
    ErrorDetail,
    ErrorEvent,
    PipelineEvent,
    ProgressEvent,
    ProgressState,
)
from lesson_pipeline.models.schema import (
    FailurePolicy,
    GenerationContext,
    GenerationRequest,
    LessonArtifact,
    PhaseWeights,
    ProgressUpdate,
    SectionName,
    SectionResult,
    SectionSpec,
    SourceDocument,
    SourceMetadata,
    SuitabilityHints,
    Tier,
    ValidationOutcome,
)
from lesson_pipeline.models.sections import (
    ClosingSection,
    ComprehensionSection,
    DialogueFillGapSection,
    DialogueLine,
    DialoguePracticeSection,
    DiscussionSection,
    GrammarExercise,
    GrammarExplanation,
    GrammarSection,
    OpeningSection,
    PronunciationSection,
    PronunciationWord,
    ReadingSection,
    SectionContent,
    TongueTwister,
    VocabularyEntry,
    VocabularySection,
)

__all__ = [
    "ClosingSection",
    "CompleteEvent",
    "ComprehensionSection",
    "DialogueFillGapSection",
    "DialogueLine",
    "DialoguePracticeSection",
    "DiscussionSection",
    "ErrorDetail",
    "ErrorEvent",
    "FailurePolicy",
    "GenerationContext",
    "GenerationRequest",
    "GrammarExercise",
    "GrammarExplanation",
    "GrammarSection",
    "LessonArtifact",
    "OpeningSection",
    "PhaseWeights",
    "PipelineEvent",
    "ProgressEvent",
    "ProgressState",
    "ProgressUpdate",
    "PronunciationSection",
    "PronunciationWord",
    "ReadingSection",
    "SectionContent",
    "SectionName",
    "SectionResult",
    "SectionSpec",
    "SourceDocument",
    "SourceMetadata",
    "SuitabilityHints",
    "Tier",
    "TongueTwister",
    "ValidationOutcome",
    "VocabularyEntry",
    "VocabularySection",
]
