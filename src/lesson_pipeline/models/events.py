"""Events emitted on the progress stream.

Serialised with camelCase keys for transport consumers, e.g.::

    data: {"type": "progress", "step": "Generating vocabulary", "progress": 25, ...}
"""

import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lesson_pipeline.models.schema import LessonArtifact, ProgressUpdate


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_sse(self) -> str:
        """Render as a server-sent-events frame."""
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


class ProgressEvent(_EventModel):
    type: Literal["progress"] = "progress"
    step: str
    progress: int = Field(..., ge=0, le=100)
    phase: str
    section: Optional[str] = None

    @classmethod
    def from_update(cls, update: ProgressUpdate) -> "ProgressEvent":
        return cls(
            step=update.step,
            progress=update.progress,
            phase=update.phase,
            section=update.section,
        )


class CompleteEvent(_EventModel):
    type: Literal["complete"] = "complete"
    step: str = "Lesson ready"
    progress: int = 100
    artifact: LessonArtifact


class ErrorDetail(_EventModel):
    kind: str
    message: str
    error_id: str
    title: Optional[str] = None
    actionable_steps: Optional[list] = None


class ProgressState(_EventModel):
    step: str
    progress: int
    phase: str
    section: Optional[str] = None


class ErrorEvent(_EventModel):
    type: Literal["error"] = "error"
    error: ErrorDetail
    progress_state: ProgressState


PipelineEvent = Union[ProgressEvent, CompleteEvent, ErrorEvent]
