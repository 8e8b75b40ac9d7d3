"""Typed failures raised by the lesson pipeline and its adapter.

Two families live here:

- Adapter failures (``AdapterError`` subclasses) are what a text generation
  adapter raises. They never leave the pipeline untranslated.
- Pipeline failures (``LessonPipelineError`` subclasses) are what callers see.
  The orchestrator attaches the last observed progress state to any of them
  before surfacing it.
"""

from typing import Any, Dict, List, Optional


# ============================================================================
# Adapter failures
# ============================================================================


class AdapterError(Exception):
    """Base class for failures reported by a text generation adapter."""


class TruncatedNoContent(AdapterError):
    """The service stopped at the output budget without usable text."""

    def __init__(self, budget: Optional[int], message: str = ""):
        self.budget = budget
        super().__init__(message or f"Response truncated with no content (budget={budget})")


class QuotaExceeded(AdapterError):
    """The service rejected the call because a quota or rate limit was hit."""


class NetworkError(AdapterError):
    """The service could not be reached or returned a gateway failure."""


# ============================================================================
# Pipeline failures
# ============================================================================


class LessonPipelineError(Exception):
    """Base class for every failure surfaced by the pipeline."""

    kind = "PIPELINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Filled in by the orchestrator right before the error leaves it
        self.progress_state: Optional[Dict[str, Any]] = None


class ContentInsufficient(LessonPipelineError):
    """Source document failed the structural floor; no adapter call was made."""

    kind = "CONTENT_INSUFFICIENT"

    def __init__(self, reason: str, suggestions: Optional[List[str]] = None):
        super().__init__(f"Content insufficient: {reason}")
        self.reason = reason
        self.suggestions = suggestions or []


class ValidationFailure(LessonPipelineError):
    """A section still failed validation after the last allowed attempt."""

    kind = "VALIDATION_FAILURE"

    def __init__(self, section: str, issues: List[str], attempts: int):
        preview = "; ".join(issues[:3])
        super().__init__(
            f"Section '{section}' failed validation after {attempts} attempt(s): {preview}"
        )
        self.section = section
        self.issues = issues
        self.attempts = attempts


class MalformedResponse(LessonPipelineError):
    """A generator could not parse the service response into its record."""

    kind = "MALFORMED_RESPONSE"

    def __init__(self, section: str, message: str):
        super().__init__(f"Malformed response for '{section}': {message}")
        self.section = section


class TokenLimitExceeded(LessonPipelineError):
    """Every step of the output budget backoff was truncated."""

    kind = "TOKEN_LIMIT_EXCEEDED"

    def __init__(self, budgets: List[Optional[int]]):
        super().__init__(f"Output truncated at every budget step: {budgets}")
        self.budgets = budgets


class ServiceUnavailable(LessonPipelineError):
    """Quota or network failure; fatal for the section, never retried."""

    kind = "SERVICE_UNAVAILABLE"

    def __init__(self, reason: str, original: Optional[BaseException] = None):
        detail = f": {original}" if original else ""
        super().__init__(f"Generation service unavailable ({reason}){detail}")
        self.reason = reason
        self.original = original


class ObserverFailure(LessonPipelineError):
    """A progress observer raised. Logged by the observer wrapper, never raised."""

    kind = "OBSERVER_FAILURE"

    def __init__(self, update: Any, original: BaseException):
        super().__init__(f"Progress observer failed: {original}")
        self.update = update
        self.original = original


class GenerationCancelled(LessonPipelineError):
    """The caller went away; remaining adapter calls were abandoned."""

    kind = "CANCELLED"

    def __init__(self, request_id: str):
        super().__init__(f"Generation cancelled for request {request_id}")
        self.request_id = request_id
