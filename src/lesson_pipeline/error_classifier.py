"""Error classification for user-facing and support messages.

Typed pipeline failures map directly to a classified type; anything else is
classified from its status code and message text.
"""

import logging
import time
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lesson_pipeline.constants import SUPPORT_CONTACT
from lesson_pipeline.errors import (
    ContentInsufficient,
    MalformedResponse,
    ServiceUnavailable,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONTENT_ISSUE = "CONTENT_ISSUE"
    UNKNOWN = "UNKNOWN"


QUOTA_INDICATORS = ("quota", "rate limit", "too many requests", "limit exceeded", "429", "resource_exhausted")
NETWORK_INDICATORS = ("network", "connection", "timeout", "fetch", "econnrefused", "enotfound", "etimedout")
CONTENT_INDICATORS = (
    "invalid input",
    "content too short",
    "unsupported format",
    "parsing error",
    "invalid content",
    "content validation",
    "invalid_argument",
)


@dataclass
class ClassifiedError:
    type: ErrorType
    original_error: BaseException
    context: Dict[str, Any] = field(default_factory=dict)
    error_id: str = ""


class UserErrorMessage(BaseModel):
    title: str
    message: str
    actionable_steps: List[str] = Field(default_factory=list)
    error_id: str
    support_contact: Optional[str] = None


class SupportErrorMessage(BaseModel):
    error_id: str
    type: ErrorType
    technical_details: str
    context: Dict[str, Any] = Field(default_factory=dict)
    stack_trace: Optional[str] = None
    timestamp: datetime


def generate_error_id() -> str:
    """Unique id for support tracking: ``ERR_<base36 ms>_<8 hex>``, upper-cased."""
    millis = int(time.time() * 1000)
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    encoded = ""
    while millis:
        millis, remainder = divmod(millis, 36)
        encoded = digits[remainder] + encoded
    return f"ERR_{encoded or '0'}_{uuid.uuid4().hex[:8]}".upper()


def _status_of(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    return status if isinstance(status, int) else None


class ErrorClassifier:
    """Classifies failures and renders user and support messages."""

    def classify(self, error: BaseException, context: Optional[Dict[str, Any]] = None) -> ClassifiedError:
        full_context = {"timestamp": datetime.now(UTC).isoformat()}
        full_context.update(context or {})
        classified = ClassifiedError(
            type=self.determine_type(error),
            original_error=error,
            context=full_context,
            error_id=generate_error_id(),
        )
        logger.info(
            f"Classified {type(error).__name__} as {classified.type.value}",
            extra={"error_id": classified.error_id, "error_type": classified.type.value},
        )
        return classified

    def determine_type(self, error: BaseException) -> ErrorType:
        if isinstance(error, ServiceUnavailable):
            return ErrorType.QUOTA_EXCEEDED if error.reason == "quota" else ErrorType.NETWORK_ERROR
        if isinstance(error, (ContentInsufficient, ValidationFailure, MalformedResponse)):
            return ErrorType.CONTENT_ISSUE

        text = str(error).lower()
        code = str(getattr(error, "code", "") or "").lower()
        status = _status_of(error)

        if status == 429 or any(i in text or i in code for i in QUOTA_INDICATORS):
            return ErrorType.QUOTA_EXCEEDED
        if status in (0, 502, 503, 504) or any(i in text or i in code for i in NETWORK_INDICATORS):
            return ErrorType.NETWORK_ERROR
        if status == 400 or any(i in text or i in code for i in CONTENT_INDICATORS):
            return ErrorType.CONTENT_ISSUE
        return ErrorType.UNKNOWN

    def user_message(self, classified: ClassifiedError) -> UserErrorMessage:
        if classified.type == ErrorType.QUOTA_EXCEEDED:
            return UserErrorMessage(
                title="API Quota Exceeded",
                message="API quota exceeded, please try again later",
                actionable_steps=[
                    "Wait a few minutes before trying again",
                    "Try generating a shorter lesson",
                    "Contact support if the issue persists",
                ],
                error_id=classified.error_id,
                support_contact=SUPPORT_CONTACT,
            )
        if classified.type == ErrorType.CONTENT_ISSUE:
            return UserErrorMessage(
                title="Content Processing Error",
                message="Unable to process this content, please try different text",
                actionable_steps=[
                    "Ensure the content has at least 100 words",
                    "Try selecting different text from the webpage",
                    "Check that the content is in a supported language",
                    "Remove any special characters or formatting",
                ],
                error_id=classified.error_id,
            )
        if classified.type == ErrorType.NETWORK_ERROR:
            return UserErrorMessage(
                title="Connection Error",
                message="Connection error, please check your internet and try again",
                actionable_steps=[
                    "Check your internet connection",
                    "Try refreshing the page",
                    "Wait a moment and try again",
                    "Contact support if the problem continues",
                ],
                error_id=classified.error_id,
            )
        return UserErrorMessage(
            title="Service Temporarily Unavailable",
            message="AI service temporarily unavailable, please try again later",
            actionable_steps=[
                "Wait a few minutes and try again",
                "Try refreshing the page",
                "Contact support with the error ID below",
            ],
            error_id=classified.error_id,
            support_contact=SUPPORT_CONTACT,
        )

    def support_message(self, classified: ClassifiedError) -> SupportErrorMessage:
        error = classified.original_error
        details = [f"Message: {error}"]
        code = getattr(error, "code", None)
        if code:
            details.append(f"Code: {code}")
        status = _status_of(error)
        if status:
            details.append(f"Status: {status}")
        kind = getattr(error, "kind", None)
        if kind:
            details.append(f"Kind: {kind}")

        stack = None
        if error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))

        return SupportErrorMessage(
            error_id=classified.error_id,
            type=classified.type,
            technical_details="\n".join(details),
            context=classified.context,
            stack_trace=stack,
            timestamp=datetime.fromisoformat(classified.context["timestamp"]),
        )
