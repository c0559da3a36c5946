"""
Error hierarchy for triage, topic mapping, guidance and conversations.

Every error carries a machine-readable code and a details dict (stage,
conversation id, ...) so callers can map it to a response without parsing
messages. Raw model output never goes into a message.
"""
from typing import Any, Dict, Optional


class RemedyMateError(Exception):
    """Base exception for all RemedyMate errors."""

    retryable = False

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def with_context(self, **context: Any) -> "RemedyMateError":
        """Attach context (stage, conversation_id) without overwriting what is already set."""
        for key, value in context.items():
            if value is not None:
                self.details.setdefault(key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


# --- caller input -----------------------------------------------------------

class InvalidInputError(RemedyMateError):
    """Caller-supplied text or language failed validation."""

    def __init__(self, message: str, field: str = "unknown", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="INVALID_INPUT",
            details={"field": field, **(details or {})}
        )
        self.field = field


class InvalidSymptomError(InvalidInputError):
    """The symptom text was rejected as not describing a health complaint."""

    def __init__(self, feedback: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(feedback, field="symptom", details=details)
        self.code = "INVALID_SYMPTOM"
        self.feedback = feedback


# --- language-model gateway -------------------------------------------------

class GatewayError(RemedyMateError):
    """The language-model gateway could not produce a response."""

    retryable = True


class GatewayTimeoutError(GatewayError):
    def __init__(self, message: str = "Language model call timed out", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="GATEWAY_TIMEOUT", details=details)


class DeadlineExceededError(GatewayTimeoutError):
    """The caller's own time budget ran out; nothing downstream can still succeed."""

    retryable = False

    def __init__(self, message: str = "Deadline exceeded before the language model call",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)
        self.code = "DEADLINE_EXCEEDED"


class GatewayUnavailableError(GatewayError):
    def __init__(self, message: str = "Language model is unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="GATEWAY_UNAVAILABLE", details=details)


class MalformedModelResponseError(RemedyMateError):
    """The model answered, but not in the structure that was asked for."""

    def __init__(self, message: str, stage: str = "unknown", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="MALFORMED_MODEL_RESPONSE",
            details={"stage": stage, **(details or {})}
        )
        self.stage = stage


class ClassificationFailedError(MalformedModelResponseError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, stage="triage", details=details)
        self.code = "CLASSIFICATION_FAILED"


class ReportGenerationFailedError(MalformedModelResponseError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, stage="health_report", details=details)
        self.code = "REPORT_GENERATION_FAILED"


# --- conversations ----------------------------------------------------------

class ConversationNotFoundError(RemedyMateError):
    def __init__(self, conversation_id: str):
        super().__init__(
            f"Conversation '{conversation_id}' not found",
            code="CONVERSATION_NOT_FOUND",
            details={"conversation_id": conversation_id}
        )
        self.conversation_id = conversation_id


class ConversationStateError(RemedyMateError):
    """The requested transition is not legal in the conversation's current state."""

    def __init__(self, message: str, conversation_id: str, code: str = "INVALID_CONVERSATION_STATE",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details={"conversation_id": conversation_id, **(details or {})})
        self.conversation_id = conversation_id


class ConversationNotActiveError(ConversationStateError):
    def __init__(self, conversation_id: str, status: str):
        super().__init__(
            f"Conversation '{conversation_id}' is not active (status {status})",
            conversation_id,
            code="CONVERSATION_NOT_ACTIVE",
            details={"status": status}
        )
        self.status = status


class OutOfOrderAnswerError(ConversationStateError):
    def __init__(self, conversation_id: str, expected_question_id: int, received_question_id: int):
        super().__init__(
            f"Expected an answer to question {expected_question_id}, got question {received_question_id}",
            conversation_id,
            code="OUT_OF_ORDER_ANSWER",
            details={"expected_question_id": expected_question_id,
                     "received_question_id": received_question_id}
        )


class ReportNotReadyError(ConversationStateError):
    def __init__(self, conversation_id: str, status: str):
        super().__init__(
            f"Conversation '{conversation_id}' is not complete",
            conversation_id,
            code="REPORT_NOT_READY",
            details={"status": status}
        )


class ConversationConflictError(RemedyMateError):
    """Another writer changed the conversation since it was read."""

    def __init__(self, conversation_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Conversation '{conversation_id}' was modified concurrently",
            code="CONVERSATION_CONFLICT",
            details={"conversation_id": conversation_id,
                     "expected_version": expected_version,
                     "actual_version": actual_version}
        )


# --- topics and content -----------------------------------------------------

class UnknownTopicKeyError(RemedyMateError):
    """A topic key outside the closed enumeration was produced or requested."""

    def __init__(self, topic_key: str, message: Optional[str] = None, code: str = "UNKNOWN_TOPIC_KEY"):
        super().__init__(
            message or f"Unknown topic key '{topic_key}'",
            code=code,
            details={"topic_key": topic_key}
        )
        self.topic_key = topic_key


class TopicNotFoundError(UnknownTopicKeyError):
    def __init__(self, topic_key: str):
        super().__init__(topic_key, f"Topic '{topic_key}' not found", code="TOPIC_NOT_FOUND")


class NoTopicMatchError(RemedyMateError):
    def __init__(self, message: str = "No topic could be mapped from the provided symptoms"):
        super().__init__(message, code="NO_TOPIC_MATCH", details={"stage": "topic_mapping"})


class LanguageNotAvailableError(RemedyMateError):
    def __init__(self, topic_key: str, language: str):
        super().__init__(
            f"Language '{language}' not available for topic '{topic_key}'",
            code="LANGUAGE_NOT_AVAILABLE",
            details={"topic_key": topic_key, "language": language}
        )


class ContentLoadError(RemedyMateError):
    def __init__(self, message: str, path: str = ""):
        super().__init__(message, code="CONTENT_LOAD_ERROR", details={"path": path})
