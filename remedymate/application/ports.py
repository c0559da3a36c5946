from datetime import datetime
from typing import List, Optional, Protocol

from remedymate.domain.models import (
    Answer,
    ApprovedBlock,
    ContentTranslation,
    Conversation,
    ConversationStatus,
    FlagRule,
    HealthReport,
    Language,
    TriageLevel,
)


class LLMPort(Protocol):
    def classify(self, prompt: str, timeout: Optional[float] = None) -> str:
        """
        Sends a single free-text prompt and returns the model's raw text.

        Raises GatewayTimeoutError when the timeout elapses and
        GatewayUnavailableError for any other transport or provider failure.
        """
        ...


class ContentRepositoryPort(Protocol):
    def get_rules(self, language: Language, level: TriageLevel) -> List[FlagRule]:
        ...

    def get_red_flag_rules(self, language: Language) -> List[FlagRule]:
        ...

    def get_yellow_flag_rules(self, language: Language) -> List[FlagRule]:
        ...

    def get_approved_blocks(self) -> List[ApprovedBlock]:
        ...

    def get_approved_topic_content(self, topic_key: str, language: Language) -> ContentTranslation:
        """Raises TopicNotFoundError or LanguageNotAvailableError."""
        ...


class ConversationStorePort(Protocol):
    """Each method is a single atomic operation; writers pass the version they read."""

    def create(self, conversation: Conversation) -> Conversation:
        ...

    def get(self, conversation_id: str) -> Conversation:
        """Raises ConversationNotFoundError."""
        ...

    def update(self, conversation: Conversation) -> Conversation:
        """Replaces the document; raises ConversationConflictError on a stale version."""
        ...

    def append_answer(self, conversation_id: str, answer: Answer, expected_version: int) -> Conversation:
        """Appends a valid answer and advances current_step by one."""
        ...

    def set_status(self, conversation_id: str, status: ConversationStatus) -> Conversation:
        ...

    def set_final_report(self, conversation_id: str, report: HealthReport) -> Conversation:
        ...

    def find_active_created_before(self, cutoff: datetime) -> List[Conversation]:
        ...
