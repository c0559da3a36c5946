"""In-process conversation store with optimistic version checks."""
import logging
import threading
from datetime import datetime
from typing import Dict, List

from remedymate.application.ports import ConversationStorePort
from remedymate.domain.errors import (
    ConversationConflictError,
    ConversationNotActiveError,
    ConversationNotFoundError,
    ConversationStateError,
    OutOfOrderAnswerError,
)
from remedymate.domain.models import (
    Answer,
    Conversation,
    ConversationStatus,
    HealthReport,
    utc_now,
)


logger = logging.getLogger(__name__)


class InMemoryConversationStore(ConversationStorePort):
    """
    Keeps conversations in a dict guarded by a lock.

    Callers always receive deep copies, so nothing they mutate leaks back
    into the store without going through a write method. Every write bumps
    the conversation's version.
    """

    def __init__(self):
        self._conversations: Dict[str, Conversation] = {}
        self._lock = threading.Lock()

    def _load(self, conversation_id: str) -> Conversation:
        try:
            return self._conversations[conversation_id]
        except KeyError:
            raise ConversationNotFoundError(conversation_id)

    def _save(self, conversation: Conversation) -> Conversation:
        conversation.version += 1
        conversation.updated_at = utc_now()
        self._conversations[conversation.id] = conversation
        return conversation.model_copy(deep=True)

    @staticmethod
    def _require_active(conversation: Conversation) -> None:
        if not conversation.is_active:
            raise ConversationNotActiveError(conversation.id, conversation.status.value)

    def create(self, conversation: Conversation) -> Conversation:
        with self._lock:
            if conversation.id in self._conversations:
                raise ConversationStateError(
                    f"Conversation '{conversation.id}' already exists",
                    conversation.id,
                    code="CONVERSATION_EXISTS",
                )
            stored = conversation.model_copy(deep=True)
            self._conversations[stored.id] = stored
            logger.debug("Stored conversation %s", stored.id)
            return stored.model_copy(deep=True)

    def get(self, conversation_id: str) -> Conversation:
        with self._lock:
            return self._load(conversation_id).model_copy(deep=True)

    def update(self, conversation: Conversation) -> Conversation:
        with self._lock:
            current = self._load(conversation.id)
            if current.version != conversation.version:
                raise ConversationConflictError(conversation.id, conversation.version, current.version)
            self._require_active(current)
            return self._save(conversation.model_copy(deep=True))

    def append_answer(self, conversation_id: str, answer: Answer, expected_version: int) -> Conversation:
        with self._lock:
            current = self._load(conversation_id)
            if current.version != expected_version:
                raise ConversationConflictError(conversation_id, expected_version, current.version)
            self._require_active(current)

            question = current.current_question
            if question is None or question.id != answer.question_id:
                raise OutOfOrderAnswerError(conversation_id, question.id if question else 0, answer.question_id)

            updated = current.model_copy(deep=True)
            updated.answers.append(answer.model_copy())
            updated.current_step += 1
            return self._save(updated)

    def set_status(self, conversation_id: str, status: ConversationStatus) -> Conversation:
        with self._lock:
            current = self._load(conversation_id)
            self._require_active(current)
            updated = current.model_copy(deep=True)
            updated.status = status
            if status == ConversationStatus.COMPLETE:
                updated.completed_at = utc_now()
            return self._save(updated)

    def set_final_report(self, conversation_id: str, report: HealthReport) -> Conversation:
        with self._lock:
            current = self._load(conversation_id)
            if current.final_report is not None:
                raise ConversationStateError(
                    "Final report is already set",
                    conversation_id,
                    code="REPORT_ALREADY_SET",
                )
            updated = current.model_copy(deep=True)
            updated.final_report = report
            return self._save(updated)

    def find_active_created_before(self, cutoff: datetime) -> List[Conversation]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._conversations.values()
                if c.is_active and c.created_at < cutoff
            ]
