"""
Guided symptom conversation.

A conversation starts ACTIVE with five questions generated up front. Each
valid answer advances current_step; the answer to the last question
synthesizes the health report and moves the conversation to COMPLETE.
COMPLETE and EXPIRED are terminal.

Every language-model call of a transition happens before the single store
write that commits it, and writes carry the version that was read, so a
concurrent submission for the same conversation fails with
ConversationConflictError instead of interleaving.
"""
import logging
import uuid
from datetime import timedelta
from typing import Optional

from remedymate.application.deadline import as_deadline
from remedymate.application.interview import InterviewService
from remedymate.application.ports import ConversationStorePort
from remedymate.application.schemas import ReportResult, StartConversationResult, SubmitAnswerResult
from remedymate.application.use_cases import RemedyUseCase
from remedymate.domain.errors import (
    ConversationNotActiveError,
    ConversationStateError,
    GatewayError,
    GatewayTimeoutError,
    InvalidInputError,
    InvalidSymptomError,
    LanguageNotAvailableError,
    MalformedModelResponseError,
    NoTopicMatchError,
    OutOfOrderAnswerError,
    RemedyMateError,
    ReportNotReadyError,
    UnknownTopicKeyError,
)
from remedymate.domain.models import (
    Answer,
    Conversation,
    ConversationStatus,
    Remedy,
    utc_now,
)
from remedymate.domain.rules import EMERGENCY_NOTICES, TOTAL_QUESTIONS
from remedymate.domain.validators import require_symptom_input, validate_answer_text


logger = logging.getLogger(__name__)


def new_conversation_id() -> str:
    return "conv_" + uuid.uuid4().hex


class ConversationEngine:
    def __init__(
        self,
        interviewer: InterviewService,
        store: ConversationStorePort,
        remedy: Optional[RemedyUseCase] = None,
        max_age_hours: float = 24,
    ):
        self.interviewer = interviewer
        self.store = store
        self.remedy = remedy
        self.max_age_hours = max_age_hours

    def start_conversation(self, symptom: str, language, user_id: Optional[str] = None,
                           timeout=None) -> StartConversationResult:
        symptom, language = require_symptom_input(symptom, language)
        deadline = as_deadline(timeout)

        check = self.interviewer.validate_symptom(symptom, language, timeout=deadline)
        if not check.valid:
            logger.info("Symptom rejected (category=%s)", check.category or "unknown")
            raise InvalidSymptomError(check.feedback)
        notice = EMERGENCY_NOTICES[language] if check.is_emergency else ""

        questions = self.interviewer.generate_questions(symptom, language, timeout=deadline)

        conversation = self.store.create(Conversation(
            id=new_conversation_id(),
            user_id=user_id,
            symptom=symptom,
            language=language,
            questions=questions,
            total_steps=TOTAL_QUESTIONS,
        ))
        logger.info("Started conversation %s (language=%s, emergency=%s)",
                    conversation.id, language.value, bool(notice))

        return StartConversationResult(
            conversation_id=conversation.id,
            question=conversation.questions[0],
            total_steps=conversation.total_steps,
            current_step=conversation.current_step,
            notice=notice,
        )

    def submit_answer(self, conversation_id: str, answer: str, question_id: Optional[int] = None,
                      timeout=None) -> SubmitAnswerResult:
        is_valid, error = validate_answer_text(answer)
        if not is_valid:
            raise InvalidInputError(error, field="answer")
        answer = answer.strip()

        conversation = self.store.get(conversation_id)
        if not conversation.is_active:
            raise ConversationNotActiveError(conversation_id, conversation.status.value)

        question = conversation.current_question
        if question is None:
            raise ConversationStateError("Conversation has no pending question", conversation_id)
        if question_id is not None and question_id != question.id:
            raise OutOfOrderAnswerError(conversation_id, question.id, question_id)

        deadline = as_deadline(timeout)
        try:
            valid, feedback = self.interviewer.validate_answer(
                question, answer, conversation.language, timeout=deadline
            )
        except RemedyMateError as e:
            raise e.with_context(conversation_id=conversation_id)

        if not valid:
            logger.info("Answer to question %d of %s rejected", question.id, conversation_id)
            return SubmitAnswerResult(
                conversation_id=conversation_id,
                question=question,
                feedback=feedback,
                is_complete=False,
                current_step=conversation.current_step,
                total_steps=conversation.total_steps,
            )

        valid_answer = Answer(question_id=question.id, text=answer)

        if conversation.current_step < len(conversation.questions):
            updated = self.store.append_answer(conversation_id, valid_answer, expected_version=conversation.version)
            return SubmitAnswerResult(
                conversation_id=conversation_id,
                question=updated.current_question,
                is_complete=False,
                current_step=updated.current_step,
                total_steps=updated.total_steps,
            )

        return self._complete(conversation, valid_answer, deadline)

    def _complete(self, conversation: Conversation, last_answer: Answer, deadline) -> SubmitAnswerResult:
        candidate = conversation.model_copy(deep=True)
        candidate.answers.append(last_answer)
        candidate.current_step += 1

        try:
            report = self.interviewer.generate_report(candidate, timeout=deadline)
            remedy = self._remedy_for(candidate, deadline)
        except RemedyMateError as e:
            raise e.with_context(conversation_id=conversation.id)
        if remedy is not None:
            report = report.model_copy(update={"remedy": remedy})

        now = utc_now()
        candidate.status = ConversationStatus.COMPLETE
        candidate.final_report = report
        candidate.completed_at = now
        candidate.updated_at = now
        self.store.update(candidate)
        logger.info("Completed conversation %s (urgency=%s, remedy=%s)",
                    conversation.id, report.urgency_level or "unknown", remedy is not None)

        return SubmitAnswerResult(
            conversation_id=conversation.id,
            question=None,
            is_complete=True,
            current_step=candidate.total_steps,
            total_steps=candidate.total_steps,
        )

    def _remedy_for(self, conversation: Conversation, deadline) -> Optional[Remedy]:
        if self.remedy is None:
            return None
        try:
            return self.remedy.get_remedy(conversation.symptom, conversation.language, timeout=deadline)
        except GatewayTimeoutError as e:
            if deadline.is_caller_timeout(e):
                raise
            logger.warning("Remedy timed out for %s, completing without it: %s", conversation.id, e.message)
            return None
        except (GatewayError, MalformedModelResponseError, NoTopicMatchError,
                UnknownTopicKeyError, LanguageNotAvailableError, InvalidInputError) as e:
            logger.warning("Remedy unavailable for %s, completing without it: %s (%s)",
                           conversation.id, e.message, e.code)
            return None

    def get_conversation(self, conversation_id: str) -> Conversation:
        return self.store.get(conversation_id)

    def get_report(self, conversation_id: str) -> ReportResult:
        conversation = self.store.get(conversation_id)
        if conversation.status != ConversationStatus.COMPLETE or conversation.final_report is None:
            raise ReportNotReadyError(conversation_id, conversation.status.value)
        return ReportResult(
            conversation_id=conversation.id,
            symptom=conversation.symptom,
            status=conversation.status,
            report=conversation.final_report,
        )

    def expire_stale_conversations(self, max_age_hours: Optional[float] = None) -> int:
        """Mark ACTIVE conversations older than the cutoff as EXPIRED; returns how many."""
        hours = self.max_age_hours if max_age_hours is None else max_age_hours
        cutoff = utc_now() - timedelta(hours=hours)

        expired = 0
        for conversation in self.store.find_active_created_before(cutoff):
            try:
                self.store.set_status(conversation.id, ConversationStatus.EXPIRED)
            except ConversationStateError:
                # Finished between the query and the write.
                continue
            expired += 1

        if expired:
            logger.info("Expired %d conversations older than %s hours", expired, hours)
        return expired
