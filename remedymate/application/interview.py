"""
Language-model steps of a guided conversation.

InterviewService owns the four model calls a conversation needs (symptom
check, question generation, answer validation and report synthesis) and the
policy for each when the model misbehaves. It never touches the store.
"""
import logging
from typing import Dict, List, Tuple

from pydantic import ValidationError

from remedymate.application.deadline import as_deadline
from remedymate.application.parsing import extract_json_array, extract_json_object, preview
from remedymate.application.ports import LLMPort
from remedymate.application.prompts import (
    build_answer_check_prompt,
    build_question_prompt,
    build_report_prompt,
    build_symptom_check_prompt,
)
from remedymate.application.schemas import (
    AnswerCheckReply,
    GeneratedQuestion,
    HealthReportReply,
    SymptomCheckReply,
)
from remedymate.domain.errors import (
    GatewayError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    MalformedModelResponseError,
    ReportGenerationFailedError,
)
from remedymate.domain.models import Conversation, HealthReport, Language, Question, QuestionCategory
from remedymate.domain.rules import (
    ANSWER_REPROMPT_MESSAGES,
    CATEGORY_ORDER,
    SYMPTOM_REJECTED_MESSAGES,
    TOTAL_QUESTIONS,
    default_question,
    default_questions,
)


logger = logging.getLogger(__name__)


class InterviewService:
    def __init__(self, llm: LLMPort):
        self.llm = llm

    def _call(self, prompt: str, deadline, stage: str, **context) -> str:
        try:
            return self.llm.classify(prompt, timeout=deadline.remaining(stage))
        except GatewayError as e:
            raise e.with_context(stage=stage, **context)

    def validate_symptom(self, symptom: str, language: Language, timeout=None) -> SymptomCheckReply:
        """
        Ask the model whether the text describes a personal health complaint.

        Returns the parsed verdict; a rejected verdict always carries feedback.
        Raises MalformedModelResponseError when the verdict cannot be read.
        """
        deadline = as_deadline(timeout)
        raw = self._call(build_symptom_check_prompt(symptom, language), deadline, "symptom_validation")
        try:
            reply = SymptomCheckReply.model_validate(extract_json_object(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Symptom check response invalid: %s. Raw: %s", e, preview(raw))
            raise MalformedModelResponseError("Symptom check response could not be parsed",
                                              stage="symptom_validation")

        if not reply.valid and not reply.feedback.strip():
            reply = reply.model_copy(update={"feedback": SYMPTOM_REJECTED_MESSAGES[language]})
        return reply

    def generate_questions(self, symptom: str, language: Language, timeout=None) -> List[Question]:
        """Always returns five questions, one per category, ids 1..5 in category order."""
        deadline = as_deadline(timeout)
        raw = self._call(build_question_prompt(symptom, language), deadline, "question_generation")

        try:
            items = extract_json_array(raw)
        except ValueError as e:
            logger.warning("Question generation returned no usable JSON: %s. Raw: %s", e, preview(raw))
            return default_questions(language)

        generated: Dict[QuestionCategory, GeneratedQuestion] = {}
        for item in items[:TOTAL_QUESTIONS]:
            if not isinstance(item, dict):
                continue
            try:
                question = GeneratedQuestion.model_validate(item)
            except ValidationError:
                continue
            category_name = (question.type or str(item.get("category") or "")).strip().lower()
            try:
                category = QuestionCategory(category_name)
            except ValueError:
                continue
            if question.text and category not in generated:
                generated[category] = question

        questions = []
        for position, category in enumerate(CATEGORY_ORDER, start=1):
            if category in generated:
                questions.append(Question(
                    id=position,
                    text=generated[category].text,
                    category=category,
                    required=generated[category].required,
                ))
            else:
                questions.append(default_question(category, language))

        padded = TOTAL_QUESTIONS - len(generated)
        if padded:
            logger.info("Padded %d of %d questions with defaults", padded, TOTAL_QUESTIONS)
        return questions

    def validate_answer(self, question: Question, answer: str, language: Language,
                        timeout=None) -> Tuple[bool, str]:
        deadline = as_deadline(timeout)
        prompt = build_answer_check_prompt(question, answer)
        try:
            raw = self._call(prompt, deadline, "answer_validation")
        except GatewayTimeoutError as e:
            if deadline.is_caller_timeout(e):
                raise
            logger.warning("Answer validation timed out, accepting answer: %s", e)
            return True, ""
        except GatewayUnavailableError as e:
            logger.warning("Answer validation unavailable, accepting answer: %s", e)
            return True, ""

        try:
            reply = AnswerCheckReply.model_validate(extract_json_object(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Answer validation response invalid, accepting answer: %s. Raw: %s", e, preview(raw))
            return True, ""

        if reply.valid:
            return True, ""
        return False, reply.feedback.strip() or ANSWER_REPROMPT_MESSAGES[language]

    def generate_report(self, conversation: Conversation, timeout=None) -> HealthReport:
        deadline = as_deadline(timeout)
        raw = self._call(build_report_prompt(conversation), deadline, "health_report",
                         conversation_id=conversation.id)
        try:
            reply = HealthReportReply.model_validate(extract_json_object(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Health report response invalid for %s: %s. Raw: %s",
                           conversation.id, e, preview(raw))
            raise ReportGenerationFailedError("Health report could not be generated",
                                              details={"conversation_id": conversation.id})

        data = reply.model_dump()
        if not data["symptom"].strip():
            data["symptom"] = conversation.symptom
        return HealthReport(**data)
