import logging
from typing import List

from pydantic import ValidationError

from remedymate.application.deadline import as_deadline
from remedymate.application.parsing import loads_fenced_json, preview
from remedymate.application.ports import ContentRepositoryPort, LLMPort
from remedymate.application.prompts import build_triage_prompt
from remedymate.application.schemas import TriageReply
from remedymate.domain.errors import ClassificationFailedError, GatewayError
from remedymate.domain.models import UNCLEAR_FLAG, Language, TriageLevel, TriageResult
from remedymate.domain.rules import CLARIFICATION_MESSAGES, TRIAGE_MESSAGES, match_flag_keywords
from remedymate.domain.validators import require_symptom_input


logger = logging.getLogger(__name__)


_UNCLEAR = "UNCLEAR"


def _dedupe(items: List[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


class TriageClassifier:
    """Turns free-text symptoms into a RED / YELLOW / GREEN verdict."""

    def __init__(self, content: ContentRepositoryPort, llm: LLMPort):
        self.content = content
        self.llm = llm

    def classify(self, text: str, language, timeout=None) -> TriageResult:
        text, language = require_symptom_input(text, language)
        red_rules = self.content.get_red_flag_rules(language)
        yellow_rules = self.content.get_yellow_flag_rules(language)

        prompt = build_triage_prompt(
            text, language, red_rules, yellow_rules, self.content.get_approved_blocks()
        )
        deadline = as_deadline(timeout)
        try:
            raw = self.llm.classify(prompt, timeout=deadline.remaining("triage"))
        except GatewayError as e:
            raise e.with_context(stage="triage")

        level, flags = self._parse(raw)

        # Literal rule hits can only raise the model's verdict.
        red_hits = match_flag_keywords(text, red_rules)
        yellow_hits = match_flag_keywords(text, yellow_rules)
        escalated = None
        if red_hits and level != TriageLevel.RED:
            escalated = TriageLevel.RED
        elif yellow_hits and level == TriageLevel.GREEN:
            escalated = TriageLevel.YELLOW
        if escalated is not None:
            logger.info("Triage escalated from %s to %s by rule keywords %s", level.value, escalated.value,
                        red_hits or yellow_hits)
            level = escalated
            flags = [f for f in flags if f != UNCLEAR_FLAG]
        flags = _dedupe(flags + red_hits + yellow_hits)

        result = self._result(level, flags, language)
        logger.info("Triage result %s flags=%s", result.level.value, result.flags)
        return result

    def _parse(self, raw: str):
        try:
            reply = TriageReply.model_validate(loads_fenced_json(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Triage response is not valid JSON: %s. Raw: %s", e, preview(raw))
            raise ClassificationFailedError("Triage response could not be parsed")

        level_name = reply.level.strip().upper()
        if level_name == _UNCLEAR:
            return TriageLevel.GREEN, [UNCLEAR_FLAG]
        try:
            level = TriageLevel(level_name)
        except ValueError:
            logger.warning("Triage response has unknown level %r", preview(reply.level, 40))
            raise ClassificationFailedError("Triage response has an unknown level",
                                            details={"level": preview(reply.level, 40)})
        return level, [str(f).strip() for f in reply.flags]

    @staticmethod
    def _result(level: TriageLevel, flags: List[str], language: Language) -> TriageResult:
        if UNCLEAR_FLAG in flags:
            message = CLARIFICATION_MESSAGES[language]
        else:
            message = TRIAGE_MESSAGES[level][language]
        return TriageResult(level=level, flags=flags, message=message)
