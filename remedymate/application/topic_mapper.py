import logging
from typing import Iterable, Optional, Tuple

from pydantic import ValidationError

from remedymate.application.deadline import as_deadline
from remedymate.application.parsing import loads_fenced_json, preview
from remedymate.application.ports import LLMPort
from remedymate.application.prompts import build_topic_prompt
from remedymate.application.schemas import TopicReply
from remedymate.domain.errors import (
    GatewayError,
    InvalidInputError,
    MalformedModelResponseError,
    NoTopicMatchError,
    UnknownTopicKeyError,
)
from remedymate.domain.rules import DEFAULT_TOPIC_KEYS, NO_TOPIC_SENTINEL


logger = logging.getLogger(__name__)


class TopicMapper:
    """Maps a symptom description onto one key of a closed topic list."""

    def __init__(self, llm: LLMPort, topic_keys: Optional[Iterable[str]] = None):
        self.llm = llm
        self.topic_keys: Tuple[str, ...] = tuple(topic_keys or DEFAULT_TOPIC_KEYS)

    def map_topic(self, text: str, timeout=None) -> str:
        if not text or not text.strip():
            raise InvalidInputError("Symptom text cannot be empty", field="text")

        deadline = as_deadline(timeout)
        prompt = build_topic_prompt(text.strip(), self.topic_keys)
        try:
            raw = self.llm.classify(prompt, timeout=deadline.remaining("topic_mapping"))
        except GatewayError as e:
            raise e.with_context(stage="topic_mapping")

        try:
            reply = TopicReply.model_validate(loads_fenced_json(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Topic mapping response is not valid JSON: %s. Raw: %s", e, preview(raw))
            raise MalformedModelResponseError("Topic mapping response could not be parsed",
                                              stage="topic_mapping")

        topic_key = reply.topic_key
        if not topic_key or topic_key.upper() == NO_TOPIC_SENTINEL:
            raise NoTopicMatchError()

        if topic_key not in self.topic_keys:
            logger.warning("Model returned a topic key outside the list (possible hallucination): %r",
                           preview(topic_key, 60))
            raise UnknownTopicKeyError(topic_key)

        logger.info("Mapped symptom to topic %s", topic_key)
        return topic_key
