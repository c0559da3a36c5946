import logging
from typing import List

from remedymate.application.ports import ContentRepositoryPort
from remedymate.domain.errors import InvalidInputError, TopicNotFoundError
from remedymate.domain.models import ApprovedBlock, ContentTranslation, GuidanceCard, Language
from remedymate.domain.validators import validate_language


logger = logging.getLogger(__name__)


def _require_language(language) -> Language:
    is_valid, error = validate_language(language)
    if not is_valid:
        raise InvalidInputError(error, field="language")
    return Language(language)


def _card(topic_key: str, language: Language, translation: ContentTranslation,
          is_offline: bool = False) -> GuidanceCard:
    return GuidanceCard(
        topic_key=topic_key,
        language=language,
        self_care=list(translation.self_care),
        otc_categories=list(translation.otc_categories),
        seek_care_if=list(translation.seek_care_if),
        disclaimer=translation.disclaimer,
        is_offline=is_offline,
    )


class GuidanceComposer:
    """Builds guidance cards from approved content only; never calls the model."""

    def __init__(self, content: ContentRepositoryPort):
        self.content = content

    def compose(self, topic_key: str, language) -> GuidanceCard:
        language = _require_language(language)
        translation = self.content.get_approved_topic_content(topic_key, language)
        logger.debug("Composed guidance card for %s/%s", topic_key, language.value)
        return _card(topic_key, language, translation)

    def list_topics(self) -> List[str]:
        """Keys of every approved topic, in content order."""
        return [block.topic_key for block in self.content.get_approved_blocks()]

    def get_topic(self, topic_key: str) -> ApprovedBlock:
        if not topic_key or not topic_key.strip():
            raise InvalidInputError("Topic key is required", field="topic_key")
        for block in self.content.get_approved_blocks():
            if block.topic_key == topic_key.strip():
                return block
        raise TopicNotFoundError(topic_key)

    def offline_cards(self, language) -> List[GuidanceCard]:
        """
        Every approved topic in one language, marked for offline use.

        Topics without a translation for the language are left out.
        """
        language = _require_language(language)
        cards = []
        for block in self.content.get_approved_blocks():
            translation = block.translations.get(language.value)
            if translation is None:
                continue
            cards.append(_card(block.topic_key, language, translation, is_offline=True))
        logger.debug("Prepared %d offline cards for %s", len(cards), language.value)
        return cards
