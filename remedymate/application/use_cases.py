import logging

from remedymate.application.deadline import as_deadline
from remedymate.application.guidance import GuidanceComposer
from remedymate.application.topic_mapper import TopicMapper
from remedymate.application.triage import TriageClassifier
from remedymate.domain.models import GuidanceCard, Remedy, TriageLevel, TriageResult


logger = logging.getLogger(__name__)


class RemedyUseCase:
    """Triage first; only a non-urgent, understood symptom gets self-care content."""

    def __init__(self, classifier: TriageClassifier, mapper: TopicMapper, composer: GuidanceComposer):
        self.classifier = classifier
        self.mapper = mapper
        self.composer = composer

    def get_triage(self, text: str, language, timeout=None) -> TriageResult:
        return self.classifier.classify(text, language, timeout=timeout)

    def map_topic(self, text: str, timeout=None) -> str:
        return self.mapper.map_topic(text, timeout=timeout)

    def compose_guidance(self, topic_key: str, language) -> GuidanceCard:
        return self.composer.compose(topic_key, language)

    def get_remedy(self, text: str, language, timeout=None) -> Remedy:
        deadline = as_deadline(timeout)
        triage = self.classifier.classify(text, language, timeout=deadline)

        if triage.level == TriageLevel.RED or triage.is_unclear:
            logger.info("Returning triage only (level=%s, unclear=%s)", triage.level.value, triage.is_unclear)
            return Remedy(triage=triage)

        topic_key = self.mapper.map_topic(text, timeout=deadline)
        card = self.composer.compose(topic_key, language)
        return Remedy(
            triage=triage,
            self_care=card.self_care,
            otc_categories=card.otc_categories,
            seek_care_if=card.seek_care_if,
            disclaimer=card.disclaimer,
            topic_key=card.topic_key,
            language=card.language,
        )
