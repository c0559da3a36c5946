import logging
from dataclasses import dataclass
from typing import List, Optional

from remedymate.application.conversation import ConversationEngine
from remedymate.application.guidance import GuidanceComposer
from remedymate.application.interview import InterviewService
from remedymate.application.ports import ContentRepositoryPort, ConversationStorePort, LLMPort
from remedymate.application.topic_mapper import TopicMapper
from remedymate.application.triage import TriageClassifier
from remedymate.application.use_cases import RemedyUseCase
from remedymate.domain.errors import ContentLoadError
from remedymate.infrastructure.config import Settings
from remedymate.infrastructure.content.json_repository import JsonContentRepository
from remedymate.infrastructure.llm.gemini_client import GeminiLLMAdapter
from remedymate.infrastructure.llm.mistral_client import MistralLLMAdapter
from remedymate.infrastructure.storage.memory_store import InMemoryConversationStore


logger = logging.getLogger(__name__)


@dataclass
class Services:
    llm: LLMPort
    content: ContentRepositoryPort
    store: ConversationStorePort
    classifier: TriageClassifier
    mapper: TopicMapper
    composer: GuidanceComposer
    remedy: RemedyUseCase
    engine: ConversationEngine


def build_llm(settings: Settings) -> LLMPort:
    provider = settings.llm_provider
    if provider == "gemini":
        return GeminiLLMAdapter(settings=settings)
    if provider != "mistral":
        raise ValueError(f"Unsupported LLM_PROVIDER '{provider}' (expected 'mistral' or 'gemini')")
    return MistralLLMAdapter(settings=settings)


def _mappable_topic_keys(settings: Settings, composer: GuidanceComposer) -> List[str]:
    """Configured topic keys that have approved content; the mapper may only return these."""
    approved = set(composer.list_topics())
    keys = [key for key in settings.topic_keys if key in approved]
    missing = [key for key in settings.topic_keys if key not in approved]
    if missing:
        logger.warning("Topic keys without approved content are not mapped: %s", ", ".join(missing))
    if not keys:
        raise ContentLoadError(
            "None of the configured topic keys has approved content",
            path=str(settings.content_data_path),
        )
    return keys


def build_services(
    settings: Optional[Settings] = None,
    llm: Optional[LLMPort] = None,
    content: Optional[ContentRepositoryPort] = None,
    store: Optional[ConversationStorePort] = None,
) -> Services:
    settings = settings or Settings()
    llm = llm or build_llm(settings)
    content = content or JsonContentRepository(settings.content_data_path)
    store = store or InMemoryConversationStore()

    composer = GuidanceComposer(content)
    classifier = TriageClassifier(content, llm)
    mapper = TopicMapper(llm, _mappable_topic_keys(settings, composer))
    remedy = RemedyUseCase(classifier, mapper, composer)
    engine = ConversationEngine(
        InterviewService(llm),
        store,
        remedy=remedy,
        max_age_hours=settings.conversation_max_age_hours,
    )
    logger.info("Services ready (provider=%s, topics=%d)", settings.llm_provider, len(mapper.topic_keys))
    return Services(
        llm=llm,
        content=content,
        store=store,
        classifier=classifier,
        mapper=mapper,
        composer=composer,
        remedy=remedy,
        engine=engine,
    )
