import json
import logging
from pathlib import Path
from typing import Dict, List, Tuple

from pydantic import ValidationError

from remedymate.application.ports import ContentRepositoryPort
from remedymate.domain.errors import ContentLoadError, LanguageNotAvailableError, TopicNotFoundError
from remedymate.domain.models import ApprovedBlock, ContentTranslation, FlagRule, Language, TriageLevel


logger = logging.getLogger(__name__)


APPROVED_BLOCKS_FILE = "approved_blocks.json"
FLAG_RULES_FILE = "red_flag_rules.json"


def _read_json_list(path: Path) -> list:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ContentLoadError(f"Content file not found: {path.name}", path=str(path))
    except json.JSONDecodeError as e:
        raise ContentLoadError(f"Content file is not valid JSON: {path.name} ({e.msg})", path=str(path))
    if not isinstance(data, list):
        raise ContentLoadError(f"Content file must hold a JSON array: {path.name}", path=str(path))
    return data


class JsonContentRepository(ContentRepositoryPort):
    """
    Approved topic content and flag rules loaded once from the data directory.

    The loaded value is immutable (tuples of frozen models), so one instance
    can be shared by every request without locking.
    """

    def __init__(self, data_path):
        self.data_path = Path(data_path)
        self._blocks: Tuple[ApprovedBlock, ...] = ()
        self._blocks_by_key: Dict[str, ApprovedBlock] = {}
        self._rules: Tuple[FlagRule, ...] = ()
        self.load()

    def load(self) -> None:
        blocks_path = self.data_path / APPROVED_BLOCKS_FILE
        rules_path = self.data_path / FLAG_RULES_FILE
        try:
            blocks = tuple(ApprovedBlock.model_validate(b) for b in _read_json_list(blocks_path))
        except ValidationError as e:
            raise ContentLoadError(f"Invalid approved block: {e.error_count()} errors", path=str(blocks_path))
        try:
            rules = tuple(FlagRule.model_validate(r) for r in _read_json_list(rules_path))
        except ValidationError as e:
            raise ContentLoadError(f"Invalid flag rule: {e.error_count()} errors", path=str(rules_path))

        self._blocks = blocks
        self._blocks_by_key = {b.topic_key: b for b in blocks}
        self._rules = rules
        logger.info("Loaded %d approved blocks and %d flag rules from %s",
                    len(blocks), len(rules), self.data_path)

    def get_rules(self, language: Language, level: TriageLevel) -> List[FlagRule]:
        language, level = Language(language), TriageLevel(level)
        return [r for r in self._rules if r.language == language and r.level == level]

    def get_red_flag_rules(self, language: Language) -> List[FlagRule]:
        return self.get_rules(language, TriageLevel.RED)

    def get_yellow_flag_rules(self, language: Language) -> List[FlagRule]:
        return self.get_rules(language, TriageLevel.YELLOW)

    def get_approved_blocks(self) -> List[ApprovedBlock]:
        return list(self._blocks)

    def get_approved_topic_content(self, topic_key: str, language: Language) -> ContentTranslation:
        block = self._blocks_by_key.get(topic_key)
        if block is None:
            raise TopicNotFoundError(topic_key)
        language = Language(language)
        translation = block.translations.get(language.value)
        if translation is None:
            raise LanguageNotAvailableError(topic_key, language.value)
        return translation
