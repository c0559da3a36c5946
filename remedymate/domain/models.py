from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Flag marking a triage verdict the model could not make sense of.
UNCLEAR_FLAG = "unclear_input"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Language(str, Enum):
    EN = "en"
    AM = "am"


class TriageLevel(str, Enum):
    RED = "RED"        # seek urgent care now
    YELLOW = "YELLOW"  # monitor closely
    GREEN = "GREEN"    # likely mild


class ConversationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"
    EXPIRED = "EXPIRED"


class QuestionCategory(str, Enum):
    DURATION = "duration"
    LOCATION = "location"
    SEVERITY = "severity"
    HISTORY = "history"
    TRIGGERS = "triggers"


class Question(BaseModel):
    id: int = Field(..., ge=1)
    text: str
    category: QuestionCategory
    required: bool = True


class Answer(BaseModel):
    question_id: int = Field(..., ge=1)
    text: str
    is_valid: bool = True
    feedback: Optional[str] = None
    answered_at: datetime = Field(default_factory=utc_now)


class TriageResult(BaseModel):
    level: TriageLevel
    flags: List[str] = []
    message: str

    @property
    def is_unclear(self) -> bool:
        return UNCLEAR_FLAG in self.flags


class FlagRule(BaseModel):
    """A keyword rule steering the triage prompt."""

    model_config = ConfigDict(frozen=True)

    keywords: Tuple[str, ...] = ()
    language: Language
    level: TriageLevel
    description: str = ""

    @field_validator("keywords", mode="before")
    def normalize_keywords(cls, v):
        return tuple(k.strip() for k in (v or []) if k and k.strip())


class OTCCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_name: str
    safety_note: str = ""


class ContentTranslation(BaseModel):
    model_config = ConfigDict(frozen=True)

    self_care: Tuple[str, ...] = ()
    otc_categories: Tuple[OTCCategory, ...] = ()
    seek_care_if: Tuple[str, ...] = ()
    disclaimer: str = ""


class ApprovedBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic_key: str
    translations: Dict[str, ContentTranslation] = {}


class GuidanceCard(BaseModel):
    topic_key: str
    language: Language
    self_care: List[str] = []
    otc_categories: List[OTCCategory] = []
    seek_care_if: List[str] = []
    disclaimer: str = ""
    is_offline: bool = False


class Remedy(BaseModel):
    model_config = ConfigDict(frozen=True)

    triage: TriageResult
    self_care: List[str] = []
    otc_categories: List[OTCCategory] = []
    seek_care_if: List[str] = []
    disclaimer: str = ""
    topic_key: Optional[str] = None
    language: Optional[Language] = None


class HealthReport(BaseModel):
    """Final structured report. Frozen once synthesized."""

    model_config = ConfigDict(frozen=True)

    symptom: str = ""
    duration: str = ""
    location: str = ""
    severity: str = ""
    associated_symptoms: List[str] = []
    medical_history: str = ""
    triggers: str = ""
    possible_conditions: List[str] = []
    recommendations: List[str] = []
    urgency_level: str = ""
    generated_at: datetime = Field(default_factory=utc_now)
    remedy: Optional[Remedy] = None


class Conversation(BaseModel):
    id: str
    user_id: Optional[str] = None
    symptom: str
    language: Language
    status: ConversationStatus = ConversationStatus.ACTIVE
    questions: List[Question] = []
    answers: List[Answer] = []
    current_step: int = Field(1, ge=1)
    total_steps: int = 5
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    final_report: Optional[HealthReport] = None
    version: int = 0

    @property
    def current_question(self) -> Optional[Question]:
        if 1 <= self.current_step <= len(self.questions):
            return self.questions[self.current_step - 1]
        return None

    @property
    def is_active(self) -> bool:
        return self.status == ConversationStatus.ACTIVE
