from typing import List, Optional

from pydantic import BaseModel, field_validator

from remedymate.domain.models import HealthReport, Question, ConversationStatus


# --- replies expected from the language model -------------------------------

class TriageReply(BaseModel):
    level: str
    flags: List[str] = []

    @field_validator("flags", mode="before")
    def none_to_empty(cls, v):
        return v or []


class SymptomCheckReply(BaseModel):
    valid: bool
    feedback: str = ""
    urgency_level: str = ""  # LOW | MEDIUM | HIGH | EMERGENCY
    category: str = ""       # physical | mental | functional | emergency | invalid

    @field_validator("feedback", "urgency_level", "category", mode="before")
    def none_to_blank(cls, v):
        return v or ""

    @property
    def is_emergency(self) -> bool:
        return self.urgency_level.strip().upper() == "EMERGENCY" or self.category.strip().lower() == "emergency"


class AnswerCheckReply(BaseModel):
    valid: bool
    feedback: str = ""

    @field_validator("feedback", mode="before")
    def none_to_blank(cls, v):
        return v or ""


class GeneratedQuestion(BaseModel):
    text: str = ""
    type: str = ""
    required: bool = True

    @field_validator("text", "type", mode="before")
    def clean(cls, v):
        return str(v).strip() if v is not None else ""


class TopicReply(BaseModel):
    topic_key: str = ""

    @field_validator("topic_key", mode="before")
    def clean(cls, v):
        return str(v).strip() if v is not None else ""


class HealthReportReply(BaseModel):
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

    @field_validator("symptom", "duration", "location", "severity", "medical_history", "triggers", mode="before")
    def flatten_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, list):
            return ", ".join(str(item) for item in v)
        return str(v)

    @field_validator("associated_symptoms", "possible_conditions", "recommendations", mode="before")
    def to_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(item) for item in v]

    @field_validator("urgency_level", mode="before")
    def normalize_urgency(cls, v):
        return str(v or "").strip().upper()


# --- results of the exposed conversation operations -------------------------

class StartConversationResult(BaseModel):
    conversation_id: str
    question: Question
    total_steps: int
    current_step: int
    notice: str = ""  # set when the symptom check flagged an emergency


class SubmitAnswerResult(BaseModel):
    conversation_id: str
    question: Optional[Question] = None
    feedback: str = ""
    is_complete: bool = False
    current_step: int
    total_steps: int


class ReportResult(BaseModel):
    conversation_id: str
    symptom: str
    status: ConversationStatus
    report: HealthReport
