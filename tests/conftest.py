"""Shared fixtures: a scripted language model and a small content library."""
import json
from pathlib import Path

import pytest

from remedymate.infrastructure.content.json_repository import JsonContentRepository
from remedymate.infrastructure.storage.memory_store import InMemoryConversationStore


# Phrases that identify which prompt the model is being sent.
TRIAGE = "medical triage classifier"
TOPIC = "single most relevant topic"
SYMPTOM_CHECK = "legitimate health symptom"
QUESTIONS = "targeted follow-up questions"
ANSWER_CHECK = "Validate this answer"
REPORT = "Create a structured health report"

SHIPPED_DATA = Path(__file__).resolve().parent.parent / "data"

FIVE_QUESTIONS = json.dumps([
    {"id": 1, "text": "When did the headache start?", "type": "duration", "required": True},
    {"id": 2, "text": "Which part of your head hurts?", "type": "location", "required": True},
    {"id": 3, "text": "How bad is it from 1 to 10?", "type": "severity", "required": True},
    {"id": 4, "text": "Do you have migraines or other conditions?", "type": "history", "required": True},
    {"id": 5, "text": "Does light or noise make it worse?", "type": "triggers", "required": False},
])

REPORT_JSON = json.dumps({
    "symptom": "mild headache",
    "duration": "2 days",
    "location": "forehead",
    "severity": "4/10",
    "associated_symptoms": "tiredness",
    "medical_history": "none",
    "triggers": "screens",
    "possible_conditions": ["tension headache"],
    "recommendations": ["rest", "drink water"],
    "urgency_level": "green",
})


class ScriptedLLM:
    """Answers each prompt with the reply registered for the first marker it contains."""

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.prompts = []
        self.timeouts = []

    def classify(self, prompt, timeout=None):
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        for marker, reply in self.replies.items():
            if marker not in prompt:
                continue
            if isinstance(reply, Exception):
                raise reply
            if callable(reply):
                return reply(prompt)
            if isinstance(reply, list):
                return reply.pop(0) if len(reply) > 1 else reply[0]
            return reply
        raise AssertionError("No scripted reply for prompt: " + prompt[:80])

    def calls(self, marker):
        return [p for p in self.prompts if marker in p]


def happy_path_replies(**overrides):
    """Replies for a conversation about a mild headache that ends with GREEN guidance."""
    replies = {
        SYMPTOM_CHECK: '{"valid": true, "feedback": "", "urgency_level": "LOW", "category": "physical"}',
        QUESTIONS: FIVE_QUESTIONS,
        ANSWER_CHECK: '{"valid": true, "feedback": ""}',
        REPORT: REPORT_JSON,
        TRIAGE: '{"level": "GREEN", "flags": []}',
        TOPIC: '{"topic_key": "headache"}',
    }
    replies.update(overrides)
    return replies


SAMPLE_BLOCKS = [
    {
        "topic_key": "headache",
        "translations": {
            "en": {
                "self_care": ["Rest in a dark room", "Drink water", "Limit screen time"],
                "otc_categories": [{"category_name": "Pain relievers", "safety_note": "Follow the label"}],
                "seek_care_if": ["Sudden severe headache"],
                "disclaimer": "Not medical advice.",
            },
            "am": {
                "self_care": ["ጨለማ ክፍል ውስጥ ያርፉ", "ውሃ ይጠጡ"],
                "otc_categories": [],
                "seek_care_if": ["ድንገተኛ ከባድ ራስ ምታት"],
                "disclaimer": "ይህ የህክምና ምክር አይደለም።",
            },
        },
    },
    {
        "topic_key": "cough",
        "translations": {
            "en": {
                "self_care": ["Drink warm fluids", "Honey in warm water"],
                "otc_categories": [],
                "seek_care_if": ["Coughing up blood"],
                "disclaimer": "Not medical advice.",
            },
        },
    },
]

SAMPLE_RULES = [
    {"keywords": ["chest pain", "shortness of breath"], "language": "en", "level": "RED",
     "description": "Possible cardiac or respiratory emergency"},
    {"keywords": ["high fever"], "language": "en", "level": "YELLOW",
     "description": "Fever that needs monitoring"},
    {"keywords": ["የደረት ህመም"], "language": "am", "level": "RED",
     "description": "የልብ ድንገተኛ ችግር"},
]


@pytest.fixture
def content_dir(tmp_path):
    (tmp_path / "approved_blocks.json").write_text(json.dumps(SAMPLE_BLOCKS), encoding="utf-8")
    (tmp_path / "red_flag_rules.json").write_text(json.dumps(SAMPLE_RULES), encoding="utf-8")
    return tmp_path


@pytest.fixture
def content(content_dir):
    return JsonContentRepository(content_dir)


@pytest.fixture
def store():
    return InMemoryConversationStore()
