"""Tests for the triage classifier."""
import pytest

from conftest import TRIAGE, ScriptedLLM
from remedymate.application.deadline import Deadline
from remedymate.application.triage import TriageClassifier
from remedymate.domain.errors import (
    ClassificationFailedError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    InvalidInputError,
    MalformedModelResponseError,
)
from remedymate.domain.models import UNCLEAR_FLAG, Language, TriageLevel
from remedymate.domain.rules import CLARIFICATION_MESSAGES, TRIAGE_MESSAGES


def make_classifier(content, reply):
    llm = ScriptedLLM({TRIAGE: reply})
    return TriageClassifier(content, llm), llm


class TestVerdicts:
    @pytest.mark.parametrize("level", ["RED", "YELLOW", "GREEN"])
    def test_well_formed_levels(self, content, level):
        classifier, _ = make_classifier(content, f'{{"level": "{level}", "flags": []}}')
        result = classifier.classify("I have a mild headache", "en")
        assert result.level in {TriageLevel.RED, TriageLevel.YELLOW, TriageLevel.GREEN}
        assert result.level == TriageLevel(level)
        assert result.message == TRIAGE_MESSAGES[result.level][Language.EN]

    def test_level_is_case_insensitive(self, content):
        classifier, _ = make_classifier(content, '{"level": "yellow", "flags": ["dizzy"]}')
        result = classifier.classify("I feel dizzy", "en")
        assert result.level == TriageLevel.YELLOW
        assert result.flags == ["dizzy"]

    def test_fenced_reply(self, content):
        classifier, _ = make_classifier(content, '```json\n{"level": "GREEN", "flags": null}\n```')
        result = classifier.classify("mild headache", "en")
        assert result.level == TriageLevel.GREEN
        assert result.flags == []

    def test_amharic_message(self, content):
        classifier, _ = make_classifier(content, '{"level": "GREEN", "flags": []}')
        result = classifier.classify("ራስ ምታት አለብኝ", "am")
        assert result.message == TRIAGE_MESSAGES[TriageLevel.GREEN][Language.AM]

    def test_unclear_becomes_green_with_clarification(self, content):
        classifier, _ = make_classifier(content, '{"level": "UNCLEAR", "flags": []}')
        result = classifier.classify("blah blah thing", "en")
        assert result.level == TriageLevel.GREEN
        assert result.flags == [UNCLEAR_FLAG]
        assert result.is_unclear
        assert result.message == CLARIFICATION_MESSAGES[Language.EN]


class TestRuleEscalation:
    def test_chest_pain_is_red(self, content):
        classifier, _ = make_classifier(content, '{"level": "RED", "flags": ["chest pain"]}')
        result = classifier.classify("severe chest pain and shortness of breath", "en")
        assert result.level == TriageLevel.RED
        assert "chest pain" in result.flags
        assert result.flags.count("chest pain") == 1

    def test_red_keyword_overrides_green_verdict(self, content):
        classifier, _ = make_classifier(content, '{"level": "GREEN", "flags": []}')
        result = classifier.classify("severe chest pain and shortness of breath", "en")
        assert result.level == TriageLevel.RED
        assert result.flags == ["chest pain", "shortness of breath"]
        assert result.message == TRIAGE_MESSAGES[TriageLevel.RED][Language.EN]

    def test_red_keyword_overrides_unclear(self, content):
        classifier, _ = make_classifier(content, '{"level": "UNCLEAR", "flags": []}')
        result = classifier.classify("uh CHEST PAIN??", "en")
        assert result.level == TriageLevel.RED
        assert UNCLEAR_FLAG not in result.flags

    def test_yellow_keyword_lifts_green(self, content):
        classifier, _ = make_classifier(content, '{"level": "GREEN", "flags": []}')
        result = classifier.classify("I have a high fever since yesterday", "en")
        assert result.level == TriageLevel.YELLOW
        assert "high fever" in result.flags

    def test_yellow_keyword_never_lowers_red(self, content):
        classifier, _ = make_classifier(content, '{"level": "RED", "flags": ["confusion"]}')
        result = classifier.classify("high fever and confusion", "en")
        assert result.level == TriageLevel.RED
        assert result.flags == ["confusion", "high fever"]

    def test_rules_of_other_language_ignored(self, content):
        classifier, _ = make_classifier(content, '{"level": "GREEN", "flags": []}')
        result = classifier.classify("ራስ ምታት chest pain", "am")
        assert result.level == TriageLevel.GREEN

    def test_amharic_red_rule(self, content):
        classifier, _ = make_classifier(content, '{"level": "YELLOW", "flags": []}')
        result = classifier.classify("የደረት ህመም አለብኝ", "am")
        assert result.level == TriageLevel.RED


class TestPrompt:
    def test_prompt_includes_rules_and_topics_for_language(self, content):
        classifier, llm = make_classifier(content, '{"level": "GREEN", "flags": []}')
        classifier.classify("mild headache", "en")
        prompt = llm.prompts[0]
        assert "chest pain, shortness of breath: Possible cardiac or respiratory emergency" in prompt
        assert "high fever: Fever that needs monitoring" in prompt
        assert "headache: Rest in a dark room, Drink water" in prompt
        assert "Limit screen time" not in prompt
        assert "የደረት ህመም" not in prompt
        assert '"mild headache"' in prompt


class TestFailures:
    @pytest.mark.parametrize("reply", [
        "GREEN",
        "not json at all",
        '["RED"]',
        '{"flags": []}',
        '{"level": "ORANGE", "flags": []}',
    ])
    def test_malformed_reply_fails_classification(self, content, reply):
        classifier, _ = make_classifier(content, reply)
        with pytest.raises(ClassificationFailedError) as exc:
            classifier.classify("mild headache", "en")
        assert isinstance(exc.value, MalformedModelResponseError)
        assert exc.value.details["stage"] == "triage"
        assert reply not in exc.value.message

    @pytest.mark.parametrize("text,language,field", [
        ("", "en", "text"),
        ("   ", "en", "text"),
        ("ab", "en", "text"),
        ("x" * 501, "en", "text"),
        ("mild headache", "fr", "language"),
        ("mild headache", None, "language"),
    ])
    def test_invalid_input_never_reaches_model(self, content, text, language, field):
        classifier, llm = make_classifier(content, '{"level": "GREEN", "flags": []}')
        with pytest.raises(InvalidInputError) as exc:
            classifier.classify(text, language)
        assert exc.value.field == field
        assert llm.prompts == []

    @pytest.mark.parametrize("error", [GatewayTimeoutError(), GatewayUnavailableError()])
    def test_gateway_errors_propagate_with_stage(self, content, error):
        classifier, _ = make_classifier(content, error)
        with pytest.raises(type(error)) as exc:
            classifier.classify("mild headache", "en")
        assert exc.value.details["stage"] == "triage"
        assert exc.value.retryable

    def test_exhausted_deadline_skips_model_call(self, content):
        now = [100.0]
        deadline = Deadline(5, clock=lambda: now[0])
        now[0] = 106.0
        classifier, llm = make_classifier(content, '{"level": "GREEN", "flags": []}')
        with pytest.raises(GatewayTimeoutError):
            classifier.classify("mild headache", "en", timeout=deadline)
        assert llm.prompts == []

    def test_remaining_budget_is_passed_to_model(self, content):
        classifier, llm = make_classifier(content, '{"level": "GREEN", "flags": []}')
        classifier.classify("mild headache", "en", timeout=10)
        assert 0 < llm.timeouts[0] <= 10
