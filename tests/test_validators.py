"""Unit tests for symptom, answer and language validators."""
import pytest

from remedymate.domain.errors import InvalidInputError
from remedymate.domain.models import Language
from remedymate.domain.validators import (
    require_symptom_input,
    validate_answer_text,
    validate_language,
    validate_symptom_text,
)


class TestValidateLanguage:
    """Test language validation."""

    def test_supported_languages(self):
        for language in ["en", "am", Language.EN, Language.AM]:
            is_valid, error = validate_language(language)
            assert is_valid, f"Language '{language}' should be valid but got error: {error}"
            assert error == ""

    def test_unsupported_language(self):
        for language in ["fr", "EN", "english", "amh"]:
            is_valid, error = validate_language(language)
            assert not is_valid, f"Language '{language}' should be invalid"
            assert "unsupported" in error.lower()

    def test_missing_language(self):
        for language in [None, "", "   "]:
            is_valid, error = validate_language(language)
            assert not is_valid
            assert "required" in error.lower()


class TestValidateSymptomText:
    """Test symptom text validation."""

    def test_valid_symptoms(self):
        valid_symptoms = [
            "mild headache",
            "I have had a dry cough for three days",
            "ራስ ምታት",
            "abc",
            "x" * 500,
        ]

        for symptom in valid_symptoms:
            is_valid, error = validate_symptom_text(symptom)
            assert is_valid, f"Symptom '{symptom[:20]}' should be valid but got error: {error}"
            assert error == ""

    def test_empty_symptom(self):
        for symptom in [None, "", "   ", "\n\t"]:
            is_valid, error = validate_symptom_text(symptom)
            assert not is_valid
            assert "empty" in error.lower()

    def test_too_short(self):
        is_valid, error = validate_symptom_text(" ab ")
        assert not is_valid
        assert "too short" in error.lower()

    def test_too_long(self):
        is_valid, error = validate_symptom_text("x" * 501)
        assert not is_valid
        assert "too long" in error.lower()

    def test_length_counts_trimmed_text(self):
        assert validate_symptom_text("x" * 500 + "   ") == (True, "")
        assert validate_symptom_text("  " + "x" * 500 + "\n") == (True, "")
        assert validate_symptom_text(" " + "x" * 501)[0] is False


class TestValidateAnswerText:
    """Test answer validation."""

    def test_valid_answers(self):
        for answer in ["7", "no", "since last Tuesday", "x" * 1000]:
            is_valid, error = validate_answer_text(answer)
            assert is_valid
            assert error == ""

    def test_empty_answer(self):
        for answer in [None, "", "   "]:
            is_valid, error = validate_answer_text(answer)
            assert not is_valid
            assert "empty" in error.lower()

    def test_too_long(self):
        is_valid, error = validate_answer_text("x" * 1001)
        assert not is_valid
        assert "too long" in error.lower()

    def test_length_counts_trimmed_text(self):
        assert validate_answer_text("x" * 1000 + "  ") == (True, "")


class TestRequireSymptomInput:
    """Test the combined symptom/language guard."""

    def test_returns_trimmed_text_and_language(self):
        text, language = require_symptom_input("  mild headache  ", "am")
        assert text == "mild headache"
        assert language is Language.AM

    def test_bad_text_reports_text_field(self):
        with pytest.raises(InvalidInputError) as exc:
            require_symptom_input("", "en")
        assert exc.value.field == "text"
        assert exc.value.code == "INVALID_INPUT"
        assert exc.value.to_dict()["details"] == {"field": "text"}

    def test_bad_language_reports_language_field(self):
        with pytest.raises(InvalidInputError) as exc:
            require_symptom_input("mild headache", "xx")
        assert exc.value.field == "language"

    def test_long_symptom_with_trailing_whitespace_accepted(self):
        text, _ = require_symptom_input("x" * 500 + "   ", "en")
        assert text == "x" * 500
