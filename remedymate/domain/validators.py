"""Symptom, answer and language validation functions."""
from typing import Optional, Tuple

from .errors import InvalidInputError
from .models import Language


SYMPTOM_MIN_LENGTH = 3
SYMPTOM_MAX_LENGTH = 500
ANSWER_MAX_LENGTH = 1000


def validate_language(language) -> Tuple[bool, str]:
    """
    Validate a language code.

    Args:
        language: Language code or Language member

    Returns:
        Tuple of (is_valid, error_message)
    """
    if language is None or (isinstance(language, str) and not language.strip()):
        return False, "Language is required"

    try:
        Language(language)
    except ValueError:
        return False, f"Unsupported language: {language} (supported: en, am)"

    return True, ""


def validate_symptom_text(text: Optional[str]) -> Tuple[bool, str]:
    """
    Validate free-text symptom input.

    Requirements:
    - Not empty or whitespace only
    - At least 3 and at most 500 characters once surrounding whitespace is trimmed

    Args:
        text: Symptom description

    Returns:
        Tuple of (is_valid, error_message)
    """
    text = (text or "").strip()
    if not text:
        return False, "Symptom text cannot be empty"

    if len(text) < SYMPTOM_MIN_LENGTH:
        return False, f"Symptom text too short (minimum {SYMPTOM_MIN_LENGTH} characters)"

    if len(text) > SYMPTOM_MAX_LENGTH:
        return False, f"Symptom text too long (maximum {SYMPTOM_MAX_LENGTH} characters)"

    return True, ""


def validate_answer_text(text: Optional[str]) -> Tuple[bool, str]:
    """Validate an answer to a follow-up question (1-1000 characters)."""
    text = (text or "").strip()
    if not text:
        return False, "Answer cannot be empty"

    if len(text) > ANSWER_MAX_LENGTH:
        return False, f"Answer too long (maximum {ANSWER_MAX_LENGTH} characters)"

    return True, ""


def require_symptom_input(text: Optional[str], language) -> Tuple[str, Language]:
    """Raise InvalidInputError unless both symptom text and language are valid."""
    is_valid, error = validate_symptom_text(text)
    if not is_valid:
        raise InvalidInputError(error, field="text")

    is_valid, error = validate_language(language)
    if not is_valid:
        raise InvalidInputError(error, field="language")

    return text.strip(), Language(language)
