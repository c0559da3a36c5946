import os
import logging
from pathlib import Path
from typing import List, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

from remedymate.domain.rules import DEFAULT_TOPIC_KEYS


logger = logging.getLogger(__name__)


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    # Prefer Streamlit secrets if a secrets.toml exists
    try:
        if name in st.secrets:
            return str(st.secrets.get(name))
    except (FileNotFoundError, StreamlitAPIException):
        pass
    # Fallback to environment variables
    return os.environ.get(name, default)


def _get_number(name: str, default: float) -> float:
    raw = get_secret(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


class Settings:
    @property
    def llm_provider(self) -> str:
        return (get_secret("LLM_PROVIDER", "mistral") or "mistral").strip().lower()

    @property
    def mistral_api_key(self) -> Optional[str]:
        return get_secret("MISTRAL_API_KEY")

    @property
    def mistral_model(self) -> str:
        return get_secret("MISTRAL_MODEL", "mistral-large-latest") or "mistral-large-latest"

    @property
    def gemini_api_key(self) -> Optional[str]:
        return get_secret("GEMINI_API_KEY")

    @property
    def gemini_model(self) -> str:
        return get_secret("GEMINI_MODEL", "gemini-2.0-flash") or "gemini-2.0-flash"

    @property
    def llm_timeout_seconds(self) -> float:
        return _get_number("LLM_TIMEOUT_SECONDS", 30.0)

    @property
    def llm_temperature(self) -> float:
        return _get_number("LLM_TEMPERATURE", 0.2)

    @property
    def content_data_path(self) -> Path:
        return Path(get_secret("CONTENT_DATA_PATH") or PROJECT_ROOT / "data")

    @property
    def conversation_max_age_hours(self) -> float:
        return _get_number("CONVERSATION_MAX_AGE_HOURS", 24.0)

    @property
    def topic_keys(self) -> List[str]:
        raw = get_secret("TOPIC_KEYS")
        if not raw:
            return list(DEFAULT_TOPIC_KEYS)
        return [key.strip() for key in raw.split(",") if key.strip()]
