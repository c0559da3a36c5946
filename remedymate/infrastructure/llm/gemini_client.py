import logging
from typing import Optional

import requests

from remedymate.application.ports import LLMPort
from remedymate.domain.errors import GatewayTimeoutError, GatewayUnavailableError
from remedymate.infrastructure.config import Settings


logger = logging.getLogger(__name__)


BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

# Dangerous content is blocked only at HIGH probability.
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


class GeminiLLMAdapter(LLMPort):
    """Calls the Gemini generateContent REST endpoint."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or Settings()
        self.api_key = self.settings.gemini_api_key
        self._model = self.settings.gemini_model
        self._temperature = self.settings.llm_temperature
        self._default_timeout = self.settings.llm_timeout_seconds
        self._session = session or requests.Session()

    def _payload(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "topP": 0.8,
                "topK": 10,
                "maxOutputTokens": 2048,
            },
            "safetySettings": SAFETY_SETTINGS,
        }

    def classify(self, prompt: str, timeout: Optional[float] = None) -> str:
        if not self.api_key:
            logger.error("Gemini API key is missing.")
            raise GatewayUnavailableError("Gemini API key missing", details={"provider": "gemini"})

        timeout = self._default_timeout if timeout is None else min(timeout, self._default_timeout)
        url = f"{BASE_URL}/{self._model}:generateContent"
        try:
            resp = self._session.post(
                url,
                params={"key": self.api_key},
                json=self._payload(prompt),
                timeout=timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            logger.warning("Gemini call timed out after %.1fs: %s", timeout, e)
            raise GatewayTimeoutError(details={"provider": "gemini"})
        except (requests.RequestException, ValueError) as e:
            # ValueError covers a non-JSON body
            logger.exception("Gemini generateContent failed: %s", type(e).__name__)
            raise GatewayUnavailableError(details={"provider": "gemini"})

        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            reason = (data.get("promptFeedback") or {}).get("blockReason") if isinstance(data, dict) else None
            logger.warning("Gemini returned no text (block reason: %s)", reason)
            raise GatewayUnavailableError("Gemini returned no content",
                                          details={"provider": "gemini", "block_reason": reason})
