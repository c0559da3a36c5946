import logging
from typing import Optional

import httpx
from mistralai import Mistral, models

from remedymate.application.ports import LLMPort
from remedymate.domain.errors import GatewayTimeoutError, GatewayUnavailableError
from remedymate.infrastructure.config import Settings


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a careful health triage assistant. You are not a doctor and never claim certainty. "
    "Follow the output format in the user's message exactly."
)


def _message_text(content) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    # Newer models may answer with a list of content chunks
    return "".join(getattr(chunk, "text", "") or "" for chunk in content)


class MistralLLMAdapter(LLMPort):
    def __init__(self, settings: Optional[Settings] = None, client: Optional[Mistral] = None):
        self.settings = settings or Settings()
        self._model = self.settings.mistral_model
        self._temperature = self.settings.llm_temperature
        self._default_timeout = self.settings.llm_timeout_seconds
        self._client = client or self._init_client()

    def _init_client(self) -> Optional[Mistral]:
        api_key = self.settings.mistral_api_key
        if not api_key:
            logger.error("Mistral API key is missing.")
            return None
        return Mistral(api_key=api_key)

    def classify(self, prompt: str, timeout: Optional[float] = None) -> str:
        if not self._client:
            raise GatewayUnavailableError("Mistral client not initialized (missing API key)",
                                          details={"provider": "mistral"})
        timeout = self._default_timeout if timeout is None else min(timeout, self._default_timeout)
        try:
            response = self._client.chat.complete(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                timeout_ms=int(timeout * 1000),
            )
        except httpx.TimeoutException as e:
            logger.warning("Mistral call timed out after %.1fs: %s", timeout, e)
            raise GatewayTimeoutError(details={"provider": "mistral"})
        except (models.SDKError, models.HTTPValidationError, httpx.HTTPError) as e:
            logger.exception("Mistral chat call failed: %s", e)
            raise GatewayUnavailableError(details={"provider": "mistral"})

        if not response or not response.choices:
            raise GatewayUnavailableError("Mistral returned no choices", details={"provider": "mistral"})
        return _message_text(response.choices[0].message.content)
