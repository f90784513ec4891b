from typing import Optional

from google import genai
from google.genai import types
from loguru import logger

from app.core.exceptions import (
    AIAuthenticationError,
    AIQuotaExceededError,
    AISafetyBlockedError,
    ExternalServiceError,
)
from app.core.model_config import AIConfig

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]


def classify_error(e: Exception) -> ExternalServiceError:
    """Сводит ошибку Gemini SDK к одному из доменных типов."""
    if isinstance(e, ExternalServiceError):
        return e
    s = str(e).lower()
    code = getattr(e, "status_code", None) or getattr(e, "code", None)
    if code in (401, 403) or "api key" in s or "api_key" in s or "permission denied" in s:
        return AIAuthenticationError()
    if code == 429 or "429" in s or "quota" in s or "resource exhausted" in s or "resource_exhausted" in s:
        return AIQuotaExceededError()
    if "safety" in s or "blocked" in s:
        return AISafetyBlockedError()
    return ExternalServiceError(f"Gemini request failed: {e}")


class LLMProvider:
    def __init__(self, config: Optional[AIConfig] = None):
        self.config = config or AIConfig()
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.config.is_configured:
                raise AIAuthenticationError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.config.api_key)
            logger.info(f"Configured Gemini client, model {self.config.model}")
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            top_p=self.config.top_p,
            top_k=self.config.top_k,
            response_mime_type="application/json",
            safety_settings=[
                types.SafetySetting(category=category, threshold=self.config.safety_threshold)
                for category in SAFETY_CATEGORIES
            ],
        )

    async def generate_json(self, prompt: str) -> str:
        """
        Send a prompt in JSON response mode and return the raw reply text.

        Raises:
            ExternalServiceError (or a subclass) when the call fails or the
            reply was blocked.
        """
        logger.info(f"Calling Gemini ({self.config.model}) with prompt: {prompt[:50]!r}...")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=self._generation_config(),
            )
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Gemini call failed: {type(error).__name__}: {e}")
            raise error from e

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            logger.warning(f"Gemini blocked the prompt: {feedback.block_reason}")
            raise AISafetyBlockedError()

        text = response.text
        if not text:
            candidates = getattr(response, "candidates", None) or []
            finish_reason = str(getattr(candidates[0], "finish_reason", "")) if candidates else ""
            if "SAFETY" in finish_reason.upper():
                raise AISafetyBlockedError()
            raise ExternalServiceError("Empty response from Gemini")

        logger.debug(f"Gemini raw reply: {text[:500]}")
        return text
