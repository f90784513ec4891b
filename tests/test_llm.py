"""
Tests for the Gemini wrapper (app.core.llm) without network access.
"""
from types import SimpleNamespace

import pytest
from asgiref.sync import async_to_sync

from app.core.exceptions import (
    AIAuthenticationError,
    AIQuotaExceededError,
    AISafetyBlockedError,
    ExternalServiceError,
)
from app.core.llm import LLMProvider, classify_error
from app.core.model_config import AIConfig


class _ApiError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class _FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        if self.error is not None:
            raise self.error
        return self.response


def _provider(response=None, error=None):
    provider = LLMProvider(AIConfig(api_key="test-key", model="gemini-test"))
    models = _FakeModels(response=response, error=error)
    provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return provider, models


class TestClassifyError:

    @pytest.mark.parametrize("error,expected", [
        (_ApiError("denied", code=403), AIAuthenticationError),
        (_ApiError("API key not valid"), AIAuthenticationError),
        (_ApiError("too many", code=429), AIQuotaExceededError),
        (_ApiError("RESOURCE_EXHAUSTED: quota"), AIQuotaExceededError),
        (_ApiError("Response blocked by safety"), AISafetyBlockedError),
        (_ApiError("connection reset"), ExternalServiceError),
    ])
    def test_mapping(self, error, expected):
        assert type(classify_error(error)) is expected

    def test_domain_error_passes_through(self):
        error = AIQuotaExceededError()
        assert classify_error(error) is error


class TestLLMProvider:

    def test_missing_key(self):
        provider = LLMProvider(AIConfig(api_key=None))
        with pytest.raises(AIAuthenticationError):
            provider.client

    def test_returns_reply_text(self):
        provider, models = _provider(SimpleNamespace(text='{"ok": true}', prompt_feedback=None, candidates=[]))
        assert async_to_sync(provider.generate_json)("prompt") == '{"ok": true}'
        model, contents, config = models.calls[0]
        assert model == "gemini-test"
        assert contents == "prompt"
        assert config.response_mime_type == "application/json"
        assert len(config.safety_settings) == 4

    def test_sdk_error_is_classified(self):
        provider, _ = _provider(error=_ApiError("quota exceeded", code=429))
        with pytest.raises(AIQuotaExceededError):
            async_to_sync(provider.generate_json)("prompt")

    def test_blocked_prompt(self):
        feedback = SimpleNamespace(block_reason="SAFETY")
        provider, _ = _provider(SimpleNamespace(text=None, prompt_feedback=feedback, candidates=[]))
        with pytest.raises(AISafetyBlockedError):
            async_to_sync(provider.generate_json)("prompt")

    def test_empty_reply_after_safety_stop(self):
        candidate = SimpleNamespace(finish_reason="FinishReason.SAFETY")
        provider, _ = _provider(SimpleNamespace(text="", prompt_feedback=None, candidates=[candidate]))
        with pytest.raises(AISafetyBlockedError):
            async_to_sync(provider.generate_json)("prompt")

    def test_empty_reply(self):
        provider, _ = _provider(SimpleNamespace(text="", prompt_feedback=None, candidates=[]))
        with pytest.raises(ExternalServiceError):
            async_to_sync(provider.generate_json)("prompt")


def test_config_from_settings(settings):
    settings.GEMINI_API_KEY = ""
    settings.GEMINI_MODEL = "gemini-custom"
    config = AIConfig.from_settings()
    assert config.is_configured is False
    assert config.model == "gemini-custom"
