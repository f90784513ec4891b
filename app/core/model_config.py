"""
Model Configuration
Generation settings for the Gemini client, built once from Django settings.
"""
from typing import Optional
from pydantic import BaseModel, Field
from loguru import logger


class AIConfig(BaseModel):
    """Configuration for the generative model"""
    api_key: Optional[str] = None
    model: str = "gemini-3-flash-preview"

    # Generation parameters
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=2048, gt=0)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    top_k: int = Field(default=40, gt=0)

    # Пороги safety-фильтров Gemini
    safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_settings(cls) -> "AIConfig":
        """Собирает конфигурацию из django.conf.settings."""
        from django.conf import settings

        config = cls(
            api_key=getattr(settings, "GEMINI_API_KEY", None) or None,
            model=getattr(settings, "GEMINI_MODEL", None) or cls.model_fields["model"].default,
        )
        if not config.is_configured:
            logger.warning("GEMINI_API_KEY not found. AI suggestions will use fallback logic.")
        return config
