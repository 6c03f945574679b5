"""AI provider factory for creating provider instances."""

import logging
from typing import Optional

from carmarket.ai.providers.base import BaseProvider
from carmarket.ai.providers.google import GoogleAIProvider
from carmarket.config import AISettings


def create_provider(settings: AISettings, model: Optional[str] = None) -> BaseProvider:
    """Create the vision provider.

    Args:
        settings: AI settings
        model: Model override. If None, uses the configured vision model.

    Returns:
        A provider instance
    """
    logger = logging.getLogger(__name__)
    logger.debug(f"Creating provider: gemini ({model or settings.vision_model})")
    return GoogleAIProvider(settings, default_model=model)
