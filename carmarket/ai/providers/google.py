"""Google AI provider implementation."""

import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions

from carmarket.ai.providers.base import BaseProvider
from carmarket.config import AISettings
from carmarket.utils.errors import ConfigurationError, UpstreamServiceError


class GoogleAIProvider(BaseProvider):
    """Provider for Google's Generative AI API (Gemini vision models)."""

    def __init__(self, settings: AISettings, default_model: Optional[str] = None):
        """Initialize the Google AI provider.

        Args:
            settings: AI settings holding the credential and call defaults
            default_model: The model to use. If None, uses the configured vision model.
        """
        super().__init__(default_model=default_model or settings.vision_model)
        self.provider = "gemini"
        self._api_key = settings.google_api_key.get_secret_value()
        self._timeout = settings.request_timeout
        if self._api_key:
            genai.configure(api_key=self._api_key)
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def generate_text(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate text from an image and a prompt."""
        if not self.configured:
            raise ConfigurationError("Gemini API key is not configured", setting="GEMINI_API_KEY")

        generate_config = genai.types.GenerationConfig(temperature=temperature, max_output_tokens=max_tokens)
        image_part = {"mime_type": mime_type, "data": image}
        try:
            model_instance = genai.GenerativeModel(
                model_name=self._default_model,
                generation_config=generate_config,
                system_instruction=system_prompt,
            )
            response = await model_instance.generate_content_async(
                [image_part, prompt],
                request_options={"timeout": self._timeout},
            )
        except exceptions.GoogleAPICallError as e:
            # ResourceExhausted (429), DeadlineExceeded (504), ServiceUnavailable (503), ...
            status = int(e.code) if e.code is not None else None
            raise UpstreamServiceError("gemini", f"Gemini API error: {e.message}", upstream_status=status) from e
        except Exception as e:
            raise UpstreamServiceError("gemini", f"Gemini API error: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # Raised when the reply was blocked or has no candidates
            raise UpstreamServiceError("gemini", f"Gemini returned no content: {e}") from e

        if not text:
            raise UpstreamServiceError("gemini", "Empty response from model")
        return text
