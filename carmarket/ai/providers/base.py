"""Base classes for vision providers."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from carmarket.utils.errors import ModelResponseError

_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wherever the model put them."""
    return _FENCE_RE.sub("", text).strip()


def parse_json_reply(text: str) -> Dict[str, Any]:
    """Parse a model reply that should contain exactly one JSON object.

    Raises:
        ModelResponseError: If the reply is not a JSON object
    """
    cleaned = strip_code_fences(text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ModelResponseError(f"Failed to parse AI response: {e}") from e

    if not isinstance(parsed, dict):
        raise ModelResponseError("Failed to parse AI response: expected a JSON object")
    return parsed


class BaseProvider(ABC):
    """Base class for vision-language model providers."""

    def __init__(self, default_model: Optional[str] = None):
        """Initialize the provider.

        Args:
            default_model: The model used when a call does not name one.
        """
        self.logger = logging.getLogger(__name__)
        self._default_model = default_model
        self.provider = "base"

    @property
    def default_model(self) -> Optional[str]:
        """Get the default model for this provider."""
        return self._default_model

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send one image and a prompt, return the raw reply text.

        Raises:
            ConfigurationError: If the provider has no credential
            UpstreamServiceError: If the model call fails
        """

    async def generate_json(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Send one image and a prompt, parse the reply as a JSON object.

        Raises:
            ConfigurationError: If the provider has no credential
            UpstreamServiceError: If the model call fails
            ModelResponseError: If the reply is not a JSON object
        """
        text = await self.generate_text(
            prompt,
            image,
            mime_type,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        try:
            return parse_json_reply(text)
        except ModelResponseError:
            self.logger.error(f"Couldn't parse JSON from {self.provider} response: {text!r}")
            raise
