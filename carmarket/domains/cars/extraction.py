"""Structured extraction of car attributes from photos."""

import logging
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from carmarket.ai.prompts.base import Prompt
from carmarket.ai.prompts.car_attributes import CarAttributesPrompt
from carmarket.ai.prompts.car_search import CarSearchPrompt
from carmarket.ai.providers.base import BaseProvider
from carmarket.config import AISettings
from carmarket.schemas.cars import ExtractedAttributes, SearchQuery
from carmarket.utils.errors import ValidationError

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)


def validate_image_input(image: bytes, mime_type: Optional[str]) -> None:
    """Reject input that cannot be a single image."""
    if not image:
        raise ValidationError("Image is empty", missing_fields=["image"])
    if not mime_type or not mime_type.lower().startswith("image/"):
        raise ValidationError(f"Unsupported content type: {mime_type!r}", invalid_fields=["mimeType"])


class ImageExtractor(Generic[ResultT]):
    """Sends one image with a schema-constrained prompt and validates the reply.

    Each call is a single model request; retrying is left to the caller.
    """

    result_model: Type[ResultT]

    def __init__(self, provider: BaseProvider, settings: AISettings, prompt: Prompt):
        self.provider = provider
        self.settings = settings
        self.prompt = prompt
        self.logger = logging.getLogger(__name__)

    async def extract(self, image: bytes, mime_type: str) -> ResultT:
        """Extract a validated result from an image.

        Raises:
            ValidationError: Bad input, or a reply missing or mis-typing fields
            ConfigurationError: The model credential is missing
            UpstreamServiceError: The model call failed
            ModelResponseError: The reply was not a JSON object
        """
        validate_image_input(image, mime_type)

        self.logger.debug(f"Querying {self.provider.provider} with {type(self.prompt).__name__} ({len(image)} bytes)")
        reply = await self.provider.generate_json(
            self.prompt.render(),
            image,
            mime_type,
            system_prompt=self.prompt.system_prompt,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        return self.validate(reply)

    def validate(self, reply: Dict[str, Any]) -> ResultT:
        """Structurally check a parsed reply before anything uses it."""
        missing = self.prompt.missing_fields(reply)
        if missing:
            self.logger.warning(f"AI response missing required fields: {missing}")
            raise ValidationError(
                f"AI response missing required fields: {', '.join(missing)}",
                missing_fields=missing,
            )

        try:
            return self.result_model.model_validate(reply)
        except PydanticValidationError as e:
            invalid = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
            self.logger.warning(f"AI response has invalid fields: {invalid}")
            raise ValidationError(
                f"AI response has invalid values for: {', '.join(invalid)}",
                invalid_fields=invalid,
            ) from e


class AttributeExtractor(ImageExtractor[ExtractedAttributes]):
    """Extracts the full set of listing attributes for an administrator to review."""

    result_model = ExtractedAttributes

    def __init__(self, provider: BaseProvider, settings: AISettings):
        super().__init__(provider, settings, CarAttributesPrompt())


class SearchQueryExtractor(ImageExtractor[SearchQuery]):
    """Extracts make, body type and color to pre-fill a search."""

    result_model = SearchQuery

    def __init__(self, provider: BaseProvider, settings: AISettings):
        super().__init__(provider, settings, CarSearchPrompt())
