"""
Tests for attribute and search-query extraction from photos.
"""
import json
from decimal import Decimal
from typing import List, Optional

import pytest

from carmarket.ai.prompts.car_attributes import CarAttributesPrompt
from carmarket.ai.providers.base import BaseProvider, parse_json_reply, strip_code_fences
from carmarket.config import AISettings
from carmarket.domains.cars.extraction import AttributeExtractor, SearchQueryExtractor
from carmarket.schemas.cars import BodyType, FuelType, Transmission
from carmarket.utils.errors import ModelResponseError, UpstreamServiceError, ValidationError

from tests.conftest import JPEG_BYTES

FULL_REPLY = {
    "make": "Toyota",
    "model": "Corolla",
    "year": 2020,
    "color": "Blue",
    "bodyType": "Sedan",
    "price": "18500",
    "mileage": 42000,
    "fuelType": "Petrol",
    "transmission": "Automatic",
    "description": "Clean compact sedan.",
    "confidence": 0.85,
}


class ScriptedProvider(BaseProvider):
    """Provider returning canned replies and recording calls."""

    def __init__(self, replies: List[str]):
        super().__init__(default_model="test-model")
        self.provider = "scripted"
        self.replies = list(replies)
        self.calls: List[dict] = []

    async def generate_text(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
    ) -> str:
        self.calls.append({"prompt": prompt, "mime_type": mime_type, "system_prompt": system_prompt})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def extractor_for(*replies) -> AttributeExtractor:
    return AttributeExtractor(ScriptedProvider(list(replies)), AISettings())


class TestReplyParsing:
    """Tests for cleaning and parsing raw model replies."""

    def test_strip_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'

    def test_unfenced_text_is_untouched(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_parse_invalid_json(self):
        with pytest.raises(ModelResponseError) as exc_info:
            parse_json_reply("The car is a blue Toyota.")
        assert exc_info.value.message.startswith("Failed to parse AI response")

    def test_parse_non_object(self):
        with pytest.raises(ModelResponseError):
            parse_json_reply("[1, 2, 3]")


class TestAttributeExtractor:
    """Tests for AttributeExtractor."""

    async def test_extracts_full_reply(self):
        extractor = extractor_for(json.dumps(FULL_REPLY))

        attributes = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert attributes.make == "Toyota"
        assert attributes.body_type == BodyType.SEDAN
        assert attributes.fuel_type == FuelType.PETROL
        assert attributes.transmission == Transmission.AUTOMATIC
        assert attributes.price == "18500"
        assert attributes.confidence == pytest.approx(0.85)

    async def test_fenced_reply_is_accepted(self):
        extractor = extractor_for(f"```json\n{json.dumps(FULL_REPLY)}\n```")

        attributes = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert attributes.model == "Corolla"

    async def test_prompt_lists_allowed_values(self):
        provider = ScriptedProvider([json.dumps(FULL_REPLY)])
        extractor = AttributeExtractor(provider, AISettings())

        await extractor.extract(JPEG_BYTES, "image/jpeg")

        prompt = provider.calls[0]["prompt"]
        assert "Plug-in Hybrid" in prompt
        assert "Semi-Automatic" in prompt
        assert provider.calls[0]["system_prompt"] == CarAttributesPrompt().system_prompt
        assert provider.calls[0]["mime_type"] == "image/jpeg"

    async def test_enum_casing_is_normalized(self):
        reply = {**FULL_REPLY, "bodyType": "suv", "fuelType": "plug-in hybrid", "transmission": "MANUAL"}
        extractor = extractor_for(json.dumps(reply))

        attributes = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert attributes.body_type == BodyType.SUV
        assert attributes.fuel_type == FuelType.PLUG_IN_HYBRID
        assert attributes.transmission == Transmission.MANUAL

    async def test_numeric_price_is_accepted(self):
        reply = {**FULL_REPLY, "price": 18500}
        extractor = extractor_for(json.dumps(reply))

        attributes = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert attributes.price == "18500"
        assert Decimal(attributes.price) == Decimal("18500")

    async def test_missing_confidence_defaults_to_zero(self):
        reply = {key: value for key, value in FULL_REPLY.items() if key != "confidence"}
        extractor = extractor_for(json.dumps(reply))

        attributes = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert attributes.confidence == 0.0

    async def test_missing_fields_are_reported(self):
        reply = {key: value for key, value in FULL_REPLY.items() if key not in ("model", "mileage")}
        extractor = extractor_for(json.dumps(reply))

        with pytest.raises(ValidationError) as exc_info:
            await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert exc_info.value.missing_fields == ["model", "mileage"]
        assert "model" in exc_info.value.message

    async def test_unknown_enum_value_is_invalid(self):
        reply = {**FULL_REPLY, "bodyType": "Limousine"}
        extractor = extractor_for(json.dumps(reply))

        with pytest.raises(ValidationError) as exc_info:
            await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert exc_info.value.invalid_fields == ["bodyType"]

    async def test_out_of_range_values_are_invalid(self):
        reply = {**FULL_REPLY, "year": 1800, "confidence": 1.5, "price": "about 20k"}
        extractor = extractor_for(json.dumps(reply))

        with pytest.raises(ValidationError) as exc_info:
            await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert exc_info.value.invalid_fields == ["confidence", "price", "year"]

    async def test_unparseable_reply(self):
        extractor = extractor_for("Sorry, I can't help with that.")

        with pytest.raises(ModelResponseError):
            await extractor.extract(JPEG_BYTES, "image/jpeg")

    async def test_upstream_failure_propagates(self):
        extractor = extractor_for(UpstreamServiceError("gemini", "quota exceeded", upstream_status=429))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert exc_info.value.upstream_status == 429
        assert exc_info.value.retryable is True

    async def test_empty_image_is_rejected_without_model_call(self):
        provider = ScriptedProvider([json.dumps(FULL_REPLY)])
        extractor = AttributeExtractor(provider, AISettings())

        with pytest.raises(ValidationError):
            await extractor.extract(b"", "image/jpeg")

        assert provider.calls == []

    async def test_non_image_type_is_rejected(self):
        provider = ScriptedProvider([json.dumps(FULL_REPLY)])
        extractor = AttributeExtractor(provider, AISettings())

        with pytest.raises(ValidationError) as exc_info:
            await extractor.extract(b"%PDF-1.4", "application/pdf")

        assert exc_info.value.invalid_fields == ["mimeType"]
        assert provider.calls == []


class TestSearchQueryExtractor:
    """Tests for SearchQueryExtractor."""

    async def test_extracts_search_hint(self):
        reply = {"make": "Honda", "bodyType": "hatchback", "color": "Red", "confidence": 0.7}
        extractor = SearchQueryExtractor(ScriptedProvider([json.dumps(reply)]), AISettings())

        query = await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert query.make == "Honda"
        assert query.body_type == "hatchback"
        assert query.color == "Red"

    async def test_missing_color_is_reported(self):
        reply = {"make": "Honda", "bodyType": "Hatchback"}
        extractor = SearchQueryExtractor(ScriptedProvider([json.dumps(reply)]), AISettings())

        with pytest.raises(ValidationError) as exc_info:
            await extractor.extract(JPEG_BYTES, "image/jpeg")

        assert exc_info.value.missing_fields == ["color"]
