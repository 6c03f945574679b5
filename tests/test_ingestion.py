"""
Tests for the ingestion pipeline.
"""
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from botocore.exceptions import ClientError

from carmarket.domains.cars.ingestion import IngestionPipeline
from carmarket.schemas.cars import CarDocument, CarStatus
from carmarket.utils.errors import AuthorizationError, NoValidImagesError, NotFoundError, UpstreamServiceError

from tests.conftest import ADMIN_ID, JPEG_BYTES, PNG_BYTES, data_uri

LISTING_ID = UUID("0b7c4f8e-52d4-4e0f-8f3c-9a1e2d3c4b5a")


@pytest.fixture
def pipeline(callers, repository, storage, invalidator):
    return IngestionPipeline(
        callers,
        repository,
        storage,
        invalidator,
        id_factory=lambda: LISTING_ID,
        clock_ms=lambda: 1700000000000,
    )


def uploaded_keys(s3_client):
    return [call.kwargs["Key"] for call in s3_client.put_object.call_args_list]


class TestIngest:
    """Tests for IngestionPipeline.ingest."""

    async def test_creates_listing_with_images_in_order(self, admin, pipeline, draft, s3_client, invalidator):
        images = [data_uri(PNG_BYTES, "png"), data_uri(JPEG_BYTES, "jpeg")]

        created = await pipeline.ingest(ADMIN_ID, draft, images)

        assert created.id == LISTING_ID
        assert created.skipped == []
        assert created.images == [
            f"https://cdn.example.com/car-images/{LISTING_ID}/image-1700000000000-0.png",
            f"https://cdn.example.com/car-images/{LISTING_ID}/image-1700000000000-1.jpeg",
        ]

        car = await CarDocument.get(LISTING_ID)
        assert car is not None
        assert car.images == created.images
        assert car.make == "Toyota"
        assert car.seats == 5
        assert car.status == CarStatus.AVAILABLE
        assert car.featured is False
        invalidator.invalidate.assert_awaited_once()

    async def test_every_key_is_under_listing_id(self, admin, pipeline, draft, s3_client):
        await pipeline.ingest(ADMIN_ID, draft, [data_uri(PNG_BYTES)] * 3)

        keys = uploaded_keys(s3_client)
        assert len(keys) == 3
        assert all(key.startswith(f"{LISTING_ID}/") for key in keys)
        assert len(set(keys)) == 3

    async def test_invalid_images_are_skipped(self, admin, pipeline, draft, s3_client):
        images = ["https://example.com/car.png", data_uri(PNG_BYTES), "data:image/png;base64,"]

        created = await pipeline.ingest(ADMIN_ID, draft, images)

        assert len(created.images) == 1
        assert created.images[0].endswith("-1.png")
        assert [skipped.index for skipped in created.skipped] == [0, 2]
        assert s3_client.put_object.call_count == 1

    async def test_failed_upload_is_skipped(self, admin, pipeline, draft, s3_client):
        s3_client.put_object.side_effect = [
            ClientError({"Error": {"Code": "InternalError"}}, "PutObject"),
            {"ETag": '"etag"'},
        ]

        created = await pipeline.ingest(ADMIN_ID, draft, [data_uri(PNG_BYTES), data_uri(JPEG_BYTES, "jpeg")])

        assert len(created.images) == 1
        assert created.images[0].endswith("-1.jpeg")
        assert created.skipped[0].index == 0

    async def test_no_valid_images_writes_nothing(self, admin, pipeline, draft, s3_client, invalidator):
        with pytest.raises(NoValidImagesError) as exc_info:
            await pipeline.ingest(ADMIN_ID, draft, ["not-an-image", "data:text/plain;base64,aGk="])

        assert exc_info.value.message == "No valid images were uploaded"
        assert exc_info.value.details["skipped"] == 2
        assert await CarDocument.find_all().count() == 0
        s3_client.put_object.assert_not_called()
        invalidator.invalidate.assert_not_called()

    async def test_empty_image_list(self, admin, pipeline, draft):
        with pytest.raises(NoValidImagesError):
            await pipeline.ingest(ADMIN_ID, draft, [])

    async def test_failed_insert_discards_uploaded_images(self, admin, pipeline, draft, s3_client, invalidator):
        pipeline.repository.insert = AsyncMock(side_effect=UpstreamServiceError("database", "write failed"))

        with pytest.raises(UpstreamServiceError):
            await pipeline.ingest(ADMIN_ID, draft, [data_uri(PNG_BYTES), data_uri(PNG_BYTES)])

        removed = [entry["Key"] for entry in s3_client.delete_objects.call_args.kwargs["Delete"]["Objects"]]
        assert removed == uploaded_keys(s3_client)
        invalidator.invalidate.assert_not_called()

    async def test_failed_cleanup_still_raises_insert_error(self, admin, pipeline, draft, s3_client):
        pipeline.repository.insert = AsyncMock(side_effect=UpstreamServiceError("database", "write failed"))
        s3_client.delete_objects.side_effect = ClientError({"Error": {"Code": "InternalError"}}, "DeleteObjects")

        with pytest.raises(UpstreamServiceError) as exc_info:
            await pipeline.ingest(ADMIN_ID, draft, [data_uri(PNG_BYTES)])

        assert exc_info.value.service == "database"

    async def test_missing_identity_has_no_side_effects(self, pipeline, draft, s3_client):
        with pytest.raises(AuthorizationError):
            await pipeline.ingest(None, draft, [data_uri(PNG_BYTES)])

        s3_client.put_object.assert_not_called()
        assert await CarDocument.find_all().count() == 0

    async def test_unknown_user_has_no_side_effects(self, admin, pipeline, draft, s3_client):
        with pytest.raises(NotFoundError) as exc_info:
            await pipeline.ingest("user_stranger", draft, [data_uri(PNG_BYTES)])

        assert exc_info.value.message == "User not found"
        s3_client.put_object.assert_not_called()
