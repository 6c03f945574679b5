"""
Tests for data-URI decoding and object storage.
"""
from uuid import UUID

import pytest
from botocore.exceptions import ClientError

from carmarket.services.images import InvalidImageError, decode_data_uri
from carmarket.utils.errors import UpstreamServiceError

from tests.conftest import PNG_BYTES, data_uri

LISTING_ID = UUID("6f1c2b9e-3c1a-4a55-9d43-0d3f5e7a8b21")


class TestDecodeDataUri:
    """Tests for decode_data_uri."""

    def test_png(self):
        image = decode_data_uri(data_uri(PNG_BYTES, "png"))

        assert image.data == PNG_BYTES
        assert image.extension == "png"
        assert image.content_type == "image/png"

    def test_extension_is_lowercased(self):
        assert decode_data_uri(data_uri(PNG_BYTES, "WEBP")).extension == "webp"

    def test_filename_carries_position(self):
        image = decode_data_uri(data_uri(PNG_BYTES, "jpeg"))

        assert image.filename(2, timestamp_ms=1700000000000) == "image-1700000000000-2.jpeg"

    @pytest.mark.parametrize(
        "value",
        [
            "https://example.com/car.png",
            "data:text/plain;base64,aGVsbG8=",
            "data:image/png;base64,",
            "data:image/png,rawbytes",
            "data:image/png;base64,not*base64!",
            12345,
            None,
        ],
    )
    def test_invalid_payloads(self, value):
        with pytest.raises(InvalidImageError):
            decode_data_uri(value)


class TestImageStorage:
    """Tests for ImageStorage."""

    def test_object_key_is_under_listing(self, storage):
        assert storage.object_key(LISTING_ID, "image-1-0.png") == f"{LISTING_ID}/image-1-0.png"

    def test_url_round_trip(self, storage):
        key = storage.object_key(LISTING_ID, "image-1-0.png")

        url = storage.public_url(key)

        assert url == f"https://cdn.example.com/car-images/{LISTING_ID}/image-1-0.png"
        assert storage.key_from_url(url) == key

    def test_foreign_url_has_no_key(self, storage):
        assert storage.key_from_url("https://elsewhere.example.com/other-bucket/a.png") is None

    async def test_upload(self, storage, s3_client):
        url = await storage.upload("abc/image-1-0.png", PNG_BYTES, "image/png")

        assert url == "https://cdn.example.com/car-images/abc/image-1-0.png"
        s3_client.put_object.assert_called_once_with(
            Bucket="car-images", Key="abc/image-1-0.png", Body=PNG_BYTES, ContentType="image/png"
        )

    async def test_upload_failure(self, storage, s3_client):
        s3_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "SlowDown"}, "ResponseMetadata": {"HTTPStatusCode": 503}}, "PutObject"
        )

        with pytest.raises(UpstreamServiceError) as exc_info:
            await storage.upload("abc/image-1-0.png", PNG_BYTES, "image/png")

        assert exc_info.value.service == "storage"
        assert exc_info.value.upstream_status == 503

    async def test_remove(self, storage, s3_client):
        await storage.remove(["abc/1.png", "abc/2.png"])

        kwargs = s3_client.delete_objects.call_args.kwargs
        assert kwargs["Bucket"] == "car-images"
        assert kwargs["Delete"]["Objects"] == [{"Key": "abc/1.png"}, {"Key": "abc/2.png"}]

    async def test_remove_nothing(self, storage, s3_client):
        await storage.remove([])

        s3_client.delete_objects.assert_not_called()

    async def test_remove_reports_per_object_errors(self, storage, s3_client):
        s3_client.delete_objects.return_value = {"Errors": [{"Key": "abc/2.png", "Code": "AccessDenied"}]}

        with pytest.raises(UpstreamServiceError) as exc_info:
            await storage.remove(["abc/1.png", "abc/2.png"])

        assert "abc/2.png" in exc_info.value.message
