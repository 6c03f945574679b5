"""
Shared fixtures.

Documents are backed by an in-memory MongoDB so repositories run unmodified.
"""
import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from carmarket.auth import CallerResolver
from carmarket.cache import ViewInvalidator
from carmarket.config import StorageSettings
from carmarket.db import DOCUMENT_MODELS
from carmarket.domains.cars.repository import CarRepository
from carmarket.domains.users.repository import UserRepository
from carmarket.schemas.cars import CarDraft
from carmarket.schemas.users import UserDocument
from carmarket.services.storage import ImageStorage

ADMIN_ID = "user_admin"

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def data_uri(data: bytes, extension: str = "png") -> str:
    return f"data:image/{extension};base64,{base64.b64encode(data).decode()}"


@pytest.fixture(autouse=True)
async def database():
    """Fresh in-memory database with every document model registered."""
    client = AsyncMongoMockClient(uuidRepresentation="standard", tz_aware=True)
    await init_beanie(database=client.get_database("carmarket_test"), document_models=DOCUMENT_MODELS)
    yield client


@pytest.fixture
async def admin(database):
    user = UserDocument(external_id=ADMIN_ID, email="admin@example.com", name="Admin")
    await user.insert()
    return user


@pytest.fixture
def callers():
    return CallerResolver(UserRepository())


@pytest.fixture
def repository():
    return CarRepository()


@pytest.fixture
def s3_client():
    """Stand-in for a boto3 S3 client."""
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"etag"'}
    client.delete_objects.return_value = {}
    return client


@pytest.fixture
def storage_settings():
    return StorageSettings(bucket="car-images", public_base_url="https://cdn.example.com")


@pytest.fixture
def storage(storage_settings, s3_client):
    return ImageStorage(storage_settings, client=s3_client)


@pytest.fixture
def invalidator():
    return AsyncMock(spec=ViewInvalidator)


@pytest.fixture
def draft():
    return CarDraft(
        make="Toyota",
        model="Corolla",
        year=2020,
        color="Blue",
        price="18500.00",
        mileage=42000,
        body_type="Sedan",
        fuel_type="Petrol",
        transmission="Automatic",
        seats=5,
        description="One owner, full service history.",
    )
