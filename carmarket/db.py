"""Database connection and initialization."""

import logging

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from carmarket.config import DatabaseSettings
from carmarket.schemas.cars import CarDocument
from carmarket.schemas.users import UserDocument

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [CarDocument, UserDocument]


def create_client(settings: DatabaseSettings, **kwargs) -> AsyncIOMotorClient:
    # Listing ids are UUIDs
    return AsyncIOMotorClient(settings.mongodb_uri, uuidRepresentation="standard", **kwargs)


async def init_db(settings: DatabaseSettings) -> AsyncIOMotorClient:
    """Initialize the database connection and document models."""
    client = create_client(settings)

    logger.info(f"Initializing Beanie with database: {settings.database_name}")
    try:
        await init_beanie(
            database=client[settings.database_name],
            document_models=DOCUMENT_MODELS,
        )
        logger.info("Database initialization successful")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    return client


async def check_connection(client: AsyncIOMotorClient) -> bool:
    """Check if the database connection is healthy.

    Returns:
        bool: True if connection is healthy, False otherwise
    """
    try:
        await client.admin.command("ping")
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
