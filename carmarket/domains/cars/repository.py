"""Repository for car listings."""

import logging
import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from pymongo.errors import PyMongoError

from carmarket.schemas.cars import CarDocument, CarStatus, utcnow
from carmarket.utils.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("make", "model", "color")


def build_search_filter(query: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive substring match on make, model or color.

    The query is matched literally; an empty query matches everything.
    """
    text = (query or "").strip()
    if not text:
        return {}
    pattern = re.escape(text)
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]}


class CarRepository:
    """Data access for car listings."""

    def __init__(self):
        """Initialize the repository."""
        self.logger = logging.getLogger(__name__)

    async def insert(self, car: CarDocument) -> CarDocument:
        """Insert a complete listing in a single write.

        Raises:
            UpstreamServiceError: If the database write fails
        """
        try:
            return await car.insert()
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to save listing {car.id}: {e}") from e

    async def get(self, car_id: UUID) -> Optional[CarDocument]:
        try:
            return await CarDocument.get(car_id)
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to load listing {car_id}: {e}") from e

    async def search(self, query: Optional[str] = None) -> List[CarDocument]:
        """Listings matching `query`, newest first."""
        try:
            return await CarDocument.find(build_search_filter(query)).sort([("created_at", -1)]).to_list()
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to search listings: {e}") from e

    async def featured(self, limit: int) -> List[CarDocument]:
        """Available featured listings, newest first."""
        try:
            return (
                await CarDocument.find({"featured": True, "status": CarStatus.AVAILABLE.value})
                .sort([("created_at", -1)])
                .limit(limit)
                .to_list()
            )
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to load featured listings: {e}") from e

    async def update_fields(self, car: CarDocument, changes: Dict[str, Any]) -> CarDocument:
        """Write only `changes` (plus the update timestamp) to a listing.

        Raises:
            UpstreamServiceError: If the database write fails
        """
        changes = {**changes, "updated_at": utcnow()}
        try:
            await car.set(changes)
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to update listing {car.id}: {e}") from e
        return car

    async def delete(self, car: CarDocument) -> None:
        try:
            await car.delete()
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to delete listing {car.id}: {e}") from e
