"""Listing lifecycle: search, flag updates, deletion and featured reads."""

import logging
from typing import List, Optional
from uuid import UUID

from carmarket.auth import CallerResolver
from carmarket.cache import ViewInvalidator
from carmarket.domains.cars.repository import CarRepository
from carmarket.schemas.cars import CarDocument, CarFlagsUpdate
from carmarket.services.storage import ImageStorage
from carmarket.utils.errors import NotFoundError, PartialFailure, UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

MAX_FEATURED = 12


class CarService:
    """Operations on persisted listings."""

    def __init__(
        self,
        callers: CallerResolver,
        repository: CarRepository,
        storage: ImageStorage,
        invalidator: ViewInvalidator,
    ):
        self.callers = callers
        self.repository = repository
        self.storage = storage
        self.invalidator = invalidator
        self.logger = logging.getLogger(__name__)

    async def _require_car(self, car_id: UUID) -> CarDocument:
        car = await self.repository.get(car_id)
        if car is None:
            raise NotFoundError("Car", car_id)
        return car

    async def search(self, caller_id: Optional[str], query: str = "") -> List[CarDocument]:
        """Listings whose make, model or color contains `query`, newest first."""
        await self.callers.require(caller_id)
        cars = await self.repository.search(query)
        self.logger.debug(f"Search {query!r} matched {len(cars)} listings")
        return cars

    async def update_flags(self, caller_id: Optional[str], car_id: UUID, update: CarFlagsUpdate) -> CarDocument:
        """Change status and/or featured, leaving everything else untouched.

        Raises:
            NotFoundError: Unknown caller or listing
        """
        await self.callers.require(caller_id)
        car = await self._require_car(car_id)

        changes = update.changes()
        if not changes:
            return car

        car = await self.repository.update_fields(car, changes)
        self.logger.info(f"Updated listing {car_id}: {changes}")
        await self.invalidator.invalidate()
        return car

    async def delete(self, caller_id: Optional[str], car_id: UUID) -> None:
        """Delete a listing, then its images on a best-effort basis.

        The record deletion is what counts: image cleanup failures are logged
        and leave the objects in storage.

        Raises:
            NotFoundError: Unknown caller or listing
        """
        await self.callers.require(caller_id)
        car = await self._require_car(car_id)

        await self.repository.delete(car)
        self.logger.info(f"Deleted listing {car_id}")

        keys = [key for key in (self.storage.key_from_url(url) for url in car.images) if key]
        if keys:
            try:
                await self.storage.remove(keys)
            except UpstreamServiceError as e:
                PartialFailure("image cleanup", e.message, target=str(car_id)).log()

        await self.invalidator.invalidate()

    async def featured(self, limit: int = 3) -> List[CarDocument]:
        """Available featured listings for the home page. No caller required."""
        if not 1 <= limit <= MAX_FEATURED:
            raise ValidationError(f"limit must be between 1 and {MAX_FEATURED}", invalid_fields=["limit"])
        return await self.repository.featured(limit)
