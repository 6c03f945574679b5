"""Ingestion of reviewed drafts into stored listings."""

import logging
import time
from typing import Callable, List, Sequence
from uuid import UUID, uuid4

from carmarket.auth import CallerResolver
from carmarket.cache import ViewInvalidator
from carmarket.domains.cars.repository import CarRepository
from carmarket.schemas.cars import CarDocument, CarDraft, CreatedCar, SkippedImage
from carmarket.services.images import InvalidImageError, decode_data_uri
from carmarket.services.storage import ImageStorage
from carmarket.utils.errors import NoValidImagesError, PartialFailure, UpstreamServiceError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class IngestionPipeline:
    """Uploads a draft's images and writes the listing as one logical unit.

    Individual images may be skipped, but a listing is only written once at
    least one image is stored, and always under the id its images are stored by.
    """

    def __init__(
        self,
        callers: CallerResolver,
        repository: CarRepository,
        storage: ImageStorage,
        invalidator: ViewInvalidator,
        id_factory: Callable[[], UUID] = uuid4,
        clock_ms: Callable[[], int] = _now_ms,
    ):
        self.callers = callers
        self.repository = repository
        self.storage = storage
        self.invalidator = invalidator
        self.id_factory = id_factory
        self.clock_ms = clock_ms
        self.logger = logging.getLogger(__name__)

    async def _store_images(self, car_id: UUID, images: Sequence[str]) -> tuple[List[str], List[PartialFailure]]:
        """Upload images one at a time, keeping input order for the stored URLs."""
        urls: List[str] = []
        skipped: List[PartialFailure] = []

        for index, raw in enumerate(images):
            try:
                image = decode_data_uri(raw)
            except InvalidImageError as e:
                failure = PartialFailure("image upload", f"Skipping invalid image data: {e}", index=index)
                failure.log()
                skipped.append(failure)
                continue

            key = self.storage.object_key(car_id, image.filename(index, self.clock_ms()))
            try:
                urls.append(await self.storage.upload(key, image.data, image.content_type))
            except UpstreamServiceError as e:
                failure = PartialFailure("image upload", e.message, index=index, target=key)
                failure.log()
                skipped.append(failure)

        return urls, skipped

    async def _discard_images(self, urls: List[str]) -> None:
        keys = [key for key in (self.storage.key_from_url(url) for url in urls) if key]
        try:
            await self.storage.remove(keys)
            self.logger.info(f"Removed {len(keys)} images of the unsaved listing")
        except UpstreamServiceError as e:
            PartialFailure("image cleanup", e.message, target=", ".join(keys)).log()

    async def ingest(self, caller_id: str | None, draft: CarDraft, images: Sequence[str]) -> CreatedCar:
        """Store the images and create the listing.

        Args:
            caller_id: Identity of the caller
            draft: Reviewed listing attributes
            images: Data-URI images in display order

        Returns:
            The new listing id, its image URLs and any skipped images

        Raises:
            AuthorizationError: No caller identity
            NotFoundError: Unknown caller
            NoValidImagesError: No image could be stored
            UpstreamServiceError: The listing could not be written
        """
        await self.callers.require(caller_id)

        car_id = self.id_factory()
        self.logger.info(f"Ingesting listing {car_id} with {len(images)} images")

        urls, skipped = await self._store_images(car_id, images)
        if not urls:
            raise NoValidImagesError(skipped=len(skipped))

        car = CarDocument(id=car_id, images=urls, **draft.model_dump())
        try:
            await self.repository.insert(car)
        except UpstreamServiceError:
            self.logger.error(f"Saving listing {car_id} failed, discarding its {len(urls)} images")
            await self._discard_images(urls)
            raise

        await self.invalidator.invalidate()
        self.logger.info(f"Created listing {car_id} with {len(urls)} images ({len(skipped)} skipped)")

        return CreatedCar(
            id=car_id,
            images=urls,
            skipped=[SkippedImage(index=failure.index, reason=failure.reason) for failure in skipped],
        )
