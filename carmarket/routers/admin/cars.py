"""Admin routes for car listings."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi_cache.decorator import cache

from carmarket.cache import ADMIN_CARS_NAMESPACE
from carmarket.dependencies import ServiceContainer, get_caller_id, get_container
from carmarket.schemas.cars import CamelModel, CarDraft, CarFlagsUpdate, CarRead, CreatedCar, ExtractedAttributes
from carmarket.schemas.responses import ActionResult

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateCarRequest(CamelModel):
    car_data: CarDraft
    # Data URIs, in display order
    images: List[str] = []


@router.post("/extract", response_model=ActionResult[ExtractedAttributes])
async def extract_attributes(
    image: UploadFile = File(...),
    container: ServiceContainer = Depends(get_container),
):
    """Read listing attributes off a car photo for review."""
    data = await image.read()
    attributes = await container.extractor.extract(data, image.content_type)
    return ActionResult.ok(attributes)


@router.post("", response_model=ActionResult[CreatedCar], status_code=status.HTTP_201_CREATED)
async def create_car(
    payload: CreateCarRequest,
    caller_id: Optional[str] = Depends(get_caller_id),
    container: ServiceContainer = Depends(get_container),
):
    """Upload the images and create the listing."""
    created = await container.ingestion.ingest(caller_id, payload.car_data, payload.images)
    return ActionResult.ok(created)


@router.get("", response_model=ActionResult[List[CarRead]])
@cache(namespace=ADMIN_CARS_NAMESPACE)
async def list_cars(
    search: str = Query(default="", max_length=100),
    caller_id: Optional[str] = Depends(get_caller_id),
    container: ServiceContainer = Depends(get_container),
) -> ActionResult[List[CarRead]]:
    """All listings, or those matching `search`, newest first."""
    cars = await container.cars.search(caller_id, search)
    return ActionResult.ok([CarRead.from_document(car) for car in cars])


@router.patch("/{car_id}", response_model=ActionResult[CarRead])
async def update_car_flags(
    car_id: UUID,
    update: CarFlagsUpdate,
    caller_id: Optional[str] = Depends(get_caller_id),
    container: ServiceContainer = Depends(get_container),
):
    """Change a listing's status and/or featured flag."""
    car = await container.cars.update_flags(caller_id, car_id, update)
    return ActionResult.ok(CarRead.from_document(car))


@router.delete("/{car_id}", response_model=ActionResult[None])
async def delete_car(
    car_id: UUID,
    caller_id: Optional[str] = Depends(get_caller_id),
    container: ServiceContainer = Depends(get_container),
):
    """Delete a listing and, best effort, its images."""
    await container.cars.delete(caller_id, car_id)
    return ActionResult.ok()
