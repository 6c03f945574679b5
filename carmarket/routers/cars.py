"""Public car routes."""

from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi_cache.decorator import cache

from carmarket.cache import FEATURED_CARS_NAMESPACE
from carmarket.dependencies import ServiceContainer, get_container, get_request_context
from carmarket.domains.cars.service import MAX_FEATURED
from carmarket.schemas.cars import CarRead, SearchQuery
from carmarket.schemas.responses import ActionResult
from carmarket.utils.rate_limiting import RequestContext

router = APIRouter(prefix="/cars", tags=["cars"])


@router.post("/search/image", response_model=ActionResult[SearchQuery])
async def search_by_image(
    image: UploadFile = File(...),
    context: RequestContext = Depends(get_request_context),
    container: ServiceContainer = Depends(get_container),
):
    """Turn a photo into a make / body type / color search hint."""
    data = await image.read()
    query = await container.image_search.search(context, data, image.content_type)
    return ActionResult.ok(query)


@router.get("/featured", response_model=ActionResult[List[CarRead]])
@cache(namespace=FEATURED_CARS_NAMESPACE)
async def featured_cars(
    limit: int = Query(default=3, ge=1, le=MAX_FEATURED),
    container: ServiceContainer = Depends(get_container),
) -> ActionResult[List[CarRead]]:
    """Featured, available listings for the home page."""
    cars = await container.cars.featured(limit)
    return ActionResult.ok([CarRead.from_document(car) for car in cars])
