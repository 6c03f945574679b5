"""Admin routes module."""

from fastapi import APIRouter, Depends

from carmarket.dependencies import require_caller
from carmarket.routers.admin import cars

router = APIRouter(prefix="/admin", dependencies=[Depends(require_caller)])

router.include_router(cars.router, prefix="/cars", tags=["admin-cars"])
