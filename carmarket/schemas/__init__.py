"""Schema package exports."""

from .cars import (BodyType, CarDocument, CarDraft, CarFlagsUpdate, CarRead,
                   CarStatus, CreatedCar, ExtractedAttributes, FuelType,
                   SearchQuery, Transmission)
from .responses import ActionResult, ErrorDetail
from .users import UserDocument
