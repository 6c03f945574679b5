"""Schemas for car listings."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional
from uuid import UUID, uuid4

from beanie import DecimalAnnotation, Document, Indexed
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CaseInsensitiveEnum(str, Enum):
    """String enum that accepts any casing of its values on input."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value):
        return cls(value) if isinstance(value, str) else value


class BodyType(_CaseInsensitiveEnum):
    SUV = "SUV"
    SEDAN = "Sedan"
    HATCHBACK = "Hatchback"
    CONVERTIBLE = "Convertible"
    COUPE = "Coupe"
    WAGON = "Wagon"
    PICKUP = "Pickup"


class FuelType(_CaseInsensitiveEnum):
    PETROL = "Petrol"
    DIESEL = "Diesel"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"
    PLUG_IN_HYBRID = "Plug-in Hybrid"


class Transmission(_CaseInsensitiveEnum):
    AUTOMATIC = "Automatic"
    MANUAL = "Manual"
    SEMI_AUTOMATIC = "Semi-Automatic"


class CarStatus(_CaseInsensitiveEnum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    SOLD = "SOLD"


Year = Annotated[int, Field(ge=1900, le=2100)]
Mileage = Annotated[int, Field(ge=0)]

# Input-side enum fields, accepting any casing
BodyTypeIn = Annotated[BodyType, BeforeValidator(BodyType.parse)]
FuelTypeIn = Annotated[FuelType, BeforeValidator(FuelType.parse)]
TransmissionIn = Annotated[Transmission, BeforeValidator(Transmission.parse)]
CarStatusIn = Annotated[CarStatus, BeforeValidator(CarStatus.parse)]


class CamelModel(BaseModel):
    """Base model using camelCase on the wire and snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedAttributes(CamelModel):
    """Attributes read off a car photo by the vision model.

    Never stored as is: an administrator reviews them and submits a CarDraft.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    make: str
    model: str
    year: Year
    color: str
    body_type: BodyTypeIn
    price: Annotated[str, Field(pattern=r"^\d+(\.\d+)?$")]
    mileage: Mileage
    fuel_type: FuelTypeIn
    transmission: TransmissionIn
    description: str
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0


class SearchQuery(CamelModel):
    """Search hint read off a buyer's photo. Never persisted."""

    make: str
    body_type: str
    color: str
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0


class CarDraft(CamelModel):
    """Reviewed attributes submitted for ingestion."""

    make: Annotated[str, Field(min_length=1)]
    model: Annotated[str, Field(min_length=1)]
    year: Year
    color: Annotated[str, Field(min_length=1)]
    price: Annotated[Decimal, Field(ge=0)]
    mileage: Mileage
    body_type: BodyTypeIn
    fuel_type: FuelTypeIn
    transmission: TransmissionIn
    seats: Optional[Annotated[int, Field(gt=0, le=100)]] = None
    description: str = ""
    status: CarStatusIn = CarStatus.AVAILABLE
    featured: bool = False


class CarFlagsUpdate(CamelModel):
    """Partial update of a listing's status and featured flag."""

    status: Optional[CarStatusIn] = None
    featured: Optional[bool] = None

    def changes(self) -> dict:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CarDocument(Document):
    """A persisted car listing.

    Written once by the ingestion pipeline with every field populated. Afterwards
    only `status` and `featured` change, until the listing is deleted.
    """

    id: UUID = Field(default_factory=uuid4)  # type: ignore[assignment]

    make: Annotated[str, Indexed()]
    model: Annotated[str, Indexed()]
    year: int
    color: str
    price: DecimalAnnotation
    mileage: int
    body_type: BodyType
    fuel_type: FuelType
    transmission: Transmission
    seats: Optional[int] = None
    description: str = ""
    status: Annotated[CarStatus, Indexed()] = CarStatus.AVAILABLE
    featured: Annotated[bool, Indexed()] = False

    # Display order
    images: List[str] = Field(default_factory=list)

    created_at: Annotated[datetime, Indexed()] = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "cars"
        indexes = [
            [("featured", 1), ("status", 1), ("created_at", -1)],  # Featured listings
        ]


class CarRead(CamelModel):
    """A listing as returned to callers."""

    id: UUID
    make: str
    model: str
    year: int
    color: str
    price: Decimal
    mileage: int
    body_type: BodyType
    fuel_type: FuelType
    transmission: Transmission
    seats: Optional[int] = None
    description: str
    status: CarStatus
    featured: bool
    images: List[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, car: CarDocument) -> "CarRead":
        return cls.model_validate(car.model_dump())


class SkippedImage(CamelModel):
    index: int
    reason: str


class CreatedCar(CamelModel):
    """Result of a successful ingestion."""

    id: UUID
    images: List[str]
    skipped: List[SkippedImage] = Field(default_factory=list)
