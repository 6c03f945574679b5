"""Schema for users known to the marketplace."""

from datetime import datetime
from typing import Annotated, Optional

from beanie import Document, Indexed
from pydantic import Field

from carmarket.schemas.cars import utcnow


class UserDocument(Document):
    """A user record keyed by the identity provider's subject id.

    Accounts are created by the identity provider's webhook, not by this service.
    """

    external_id: Annotated[str, Indexed(unique=True)]
    email: Optional[str] = None
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"
