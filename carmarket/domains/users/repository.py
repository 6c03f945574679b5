"""Repository for marketplace users."""

from typing import Optional

from pymongo.errors import PyMongoError

from carmarket.schemas.users import UserDocument
from carmarket.utils.errors import UpstreamServiceError


class UserRepository:
    """Read-only access to users synced from the identity provider."""

    async def find_by_external_id(self, external_id: str) -> Optional[UserDocument]:
        try:
            return await UserDocument.find_one(UserDocument.external_id == external_id)
        except PyMongoError as e:
            raise UpstreamServiceError("database", f"Failed to load user: {e}") from e
