"""Caller identity.

Sessions live with the external identity provider. This module only verifies
the provider's bearer tokens and maps their subject to a known user.
"""

import logging
from typing import Optional

import jwt

from carmarket.config import AuthSettings
from carmarket.domains.users.repository import UserRepository
from carmarket.schemas.users import UserDocument
from carmarket.utils.errors import AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Verifies identity-provider JWTs and returns their subject."""

    def __init__(self, settings: AuthSettings):
        self.settings = settings

    def subject(self, token: Optional[str]) -> Optional[str]:
        """The token's `sub` claim, or None if the token is absent or invalid."""
        if not token:
            return None
        key = self.settings.jwt_key.get_secret_value()
        if not key:
            logger.warning("Token received but no verification key is configured")
            return None
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.settings.algorithms,
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={"verify_aud": self.settings.audience is not None},
            )
        except jwt.PyJWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            return None
        return claims.get("sub")


class CallerResolver:
    """Maps a verified caller id to a known user."""

    def __init__(self, users: UserRepository):
        self.users = users

    async def require(self, caller_id: Optional[str]) -> UserDocument:
        """Return the caller's user record.

        Raises:
            AuthorizationError: If there is no caller identity
            NotFoundError: If the identity is unknown to the marketplace
        """
        if not caller_id:
            raise AuthorizationError()
        user = await self.users.find_by_external_id(caller_id)
        if user is None:
            raise NotFoundError("User", caller_id)
        return user
