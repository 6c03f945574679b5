"""Service wiring and FastAPI dependencies."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis import asyncio as aioredis

from carmarket.ai.providers.factory import create_provider
from carmarket.auth import CallerResolver, TokenVerifier
from carmarket.cache import ViewInvalidator
from carmarket.config import Settings
from carmarket.domains.cars.extraction import AttributeExtractor, SearchQueryExtractor
from carmarket.domains.cars.ingestion import IngestionPipeline
from carmarket.domains.cars.repository import CarRepository
from carmarket.domains.cars.search import ImageSearchService
from carmarket.domains.cars.service import CarService
from carmarket.domains.users.repository import UserRepository
from carmarket.services.storage import ImageStorage
from carmarket.utils.cache import CacheService
from carmarket.utils.rate_limiting import RateDecisionService, RateLimiter, RequestContext

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class ServiceContainer:
    """Everything the routers need, built once per process."""

    settings: Settings
    tokens: TokenVerifier
    extractor: AttributeExtractor
    image_search: ImageSearchService
    ingestion: IngestionPipeline
    cars: CarService
    cache: Optional[CacheService] = None

    @classmethod
    def build(cls, settings: Settings, redis: aioredis.Redis) -> "ServiceContainer":
        provider = create_provider(settings.ai)
        cache = CacheService(settings.cache.redis_url, client=redis)
        callers = CallerResolver(UserRepository())
        repository = CarRepository()
        storage = ImageStorage(settings.storage)
        invalidator = ViewInvalidator()
        limiter = RateLimiter(
            cache,
            capacity=settings.rate_limit.capacity,
            window_seconds=settings.rate_limit.window_seconds,
            key_prefix=settings.rate_limit.key_prefix,
        )

        return cls(
            settings=settings,
            tokens=TokenVerifier(settings.auth),
            extractor=AttributeExtractor(provider, settings.ai),
            image_search=ImageSearchService(
                RateDecisionService(settings.rate_limit, limiter),
                SearchQueryExtractor(provider, settings.ai),
            ),
            ingestion=IngestionPipeline(callers, repository, storage, invalidator),
            cars=CarService(callers, repository, storage, invalidator),
            cache=cache,
        )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_caller_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> Optional[str]:
    """The verified caller id, or None. Services decide whether None is acceptable."""
    token = credentials.credentials if credentials else None
    return container.tokens.subject(token)


async def require_caller(
    caller_id: Optional[str] = Depends(get_caller_id),
    container: ServiceContainer = Depends(get_container),
) -> str:
    """Reject unknown callers before any cached admin view is served."""
    user = await container.cars.callers.require(caller_id)
    return user.external_id


def get_request_context(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> RequestContext:
    """Rate decision context: client address and user agent.

    The forwarded address is used only when the peer is a trusted proxy,
    otherwise any caller could pick a fresh rate-limit bucket per request.
    """
    peer = request.client.host if request.client else "unknown"
    client_key = peer
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and peer in container.settings.rate_limit.trusted_proxies:
        client_key = forwarded.split(",")[0].strip() or peer
    return RequestContext(client_key=f"ip:{client_key}", user_agent=request.headers.get("user-agent"))
