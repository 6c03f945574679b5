"""Public search-by-image."""

import logging

from carmarket.domains.cars.extraction import SearchQueryExtractor
from carmarket.schemas.cars import SearchQuery
from carmarket.utils.rate_limiting import RateDecisionService, RequestContext

logger = logging.getLogger(__name__)


class ImageSearchService:
    """Turns a buyer's photo into a search hint, behind the rate decision gate."""

    def __init__(self, gate: RateDecisionService, extractor: SearchQueryExtractor):
        self.gate = gate
        self.extractor = extractor

    async def search(self, context: RequestContext, image: bytes, mime_type: str) -> SearchQuery:
        """Extract a search query from an image.

        The model is never called for a denied request.

        Raises:
            RateLimitedError: The caller is over quota
            RequestBlockedError: The caller was blocked for any other reason
        """
        decision = await self.gate.admit(context, requested=1)
        decision.raise_for_denial()

        query = await self.extractor.extract(image, mime_type)
        logger.info(f"Image search for {context.client_key}: {query.make} {query.body_type} ({query.confidence:.2f})")
        return query
