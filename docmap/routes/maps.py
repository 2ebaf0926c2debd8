"""Documentation map generation REST endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException

from docmap.core.config import settings
from docmap.schemas.maps import GenerateMapRequest, GenerateMapResponse, StrategiesResponse
from docmap.services.extraction import (
    ExtractionConfig,
    FetchFn,
    InvalidUrlError,
    ParseResult,
    get_available_strategies,
    parse_documentation,
)
from docmap.services.extraction.exceptions import FetchError, RateLimitError
from docmap.services.extraction.utils import validate_url
from docmap.services.fetchers import create_fetcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/maps", tags=["maps"])


async def get_fetcher() -> AsyncGenerator[FetchFn, None]:
    """Provide a page fetcher for the duration of one request."""
    async with create_fetcher(settings) as fetcher:
        yield fetcher


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": {"code": code, "message": message}},
    )


async def _generate(request: GenerateMapRequest, url: str, fetch: FetchFn) -> ParseResult:
    start_page = await fetch(url)
    base = ExtractionConfig()
    config = replace(
        base,
        deep_crawl=replace(
            base.deep_crawl,
            request_delay_seconds=settings.deep_crawl_request_delay_seconds,
        ),
    )
    return await parse_documentation(
        start_page.html,
        start_page.url,
        deep_crawl=request.deep_crawl,
        fetch=fetch,
        max_pages=request.max_pages or settings.deep_crawl_max_pages,
        config=config,
    )


@router.post("/generate", response_model=GenerateMapResponse)
async def generate_map(
    request: GenerateMapRequest,
    fetch: FetchFn = Depends(get_fetcher),
) -> GenerateMapResponse:
    """Generate a documentation map from a URL.

    Fetches the start page, runs the extraction strategies under the
    configured time budget and returns the validated graph.

    Raises:
        HTTPException: 400 invalid URL, 429 rate limited, 502 fetch failure,
            504 timeout, 422 when nothing could be extracted.
    """
    url = str(request.url)

    try:
        validate_url(url)
        result = await asyncio.wait_for(
            _generate(request, url, fetch),
            timeout=settings.generation_timeout_seconds,
        )
    except InvalidUrlError as e:
        logger.warning("Rejected URL %s: %s", e.url, e)
        raise _error(400, "INVALID_URL", str(e))
    except RateLimitError as e:
        logger.warning("Rate limited fetching %s", e.url)
        raise _error(429, "RATE_LIMIT_EXCEEDED", str(e))
    except FetchError as e:
        logger.warning("Fetch failed for %s: %s", e.url, e)
        raise _error(502, "FETCH_FAILED", str(e))
    except asyncio.TimeoutError:
        logger.warning(
            "Map generation for %s exceeded %ss", url, settings.generation_timeout_seconds
        )
        raise _error(
            504,
            "TIMEOUT",
            f"Map generation timed out after {settings.generation_timeout_seconds} seconds",
        )

    if not result.nodes:
        raise _error(
            422,
            "PARSE_FAILED",
            "; ".join(result.metadata.warnings) or "No content could be extracted",
        )

    logger.info(
        "Generated map for %s with %s: %d nodes, %d edges",
        url,
        result.metadata.strategy,
        len(result.nodes),
        len(result.edges),
    )
    return GenerateMapResponse.model_validate(result)


@router.get("/strategies", response_model=StrategiesResponse)
async def list_strategies() -> StrategiesResponse:
    """List extraction strategies in the order they are tried."""
    return StrategiesResponse(strategies=get_available_strategies())
