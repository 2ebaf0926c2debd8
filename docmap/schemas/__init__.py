"""Pydantic schemas package."""

from docmap.schemas.common import ErrorResponse, HealthResponse  # noqa: F401
from docmap.schemas.maps import (  # noqa: F401
    GenerateMapRequest,
    GenerateMapResponse,
    GenerationMetadataSchema,
    GenerationStatsSchema,
    MapEdgeSchema,
    MapNodeSchema,
    StrategiesResponse,
)
