"""Pydantic v2 schemas for documentation map generation endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from docmap.services.extraction.base import EdgeType, NodeType


# -----------------------------------------------------------------------------
# Request Schemas
# -----------------------------------------------------------------------------


class GenerateMapRequest(BaseModel):
    """Request body for POST /api/v1/maps/generate."""

    url: HttpUrl = Field(..., description="Documentation URL to map")
    deep_crawl: bool = Field(
        default=False, description="Follow section links across several pages"
    )
    max_pages: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Deep-crawl page budget including the start page (1-10)",
    )


# -----------------------------------------------------------------------------
# Response Schemas
# -----------------------------------------------------------------------------


class MapNodeSchema(BaseModel):
    """Single node of a generated documentation map."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: NodeType
    label: str
    description: str = ""
    doc_url: str | None = None
    level: int | None = None


class MapEdgeSchema(BaseModel):
    """Directed relationship between two map nodes."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    source: str
    target: str
    type: EdgeType = EdgeType.HIERARCHY
    confidence: float | None = None
    inference_method: str | None = None


class GenerationStatsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nodes_extracted: int
    nodes_final: int
    edges_extracted: int
    nodes_deduplicated: int
    nodes_filtered: int
    duration_ms: float


class GenerationMetadataSchema(BaseModel):
    """How a map was produced."""

    model_config = ConfigDict(from_attributes=True)

    source_url: str
    strategy: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    generated_at: datetime
    warnings: list[str] = Field(default_factory=list)
    stats: GenerationStatsSchema
    pages_crawled: int | None = None


class GenerateMapResponse(BaseModel):
    """Response for POST /api/v1/maps/generate."""

    model_config = ConfigDict(from_attributes=True)

    nodes: list[MapNodeSchema]
    edges: list[MapEdgeSchema]
    metadata: GenerationMetadataSchema


class StrategiesResponse(BaseModel):
    """Response for GET /api/v1/maps/strategies."""

    strategies: list[str]
