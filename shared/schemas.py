"""
Shared Pydantic schemas for the Room Visualizer service.

This module defines the data models used for:
- Pipeline stage inputs and outputs
- API response structures
- Configuration validation
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, validator

DEFAULT_MATERIAL = "Marble"

# =============================================================================
# PIPELINE MODELS
# =============================================================================


class GenerationRequest(BaseModel):
    """An uploaded room photo and the flooring material to render."""

    image_bytes: bytes
    mime_type: str
    material: str = DEFAULT_MATERIAL

    @validator("material", pre=True)
    def default_blank_material(cls, v):
        """Blank or missing material falls back to the default."""
        if v is None or not str(v).strip():
            return DEFAULT_MATERIAL
        return str(v).strip()


class DescriptionResult(BaseModel):
    """Inpainting prompt written by the vision provider."""

    text: str


class MaskResult(BaseModel):
    """Floor segmentation mask, passed through opaquely."""

    image_bytes: bytes


class GenerationResult(BaseModel):
    """Final composited image and the prompt that produced it."""

    image_bytes: bytes
    prompt_used: str
    material: str


# =============================================================================
# API MODELS
# =============================================================================


class ResponseFormat(str, Enum):
    """How /generate-room returns the generated image."""

    JSON = "json"
    PNG = "png"


class GenerateRoomResponse(BaseModel):
    """JSON envelope returned by /generate-room."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: str = Field(..., description="PNG image as a data URI")
    prompt_used: str = Field(..., alias="promptUsed")
    message: str


class HistoryRecordOut(BaseModel):
    """A persisted generation, as returned by /history."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    material: str
    optimized_prompt: str = Field(..., alias="optimizedPrompt")
    image_data_uri: str = Field(..., alias="imageDataURI")
    created_at: datetime = Field(..., alias="createdAt")


class ErrorResponse(BaseModel):
    """Error body for 4xx/5xx responses."""

    error: str
    details: str | None = None


# =============================================================================
# HEALTH CHECK MODELS
# =============================================================================


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class HealthCheck(BaseModel):
    """Health check response model."""

    service: str
    status: HealthStatus
    version: str = "1.0.0"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    details: dict[str, Any] = {}


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str
    max_connections: int = 10
    timeout_seconds: int = 30


class ServiceConfig(BaseModel):
    """Service configuration."""

    host: str = "0.0.0.0"
    port: int
    timeout_seconds: int = 120
    max_concurrent_requests: int = 10
