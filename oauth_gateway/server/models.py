"""Pydantic models for API responses.

This module contains the response bodies returned by the gateway.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Token query response model.

    Attributes:
        token: Provider access token recovered from the session
    """

    token: str = Field(..., description="Provider access token")


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        message: Human-readable error message
    """

    message: str = Field(..., description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Current server timestamp",
    )
