"""Pydantic models for gateway responses."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload returned by ``GET /health``."""

    status: Literal["ok"] = "ok"
    timestamp: datetime
    uptime: float = Field(description="Seconds since the gateway started")


class InsightsResponse(BaseModel):
    """Successful insights lookup."""

    success: Literal[True] = True
    data: str


class ErrorResponse(BaseModel):
    """Flat error envelope; never carries upstream detail."""

    success: Literal[False] = False
    error: str
