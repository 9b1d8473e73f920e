"""Data models for upstream flow sessions and gateway responses."""

from .api_models import ErrorResponse, HealthResponse, InsightsResponse
from .flow_models import SessionRequest, extract_message_text, extract_stream_url

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "InsightsResponse",
    "SessionRequest",
    "extract_message_text",
    "extract_stream_url",
]
