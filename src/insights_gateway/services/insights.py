"""Keyword insights lookup backed by the flow-execution API and a result cache."""

from __future__ import annotations

from typing import Any

import httpx
import logfire

from insights_gateway.clients.flow_client import FlowClient
from insights_gateway.clients.flow_stream import StreamHandle
from insights_gateway.core.config import GatewayConfig
from insights_gateway.core.exceptions import (
    ConfigurationError,
    InsightsLookupError,
    InvalidResponseFormatError,
)
from insights_gateway.models.flow_models import MESSAGE_TEXT_PATH, extract_message_text

from .result_cache import ResultCache

# Component ids of the insights flow; empty maps keep each node's defaults
INSIGHTS_TWEAKS: dict[str, dict[str, Any]] = {
    "Agent-C6mqP": {},
    "ChatInput-X4siD": {},
    "ChatOutput-XzlpZ": {},
    "URL-DITVH": {},
    "AstraDBCQLToolComponent-GXZ2B": {},
}


def cache_key(keyword: str) -> str:
    """Cache key for a keyword; mode parameters are not part of it."""
    return f"insights-{keyword}"


class _StreamCollector:
    """Accumulates streamed ``chunk`` text for a single run."""

    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.error: Exception | None = None

    def on_update(self, data: Any) -> None:
        chunk = data.get("chunk") if isinstance(data, dict) else None
        if isinstance(chunk, str):
            self.chunks.append(chunk)

    def on_close(self, message: str) -> None:
        logfire.debug("Insights stream closed", message=message)

    def on_error(self, error: Exception) -> None:
        self.error = error

    @property
    def text(self) -> str:
        return "".join(self.chunks)


class InsightsService:
    """Looks up insights for a keyword, reusing cached answers."""

    def __init__(
        self,
        config: GatewayConfig,
        cache: ResultCache,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.cache = cache
        self.http_client = http_client

    def _flow_client(self) -> FlowClient:
        token = self.config.application_token
        if not token:
            raise ConfigurationError("MODEL_TOKEN")
        if self.http_client is None:
            raise RuntimeError("HTTP client is not open; start the application first")
        return FlowClient(
            self.config.base_url,
            token,
            timeout=self.config.request_timeout,
            stream_idle_timeout=self.config.stream_idle_timeout,
            http_client=self.http_client,
        )

    async def get_insights(
        self,
        keyword: str,
        input_type: str = "chat",
        output_type: str = "chat",
        stream: bool = False,
    ) -> str:
        """Return insight text for ``keyword``.

        Raises:
            ConfigurationError: No application token is configured.
            InvalidResponseFormatError: The flow answered without message text.
            InsightsLookupError: The flow run failed.
        """
        key = cache_key(keyword)
        cached = self.cache.get(key)
        if cached is not None:
            logfire.debug("Insights cache hit", keyword=keyword)
            return cached

        client = self._flow_client()
        collector = _StreamCollector()
        try:
            response = await client.run_flow(
                self.config.flow_id,
                self.config.flow_group_id,
                keyword,
                input_type,
                output_type,
                INSIGHTS_TWEAKS,
                stream,
                on_update=collector.on_update,
                on_close=collector.on_close,
                on_error=collector.on_error,
            )
            if isinstance(response, StreamHandle):
                await response.wait()
                if collector.error is not None:
                    raise collector.error
        except Exception as exc:
            logfire.warning("Insights lookup failed", keyword=keyword, error=str(exc))
            raise InsightsLookupError.wrap(exc) from exc

        if isinstance(response, StreamHandle):
            text = collector.text
        else:
            text = extract_message_text(response)
        if not text:
            raise InvalidResponseFormatError(MESSAGE_TEXT_PATH)

        self.cache.set(key, text)
        logfire.info("Insights cached", keyword=keyword, length=len(text))
        return text
