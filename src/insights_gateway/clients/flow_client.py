"""HTTP client for the flow-execution API."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx
import logfire

from insights_gateway.core.exceptions import (
    FlowExecutionError,
    InvalidArgumentError,
    TransportError,
    UpstreamError,
)
from insights_gateway.models.flow_models import SessionRequest, extract_stream_url

from .flow_stream import (
    DEFAULT_IDLE_TIMEOUT,
    CloseCallback,
    ErrorCallback,
    FlowStream,
    StreamHandle,
    UpdateCallback,
    handle_stream,
)

DEFAULT_TIMEOUT = 30.0


def _log_update(data: Any) -> None:
    chunk = data.get("chunk") if isinstance(data, dict) else data
    logfire.info("Received stream update", chunk=chunk)


def _log_close(message: str) -> None:
    logfire.info("Stream closed", message=message)


def _log_error(error: Exception) -> None:
    logfire.error("Stream error", error=str(error))


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from an upstream error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return response.reason_phrase or f"HTTP {response.status_code}"


class FlowClient:
    """Authenticated client that starts flow runs and attaches to their streams."""

    def __init__(
        self,
        base_url: str,
        application_token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        stream_idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not base_url or not application_token:
            raise InvalidArgumentError("base_url and application_token are required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.stream_idle_timeout = stream_idle_timeout
        self.headers = {
            "Authorization": f"Bearer {application_token}",
            "Content-Type": "application/json",
        }
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self) -> FlowClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def post(
        self, endpoint: str, body: dict[str, Any], params: dict[str, str] | None = None
    ) -> Any:
        """POST a JSON body and return the decoded JSON response.

        Raises:
            UpstreamError: The API answered with a non-2xx status.
            TransportError: The request never produced a response.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self.client.post(
                url,
                json=body,
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            logfire.warning("Flow API request failed", url=url, error=repr(exc))
            raise TransportError(url=url, original_error=exc) from exc

        if response.is_error:
            message = _error_message(response)
            logfire.warning(
                "Flow API returned an error",
                url=url,
                status_code=response.status_code,
                message=message,
            )
            raise UpstreamError(
                upstream_status=response.status_code, upstream_message=message, url=url
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(url=url, original_error=exc) from exc

    async def initiate_session(
        self,
        flow_id: str,
        flow_group_id: str,
        input_value: str,
        input_type: str = "chat",
        output_type: str = "chat",
        stream: bool = False,
        tweaks: dict[str, dict[str, Any]] | None = None,
    ) -> Any:
        """Start a flow run.

        Args:
            flow_id: Identifier of the flow to run
            flow_group_id: Identifier of the flow's group (Langflow id)
            input_value: Text fed to the flow's input component
            input_type: Input component type
            output_type: Output component type
            stream: Ask the API for a push-event stream instead of a full result
            tweaks: Per-component overrides

        Returns:
            Decoded session response
        """
        if not flow_id or not flow_group_id or not input_value:
            raise InvalidArgumentError(
                "Missing required parameters",
                flow_id=bool(flow_id),
                flow_group_id=bool(flow_group_id),
                input_value=bool(input_value),
            )
        request = SessionRequest(
            flow_id=flow_id,
            flow_group_id=flow_group_id,
            input_value=input_value,
            input_type=input_type,
            output_type=output_type,
            stream=stream,
            tweaks=tweaks or {},
        )
        return await self.post(request.endpoint(), request.to_body(), request.query_params())

    def open_stream(self, stream_url: str) -> FlowStream:
        """Open a stream as an async sequence of parsed events."""
        return FlowStream(self.client, stream_url, idle_timeout=self.stream_idle_timeout)

    def handle_stream(
        self,
        stream_url: str,
        on_update: UpdateCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
    ) -> StreamHandle:
        """Relay a stream to callbacks; see ``flow_stream.handle_stream``."""
        return handle_stream(
            self.client,
            stream_url,
            on_update,
            on_close,
            on_error,
            idle_timeout=self.stream_idle_timeout,
        )

    async def run_flow(
        self,
        flow_id: str,
        flow_group_id: str,
        input_value: str,
        input_type: str = "chat",
        output_type: str = "chat",
        tweaks: dict[str, dict[str, Any]] | None = None,
        stream: bool = False,
        on_update: UpdateCallback | None = None,
        on_close: CloseCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Any | StreamHandle:
        """Start a flow run and, in stream mode, attach to its push-event stream.

        Returns the session response, or a ``StreamHandle`` when streaming was
        requested and the response carried a stream URL.

        Raises:
            FlowExecutionError: Starting the run failed.
        """
        try:
            response = await self.initiate_session(
                flow_id,
                flow_group_id,
                input_value,
                input_type,
                output_type,
                stream,
                tweaks,
            )
        except Exception as exc:
            raise FlowExecutionError(exc) from exc

        stream_url = extract_stream_url(response) if stream else None
        if stream_url:
            return self.handle_stream(
                stream_url,
                on_update or _log_update,
                on_close or _log_close,
                on_error or _log_error,
            )

        return response


__all__ = ["FlowClient"]
