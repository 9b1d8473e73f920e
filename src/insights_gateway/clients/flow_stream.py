"""Push-event (SSE) stream consumer for streaming flow runs.

A streaming run hands back a URL that emits one JSON payload per event and a
named ``close`` event when the flow is done. ``FlowStream`` exposes that
channel as a lazy, non-restartable async sequence of parsed events guarded by
an idle timeout. ``StreamHandle`` layers the callback contract on top of it:
it relays events to ``on_update`` / ``on_close`` / ``on_error`` from a
background task and can be cancelled at any time with ``close()``.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, aclosing
from enum import Enum
from typing import Any

import httpx
import logfire
from httpx_sse import ServerSentEvent, aconnect_sse

from insights_gateway.core.exceptions import (
    InvalidArgumentError,
    MalformedEventError,
    StreamError,
    StreamTimeoutError,
    TransportError,
)

CLOSE_EVENT = "close"
MESSAGE_EVENT = "message"
CLOSED_MESSAGE = "Stream closed"
DEFAULT_IDLE_TIMEOUT = 30.0

UpdateCallback = Callable[[Any], Awaitable[None] | None]
CloseCallback = Callable[[str], Awaitable[None] | None]
ErrorCallback = Callable[[Exception], Awaitable[None] | None]


class StreamState(str, Enum):
    """Lifecycle of a push-event connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({StreamState.CLOSED, StreamState.TIMED_OUT, StreamState.ERRORED})


async def _next_event(events: AsyncIterator[ServerSentEvent]) -> ServerSentEvent | None:
    try:
        return await anext(events)
    except StopAsyncIteration:
        return None


class FlowStream:
    """Cancellable async sequence of parsed events from a flow's stream URL."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        stream_url: str,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
    ):
        if not stream_url:
            raise InvalidArgumentError("Stream URL is required")
        self.client = client
        self.stream_url = stream_url
        self.idle_timeout = idle_timeout
        self.state = StreamState.CONNECTING
        self.close_requested = False
        self._started = False
        self._pending: asyncio.Future[ServerSentEvent | None] | None = None

    @property
    def closed(self) -> bool:
        return self.state in TERMINAL_STATES

    def __aiter__(self) -> AsyncIterator[Any]:
        return self.events()

    def close(self) -> None:
        """Stop the stream; safe to call any number of times."""
        if self.closed:
            return
        self.close_requested = True
        self._finish(StreamState.CLOSED)
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

    def _finish(self, state: StreamState) -> None:
        # Only the first terminal transition counts
        if self.closed:
            return
        self.state = state
        logfire.debug("Flow stream finished", stream_url=self.stream_url, state=state.value)

    async def events(self) -> AsyncIterator[Any]:
        """Yield parsed JSON payloads until the stream closes, fails or idles out.

        Raises:
            StreamTimeoutError: No message arrived within the idle window.
            MalformedEventError: An event payload was not valid JSON.
            TransportError: The connection failed or returned a non-2xx status.
        """
        if self._started:
            raise RuntimeError("FlowStream cannot be restarted")
        self._started = True
        if self.closed:
            return

        try:
            async with AsyncExitStack() as stack:
                try:
                    # The idle window is armed before the connection; headers count as activity
                    async with asyncio.timeout(self.idle_timeout):
                        source = await stack.enter_async_context(
                            aconnect_sse(
                                self.client,
                                "GET",
                                self.stream_url,
                                timeout=httpx.Timeout(None),
                            )
                        )
                        source.response.raise_for_status()
                except TimeoutError as exc:
                    logfire.warning(
                        "Stream timeout - no response received", stream_url=self.stream_url
                    )
                    raise StreamTimeoutError(
                        stream_url=self.stream_url, timeout_seconds=self.idle_timeout
                    ) from exc

                if self.closed:
                    return
                self.state = StreamState.OPEN
                logfire.info("Flow stream opened", stream_url=self.stream_url)

                sse_events = source.aiter_sse()
                while not self.closed:
                    self._pending = asyncio.ensure_future(_next_event(sse_events))
                    try:
                        # The idle window restarts for every message
                        sse = await asyncio.wait_for(self._pending, timeout=self.idle_timeout)
                    except TimeoutError as exc:
                        logfire.warning(
                            "Stream timeout - no data received", stream_url=self.stream_url
                        )
                        raise StreamTimeoutError(
                            stream_url=self.stream_url, timeout_seconds=self.idle_timeout
                        ) from exc
                    except asyncio.CancelledError:
                        task = asyncio.current_task()
                        if self.close_requested and not (task and task.cancelling()):
                            break
                        raise
                    finally:
                        self._pending = None

                    if sse is None or sse.event == CLOSE_EVENT:
                        break
                    # Named events such as pings and data-less frames only reset the window
                    if sse.event != MESSAGE_EVENT or not sse.data:
                        continue

                    try:
                        data = json.loads(sse.data)
                    except json.JSONDecodeError as exc:
                        raise MalformedEventError(
                            stream_url=self.stream_url, reason=str(exc)
                        ) from exc
                    yield data
        except StreamTimeoutError:
            self._finish(StreamState.TIMED_OUT)
            raise
        except MalformedEventError:
            self._finish(StreamState.ERRORED)
            raise
        except httpx.HTTPError as exc:
            self._finish(StreamState.ERRORED)
            raise TransportError(url=self.stream_url, original_error=exc) from exc
        finally:
            self._finish(StreamState.CLOSED)


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class StreamHandle:
    """Relays a ``FlowStream`` to callbacks from a background task."""

    def __init__(
        self,
        stream: FlowStream,
        on_update: UpdateCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
    ):
        self.stream = stream
        self._task = asyncio.create_task(self._relay(on_update, on_close, on_error))
        self._task.add_done_callback(self._log_failure)

    @property
    def closed(self) -> bool:
        return self.stream.closed

    @property
    def state(self) -> StreamState:
        return self.stream.state

    def close(self) -> None:
        """Cancel the stream; idempotent."""
        self.stream.close()

    async def wait(self) -> None:
        """Wait for the relay to finish, re-raising any callback failure."""
        await self._task

    async def _relay(
        self,
        on_update: UpdateCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
    ) -> None:
        async with aclosing(self.stream.events()) as events:
            while True:
                try:
                    data = await anext(events)
                except StopAsyncIteration:
                    break
                except (StreamError, TransportError) as exc:
                    await _invoke(on_error, exc)
                    return
                try:
                    await _invoke(on_update, data)
                except Exception:
                    self.stream._finish(StreamState.ERRORED)
                    raise

        if not self.stream.close_requested:
            await _invoke(on_close, CLOSED_MESSAGE)

    def _log_failure(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logfire.error(
            "Stream consumer callback failed",
            stream_url=self.stream.stream_url,
            error=repr(task.exception()),
        )


def handle_stream(
    client: httpx.AsyncClient,
    stream_url: str,
    on_update: UpdateCallback,
    on_close: CloseCallback,
    on_error: ErrorCallback,
    *,
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
) -> StreamHandle:
    """Attach callbacks to a flow's push-event stream.

    Must be called from a running event loop.

    Raises:
        InvalidArgumentError: If ``stream_url`` is empty.
    """
    stream = FlowStream(client, stream_url, idle_timeout=idle_timeout)
    return StreamHandle(stream, on_update, on_close, on_error)


__all__ = [
    "CLOSED_MESSAGE",
    "FlowStream",
    "StreamHandle",
    "StreamState",
    "handle_stream",
]
