"""Models for flow sessions sent to and returned by the flow-execution API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

STREAM_URL_PATH = "outputs[0].outputs[0].artifacts.stream_url"
MESSAGE_TEXT_PATH = "outputs[0].outputs[0].outputs.message.message.text"


class SessionRequest(BaseModel):
    """A single flow invocation, immutable once built."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=False)

    flow_id: str
    flow_group_id: str
    input_value: str
    input_type: str = "chat"
    output_type: str = "chat"
    stream: bool = False
    tweaks: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def endpoint(self) -> str:
        """Path of the run endpoint relative to the API base URL."""
        return f"/lf/{self.flow_group_id}/api/v1/run/{self.flow_id}"

    def query_params(self) -> dict[str, str]:
        return {"stream": "true" if self.stream else "false"}

    def to_body(self) -> dict[str, Any]:
        """JSON body expected by the run endpoint."""
        return {
            "input_value": self.input_value,
            "input_type": self.input_type,
            "output_type": self.output_type,
            "tweaks": self.tweaks,
        }


def _first_output(response: Any) -> dict[str, Any] | None:
    # outputs[0].outputs[0]
    node: Any = response
    for _ in range(2):
        if not isinstance(node, dict):
            return None
        outputs = node.get("outputs")
        if not isinstance(outputs, list) or not outputs:
            return None
        node = outputs[0]
    return node if isinstance(node, dict) else None


def _dig(node: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract_stream_url(response: Any) -> str | None:
    """Return the push-event URL of a streaming session, if the response has one."""
    value = _dig(_first_output(response), "artifacts", "stream_url")
    if isinstance(value, str) and value:
        return value
    return None


def extract_message_text(response: Any) -> str | None:
    """Return the chat message text of a completed session, if present."""
    value = _dig(_first_output(response), "outputs", "message", "message", "text")
    if isinstance(value, str) and value:
        return value
    return None
