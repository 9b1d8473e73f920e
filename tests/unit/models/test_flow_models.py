"""Tests for flow session models and response extraction."""

import pytest
from pydantic import ValidationError

from insights_gateway.models import SessionRequest, extract_message_text, extract_stream_url
from upstream_test_utils import STREAM_URL, session_response


def test_session_request_body_and_endpoint():
    request = SessionRequest(
        flow_id="flow-1",
        flow_group_id="group-1",
        input_value="rust",
        tweaks={"Agent-1": {}},
    )

    assert request.endpoint() == "/lf/group-1/api/v1/run/flow-1"
    assert request.query_params() == {"stream": "false"}
    assert request.to_body() == {
        "input_value": "rust",
        "input_type": "chat",
        "output_type": "chat",
        "tweaks": {"Agent-1": {}},
    }


def test_session_request_is_immutable():
    request = SessionRequest(flow_id="f", flow_group_id="g", input_value="v")
    with pytest.raises(ValidationError):
        request.input_value = "other"


def test_extracts_text_and_stream_url():
    assert extract_message_text(session_response(text="hello")) == "hello"
    assert extract_stream_url(session_response(stream_url=STREAM_URL)) == STREAM_URL


@pytest.mark.parametrize(
    "response",
    [
        None,
        [],
        {},
        {"outputs": None},
        {"outputs": []},
        {"outputs": [{}]},
        {"outputs": [{"outputs": []}]},
        {"outputs": [{"outputs": ["not a dict"]}]},
        {"outputs": [{"outputs": [{"outputs": {"message": {"message": {"text": 42}}}}]}]},
        {"outputs": [{"outputs": [{"outputs": {"message": {"message": {"text": ""}}}}]}]},
    ],
)
def test_missing_paths_return_none(response):
    assert extract_message_text(response) is None
    assert extract_stream_url(response) is None
