from unittest.mock import MagicMock, patch

import pytest
import requests

from app.core.cancellation import CancelToken
from app.core.errors import (
    EmptyCompletion,
    EmptyInput,
    OperationCancelled,
    TransportFailure,
    UpstreamPayloadInvalid,
    UpstreamReportedError,
    UpstreamStatus,
)
from app.utils.llm_client import ChatCompletionsClient, LLMClient


def _response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


def _client():
    return LLMClient("http://llm.test/", "llama", timeout=30, temperature=0.2, max_tokens=512)


def test_generate_posts_payload_and_returns_response():
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"response": "hi"})) as post:
        assert _client().generate("user text", "system text") == "hi"

    url = post.call_args.args[0]
    kwargs = post.call_args.kwargs
    assert url == "http://llm.test/api/generate"
    assert kwargs["json"] == {
        "model": "llama",
        "system": "system text",
        "prompt": "user text",
        "temperature": 0.2,
        "max_tokens": 512,
        "stream": False,
    }
    assert kwargs["timeout"] == 30


def test_generate_omits_empty_system_prompt():
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"response": "hi"})) as post:
        _client().generate("user text")
    assert "system" not in post.call_args.kwargs["json"]


def test_blank_prompt_makes_no_request():
    with patch("app.utils.llm_client.requests.post") as post:
        with pytest.raises(EmptyInput):
            _client().generate("   ")
    post.assert_not_called()


def test_transport_failure():
    with patch("app.utils.llm_client.requests.post", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(TransportFailure):
            _client().generate("x")


def test_non_200_status():
    with patch("app.utils.llm_client.requests.post", return_value=_response(500, text="boom")):
        with pytest.raises(UpstreamStatus) as exc_info:
            _client().generate("x")
    assert exc_info.value.code == 500
    assert exc_info.value.body == "boom"


def test_invalid_json_body():
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload=ValueError("bad json"))):
        with pytest.raises(UpstreamPayloadInvalid):
            _client().generate("x")


def test_error_field_is_reported():
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"error": "model not found"})):
        with pytest.raises(UpstreamReportedError) as exc_info:
            _client().generate("x")
    assert exc_info.value.upstream_message == "model not found"


def test_empty_response_is_a_failure():
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"response": ""})):
        with pytest.raises(EmptyCompletion):
            _client().generate("x")


def test_cancelled_token_stops_before_request():
    token = CancelToken()
    token.cancel()
    with patch("app.utils.llm_client.requests.post") as post:
        with pytest.raises(OperationCancelled):
            _client().generate("x", cancel=token)
    post.assert_not_called()


def test_cancel_deadline_caps_timeout():
    token = CancelToken(timeout=5)
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"response": "hi"})) as post:
        _client().generate("x", cancel=token)
    assert post.call_args.kwargs["timeout"] <= 5


def test_deadline_passing_after_check_stops_before_request():
    token = CancelToken(timeout=5)
    deadline = token._deadline
    # still live for the check, expired by the time the timeout is computed
    with patch("app.core.cancellation.time.monotonic", side_effect=[deadline - 1, deadline]):
        with patch("app.utils.llm_client.requests.post") as post:
            with pytest.raises(OperationCancelled):
                _client().generate("x", cancel=token)
    post.assert_not_called()


def test_remaining_never_hands_out_a_zero_timeout():
    token = CancelToken(timeout=5)
    assert CancelToken().remaining(30) == 30
    assert 0 < token.remaining(30) <= 5
    with patch("app.core.cancellation.time.monotonic", return_value=token._deadline + 1):
        with pytest.raises(OperationCancelled):
            token.remaining(30)


def test_chat_completions_client():
    client = ChatCompletionsClient("http://hf.test/v1/chat/completions", "secret", "granite", timeout=10)
    payload = {"choices": [{"message": {"content": "<html></html>"}}]}
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload=payload)) as post:
        assert client.generate("лендинг", "Сделай сайт") == "<html></html>"

    kwargs = post.call_args.kwargs
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}
    assert kwargs["json"]["messages"] == [
        {"role": "user", "content": "Сделай сайт\n\nЗапрос пользователя: лендинг"}
    ]
    assert kwargs["json"]["stream"] is False


def test_chat_completions_without_choices():
    client = ChatCompletionsClient("http://hf.test", "secret", "granite")
    with patch("app.utils.llm_client.requests.post", return_value=_response(payload={"choices": []})):
        with pytest.raises(EmptyCompletion):
            client.generate("x")
