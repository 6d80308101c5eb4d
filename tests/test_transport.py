import json
import os
import sys

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_translate.client import ChatCompletionsClient, transport
from llm_translate.config import Settings, TranslationHooks
from llm_translate.schemas import BatchRequest
from llm_translate.version import __version__
from shared.errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    InvalidResponseError,
    RateLimitError,
)


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        return json.loads(self.text)


class DummySession:
    def __init__(self, actions):
        self.actions = list(actions)
        self.calls = []

    def post(self, url, headers=None, data=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "body": json.loads(data), "timeout": timeout})
        action = self.actions.pop(0)
        if isinstance(action, BaseException):
            raise action
        return action


class CountingGate:
    def __init__(self):
        self.calls = 0

    def wait_and_record(self):
        self.calls += 1
        return 0.0


def completion(content):
    return DummyResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.fixture()
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(transport.time, "sleep", lambda seconds: recorded.append(seconds))
    return recorded


def make_client(actions, hooks=None, rate_limiter=None, **overrides):
    values = dict(api_key="test-key", retry_delays=[0.01, 0.01])
    values.update(overrides)
    settings = Settings(_env_file=None, **values)
    session = DummySession(actions)
    client = ChatCompletionsClient(settings, session=session, hooks=hooks, rate_limiter=rate_limiter)
    return client, session


def test_complete_sends_chat_completions_request(sleeps):
    client, session = make_client([completion("Bonjour")])

    assert client.complete("Translate this") == "Bonjour"

    call = session.calls[0]
    assert call["url"] == "https://api.mistral.ai/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer test-key"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["headers"]["User-Agent"] == f"llm-translate/{__version__}"
    assert call["body"] == {"model": "mistral-small", "messages": [{"role": "user", "content": "Translate this"}]}
    assert call["timeout"] == 60
    assert sleeps == []


def test_optional_generation_parameters(sleeps):
    client, session = make_client([completion("a"), completion("b")], default_temperature=0.2)
    client.complete("p", max_tokens=64)
    client.complete("p", max_tokens=10, temperature=0.7)
    assert session.calls[0]["body"]["max_tokens"] == 64
    assert session.calls[0]["body"]["temperature"] == 0.2
    assert session.calls[1]["body"]["temperature"] == 0.7


def test_401_is_terminal(sleeps):
    client, session = make_client([DummyResponse(401, {"message": "Unauthorized"})])
    with pytest.raises(AuthenticationError) as exc_info:
        client.complete("p")
    assert exc_info.value.status_code == 401
    assert len(session.calls) == 1
    assert sleeps == []


@pytest.mark.parametrize("status, message", [(400, "Client error (400)"), (404, "Client error (404)"),
                                             (500, "Server error (500)"), (503, "Server error (503)")])
def test_error_statuses_raise_api_error_without_retry(sleeps, status, message):
    client, session = make_client([DummyResponse(status, {"error": "x"})])
    with pytest.raises(ApiError) as exc_info:
        client.complete("p")
    assert exc_info.value.status_code == status
    assert exc_info.value.message == message
    assert len(session.calls) == 1


def test_rate_limit_then_success(sleeps):
    events = []
    hooks = TranslationHooks(on_rate_limit=lambda *args: events.append(args))
    client, session = make_client([DummyResponse(429, {}), completion("Hello")], hooks=hooks)

    result = client.complete("p", context={"source_locale": "fr", "target_locale": "en"})

    assert result == "Hello"
    assert sleeps == [0.01]
    assert len(events) == 1
    assert events[0][:4] == ("fr", "en", 0.01, 1)


def test_retry_exhaustion_fires_callback_once_per_wait(sleeps):
    events = []
    hooks = TranslationHooks(on_rate_limit=lambda *args: events.append(args))
    client, session = make_client([DummyResponse(429, {})] * 3, hooks=hooks)

    with pytest.raises(RateLimitError) as exc_info:
        client.complete("p")

    assert exc_info.value.retries == 2
    assert "after 2 retries" in exc_info.value.message
    assert len(session.calls) == 3
    assert len(events) == 2
    assert [event[3] for event in events] == [1, 2]
    assert sleeps == [0.01, 0.01]


def test_empty_schedule_fails_on_first_rate_limit(sleeps):
    client, session = make_client([DummyResponse(429, {})], retry_delays=[])
    with pytest.raises(RateLimitError):
        client.complete("p")
    assert len(session.calls) == 1
    assert sleeps == []


def test_short_200_body_mentioning_quota_counts_as_rate_limit(sleeps):
    client, session = make_client([DummyResponse(200, text="Quota exceeded for this key"), completion("ok")])
    assert client.complete("p") == "ok"
    assert sleeps == [0.01]


def test_long_200_body_is_not_scanned_for_rate_limit(sleeps):
    content = "The rate limit of this chapter is long. " * 40
    client, session = make_client([completion(content)])
    assert client.complete("p") == content
    assert sleeps == []


@pytest.mark.parametrize("exception, message", [
    (requests.exceptions.Timeout("read timed out"), "Request timeout"),
    (requests.exceptions.ConnectionError("refused"), "HTTP error"),
])
def test_transport_exceptions_are_wrapped(sleeps, exception, message):
    client, _ = make_client([exception])
    with pytest.raises(ApiError, match=message) as exc_info:
        client.complete("p")
    assert not isinstance(exc_info.value, requests.exceptions.RequestException)


def test_invalid_json_body(sleeps):
    client, _ = make_client([DummyResponse(200, text="<html>gateway</html>")])
    with pytest.raises(InvalidResponseError, match="Invalid JSON in API response"):
        client.complete("p")


@pytest.mark.parametrize("payload", [{"choices": []}, {"choices": [{"message": {"content": ""}}]}, {}])
def test_missing_content(sleeps, payload):
    client, _ = make_client([DummyResponse(200, payload)])
    with pytest.raises(InvalidResponseError, match="No content in API response"):
        client.complete("p")


def test_chat_returns_none_for_missing_content(sleeps):
    client, _ = make_client([DummyResponse(200, {"choices": []})])
    assert client.chat("p") is None


def test_rate_gate_is_consulted_before_every_attempt(sleeps):
    gate = CountingGate()
    client, _ = make_client([DummyResponse(429, {}), completion("ok")], rate_limiter=gate)
    client.complete("p")
    assert gate.calls == 2


def test_rate_gate_from_settings():
    client, _ = make_client([], rate_limit_max_requests=5, rate_limit_window_seconds=10)
    assert client.rate_limiter.max_requests == 5
    assert client.rate_limiter.window_seconds == 10


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("LLM_TRANSLATE_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        ChatCompletionsClient(Settings(_env_file=None), session=DummySession([]))


def test_send_batch_slices_and_captures_failures(sleeps):
    batches = []
    hooks = TranslationHooks(on_batch_complete=lambda *args: batches.append(args))
    actions = [completion(f"r{i}") for i in range(7)]
    actions[4] = DummyResponse(500, {})
    client, session = make_client(actions, hooks=hooks)
    requests_ = [BatchRequest(prompt=f"p{i}", source_locale="fr", target_locale="en", index=i) for i in range(7)]

    outcomes = client.send_batch(requests_, batch_size=3, inter_batch_delay=2)

    assert [outcome.success for outcome in outcomes] == [True, True, True, True, False, True, True]
    assert outcomes[0].result == "r0"
    assert outcomes[4].error == "Server error (500)"
    assert outcomes[4].request.index == 4
    assert [call["body"]["messages"][0]["content"] for call in session.calls] == [f"p{i}" for i in range(7)]
    # Three slices: a delay between slices, none before the first.
    assert sleeps == [2, 2]
    assert len(batches) == 1
    size, _duration, success_count, error_count = batches[0]
    assert (size, success_count, error_count) == (7, 6, 1)
