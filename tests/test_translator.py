import json
import os
import sys
import time

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_translate.client import ChatCompletionsClient
from llm_translate.config import Settings, TranslationHooks
from llm_translate.schemas import BatchOutcome
from llm_translate.translation import Translator
from llm_translate.translation.translator import confidence_score
from shared.errors import (
    AuthenticationError,
    EmptyTranslationError,
    InputValidationError,
    InvalidResponseError,
    RateLimitError,
    UnsupportedLanguageError,
)


def answer(target, source="src"):
    return json.dumps({"content": {"source": source, "target": target}, "metadata": {}})


def bulk_answer(*items):
    return json.dumps({"translations": [{"index": index, "source": "s", "target": target} for index, target in items]})


class ScriptedClient:
    """Stands in for ChatCompletionsClient; replies come from a script."""

    def __init__(self, replies=(), batch_replies=None, hooks=None):
        self.replies = list(replies)
        self.batch_replies = batch_replies or {}
        self.hooks = hooks
        self.prompts = []
        self.contexts = []
        self.batches = []

    def complete(self, prompt, max_tokens=None, temperature=None, context=None):
        self.prompts.append(prompt)
        self.contexts.append(context)
        reply = self.replies.pop(0)
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def send_batch(self, batch, batch_size=5, inter_batch_delay=2.0):
        self.batches.append(batch)
        outcomes = []
        for request in batch:
            reply = self.batch_replies.get(request.target_locale)
            if isinstance(reply, BaseException):
                outcomes.append(BatchOutcome(success=False, error=str(reply), request=request))
            else:
                outcomes.append(BatchOutcome(success=True, result=reply, request=request))
        return outcomes


@pytest.fixture()
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(time, "sleep", lambda seconds: recorded.append(seconds))
    return recorded


def make_translator(client, **kwargs):
    return Translator(client=client, settings=Settings(_env_file=None, api_key="test-key"), **kwargs)


def test_same_locale_returns_input_without_calling(sleeps):
    client = ScriptedClient()
    translator = make_translator(client)
    assert translator.translate("Bonjour", "fr", "FR") == "Bonjour"
    assert translator.translate("Olá", "pt_br", "pt-BR") == "Olá"
    assert client.prompts == []


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_text_returns_empty_string(sleeps, text):
    client = ScriptedClient()
    assert make_translator(client).translate(text, "fr", "en") == ""
    assert client.prompts == []


def test_translate_success_passes_options_into_prompt(sleeps):
    client = ScriptedClient([answer("Hello world")])
    translator = make_translator(client)

    result = translator.translate("Bonjour le monde", "fr", "en", context="greeting",
                                  glossary={"monde": "world"}, style="formal")

    assert result == "Hello world"
    prompt = client.prompts[0]
    assert "Bonjour le monde" in prompt
    assert "CONTEXT: greeting" in prompt
    assert "monde → world" in prompt
    assert client.contexts[0]["source_locale"] == "fr"
    assert client.contexts[0]["target_locale"] == "en"
    assert client.contexts[0]["attempt"] == 1
    assert sleeps == []


def test_unsupported_locale_fails_before_any_call(sleeps):
    client = ScriptedClient()
    with pytest.raises(UnsupportedLanguageError) as exc_info:
        make_translator(client).translate("Hi", "en", "xx")
    assert exc_info.value.language == "xx"
    assert client.prompts == []


def test_missing_locale_is_an_input_error(sleeps):
    with pytest.raises(InputValidationError):
        make_translator(ScriptedClient()).translate("Hi", None, "en")


def test_too_long_text_is_rejected(sleeps):
    client = ScriptedClient()
    with pytest.raises(InputValidationError):
        make_translator(client).translate("x" * 50_001, "fr", "en")
    assert client.prompts == []


def test_empty_answer_is_retried_with_backoff(sleeps):
    client = ScriptedClient([answer(""), answer("Hello")])
    assert make_translator(client).translate("Bonjour", "fr", "en") == "Hello"
    assert sleeps == [2]
    assert [context["attempt"] for context in client.contexts] == [1, 2]


def test_answer_without_json_counts_as_empty(sleeps):
    client = ScriptedClient(["I cannot help with that.", answer("Hello")])
    assert make_translator(client).translate("Bonjour", "fr", "en") == "Hello"
    assert sleeps == [2]


def test_content_retries_are_bounded(sleeps):
    client = ScriptedClient([answer("")] * 4)
    with pytest.raises(EmptyTranslationError):
        make_translator(client).translate("Bonjour", "fr", "en")
    assert len(client.prompts) == 4
    assert sleeps == [2, 4, 8]


def test_malformed_json_is_retried_then_raised(sleeps):
    client = ScriptedClient(['{"content": {"target": "Hel'] * 4)
    with pytest.raises(InvalidResponseError):
        make_translator(client).translate("Bonjour", "fr", "en")
    assert sleeps == [2, 4, 8]


def test_rate_limit_is_retried_without_consuming_content_budget(sleeps):
    replies = [RateLimitError("API rate limit exceeded after 11 retries", retries=11)] * 6
    replies += [answer(""), answer("Hello")]
    client = ScriptedClient(replies)

    assert make_translator(client).translate("Bonjour", "fr", "en") == "Hello"
    assert sleeps == [2] * 6 + [2]


def test_authentication_error_is_not_retried(sleeps):
    client = ScriptedClient([AuthenticationError()])
    with pytest.raises(AuthenticationError):
        make_translator(client).translate("Bonjour", "fr", "en")
    assert len(client.prompts) == 1
    assert sleeps == []


def test_hooks_fire_per_attempt(sleeps):
    events = []
    hooks = TranslationHooks(
        on_call_start=lambda *args: events.append(("start",) + args[:3]),
        on_call_complete=lambda *args: events.append(("complete",) + args[:4]),
        on_call_error=lambda *args: events.append(("error", args[0], args[1], type(args[2]).__name__, args[3])),
    )
    client = ScriptedClient([answer(""), answer("Hello")], hooks=hooks)
    translator = make_translator(client)
    assert translator.hooks is hooks

    translator.translate("Bonjour", "fr", "en")

    assert events == [
        ("start", "fr", "en", 7),
        ("error", "fr", "en", "EmptyTranslationError", 1),
        ("start", "fr", "en", 7),
        ("complete", "fr", "en", 7, 5),
    ]


def test_batch_reassembles_out_of_order_answers(sleeps):
    client = ScriptedClient([bulk_answer((3, "Three"), (1, "One"), (2, "Two"))])
    result = make_translator(client).translate_batch(["Un", "Deux", "Trois"], "fr", "en")
    assert result == {0: "One", 1: "Two", 2: "Three"}
    assert "1. Un" in client.prompts[0]
    assert "3. Trois" in client.prompts[0]


def test_batch_skips_blank_items_and_missing_answers(sleeps):
    client = ScriptedClient([bulk_answer((1, "One"))])
    result = make_translator(client).translate_batch(["Un", "", "Trois"], "fr", "en")
    assert result == {0: "One", 1: ""}
    assert "Trois" in client.prompts[0]


def test_batch_over_ten_texts_uses_several_prompts(sleeps):
    texts = [f"texte {i}" for i in range(15)]
    client = ScriptedClient([
        bulk_answer(*[(n, f"text {n - 1}") for n in range(1, 11)]),
        bulk_answer(*[(n, f"text {n + 9}") for n in range(1, 6)]),
    ])

    result = make_translator(client).translate_batch(texts, "fr", "en")

    assert len(client.prompts) == 2
    assert result == {i: f"text {i}" for i in range(15)}
    assert sleeps == [2.0]


def test_batch_same_locale_echoes_input(sleeps):
    client = ScriptedClient()
    assert make_translator(client).translate_batch(["a", "b"], "en", "en") == {0: "a", 1: "b"}
    assert client.prompts == []


@pytest.mark.parametrize("texts", [None, [], "not a list", ["x"] * 21])
def test_batch_input_validation(sleeps, texts):
    with pytest.raises(InputValidationError):
        make_translator(ScriptedClient()).translate_batch(texts, "fr", "en")


def test_batch_without_translations_array_is_retried(sleeps):
    client = ScriptedClient(['{"result": "nope"}', bulk_answer((1, "One"))])
    assert make_translator(client).translate_batch(["Un"], "fr", "en") == {0: "One"}
    assert sleeps == [2]


def test_multiple_targets_sequential(sleeps):
    client = ScriptedClient([answer("Hello"), answer("Hola")])
    result = make_translator(client).translate_to_multiple("Bonjour", "fr", ["en", "es"])
    assert result == {"en": "Hello", "es": "Hola"}
    assert sleeps == [2.0]


def test_multiple_targets_keep_same_locale_text(sleeps):
    client = ScriptedClient([answer("Hello")])
    result = make_translator(client).translate_to_multiple("Bonjour", "fr", ["fr", "en"])
    assert result == {"fr": "Bonjour", "en": "Hello"}
    assert len(client.prompts) == 1


def test_multiple_targets_empty_list(sleeps):
    with pytest.raises(InputValidationError):
        make_translator(ScriptedClient()).translate_to_multiple("Bonjour", "fr", [])


def test_multiple_targets_batch_mode_falls_back_for_failures(sleeps):
    client = ScriptedClient(
        [answer("Olá")],
        batch_replies={
            "en": answer("Hello"),
            "es": answer("Hola"),
            "de": answer("Hallo"),
            "pt": RuntimeError("Server error (500)"),
        },
    )
    result = make_translator(client).translate_to_multiple("Bonjour", "fr", ["en", "es", "de", "pt"])

    assert result == {"en": "Hello", "es": "Hola", "de": "Hallo", "pt": "Olá"}
    assert len(client.batches) == 1
    assert [request.target_locale for request in client.batches[0]] == ["en", "es", "de", "pt"]
    assert len(client.prompts) == 1


def test_translate_auto_uses_detected_language(sleeps):
    detection = json.dumps({"content": {"target": "es"}, "metadata": {"detected_language": "es"}})
    client = ScriptedClient([detection, answer("Hello")])
    assert make_translator(client).translate_auto("Hola", "en") == "Hello"
    assert len(client.prompts) == 2
    assert client.contexts[1]["source_locale"] == "es"


def test_translate_auto_falls_back_to_english(sleeps):
    client = ScriptedClient(["no idea", answer("Bonjour")])
    assert make_translator(client).translate_auto("Hello", "fr") == "Bonjour"
    assert client.contexts[1]["source_locale"] == "en"


def test_translate_auto_to_english_with_unknown_source_is_a_no_op(sleeps):
    client = ScriptedClient(['{"metadata": {"detected_language": "xx"}}'])
    assert make_translator(client).translate_auto("Something", "en") == "Something"
    assert len(client.prompts) == 1


def test_translate_with_confidence(sleeps):
    client = ScriptedClient([answer("Hello everyone, how are you")])
    result = make_translator(client).translate_with_confidence("Bonjour à tous, comment ça va", "fr", "en")
    assert result["translation"] == "Hello everyone, how are you"
    assert result["source_locale"] == "fr"
    assert result["target_locale"] == "en"
    assert 0.0 < result["confidence"] <= 0.95


def test_confidence_score_heuristic():
    assert confidence_score("Bonjour", "", "fr", "en") == 0.0
    assert confidence_score("", "Hello", "fr", "en") == 0.1
    assert confidence_score("Bonjour le monde", "Hello the world!", "fr", "en") == 0.8
    assert confidence_score("Bonjour le monde", "Hi", "fr", "en") == 0.6
    assert confidence_score("Salut", "Hi", "fr", "en") == 0.4


class QueuedResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return json.loads(self.text)


class QueuedSession:
    def __init__(self, responses):
        self.responses = list(responses)

    def post(self, url, headers=None, data=None, timeout=None):
        return self.responses.pop(0)


def test_orchestrator_hooks_receive_client_rate_limits(sleeps):
    seen = []
    hooks = TranslationHooks(on_rate_limit=lambda *args: seen.append(args))
    settings = Settings(_env_file=None, api_key="test-key", retry_delays=[0.01])
    session = QueuedSession([
        QueuedResponse(429, {}),
        QueuedResponse(200, {"choices": [{"message": {"content": answer("Hello")}}]}),
    ])
    client = ChatCompletionsClient(settings, session=session)

    translator = Translator(client=client, settings=settings, hooks=hooks)

    assert translator.translate("Bonjour", "fr", "en") == "Hello"
    assert client.hooks is hooks
    assert len(seen) == 1
    assert seen[0][:4] == ("fr", "en", 0.01, 1)
