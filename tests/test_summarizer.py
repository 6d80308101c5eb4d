import json
import os
import sys
import time

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_translate.config import Settings
from llm_translate.schemas import TieredSummary
from llm_translate.translation import Summarizer
from shared.errors import EmptyTranslationError, InputValidationError, UnsupportedLanguageError


def summary(text):
    return json.dumps({"content": {"source": "document", "target": text}, "metadata": {"word_count": 3}})


class ScriptedClient:
    def __init__(self, replies=()):
        self.replies = list(replies)
        self.prompts = []
        self.hooks = None

    def complete(self, prompt, max_tokens=None, temperature=None, context=None):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture()
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(time, "sleep", lambda seconds: recorded.append(seconds))
    return recorded


def make_summarizer(client):
    return Summarizer(client=client, settings=Settings(_env_file=None, api_key="test-key"))


def test_summarize_cleans_text_before_sending(sleeps):
    client = ScriptedClient([summary("Un résumé court.")])
    document = "Title\n\n\n-----\n   First    paragraph.\t\tMore.   \n\n\nLast line."

    result = make_summarizer(client).summarize(document, language="fr", max_words=30)

    assert result == "Un résumé court."
    prompt = client.prompts[0]
    assert "Title\nFirst paragraph. More.\nLast line." in prompt
    assert "-----" not in prompt
    assert "Maximum length: 30 words" in prompt


@pytest.mark.parametrize("text", [None, "", "  \n\t "])
def test_blank_document_gives_empty_summary(sleeps, text):
    client = ScriptedClient()
    assert make_summarizer(client).summarize(text) == ""
    assert client.prompts == []


@pytest.mark.parametrize("max_words", [0, -5, "100", True])
def test_max_words_must_be_positive_integer(sleeps, max_words):
    with pytest.raises(InputValidationError):
        make_summarizer(ScriptedClient()).summarize("Some text", max_words=max_words)


def test_unsupported_summary_language(sleeps):
    with pytest.raises(UnsupportedLanguageError):
        make_summarizer(ScriptedClient()).summarize("Some text", language="tlh")


def test_empty_summary_is_retried_then_raised(sleeps):
    client = ScriptedClient([summary("")] * 4)
    with pytest.raises(EmptyTranslationError, match="Empty summary received"):
        make_summarizer(client).summarize("Some text")
    assert sleeps == [2, 4, 8]


def test_summarize_and_translate_uses_combined_prompt(sleeps):
    client = ScriptedClient([summary("A short summary.")])
    result = make_summarizer(client).summarize_and_translate("Un long document.", "fr", "en", max_words=20)
    assert result == "A short summary."
    assert "translate" in client.prompts[0]


def test_summarize_and_translate_same_locale_is_a_plain_summary(sleeps):
    client = ScriptedClient([summary("Résumé.")])
    assert make_summarizer(client).summarize_and_translate("Un document.", "fr", "fr-FR") == "Résumé."
    assert "AND translate" not in client.prompts[0]


def test_summarize_to_multiple_pauses_between_languages(sleeps):
    client = ScriptedClient([summary("Résumé."), summary("Summary."), summary("Resumen.")])
    result = make_summarizer(client).summarize_to_multiple("Un document.", ["fr", "en", "es"], max_words=50)
    assert result == {"fr": "Résumé.", "en": "Summary.", "es": "Resumen."}
    assert sleeps == [2.0, 2.0]


def test_summarize_to_multiple_requires_languages(sleeps):
    with pytest.raises(InputValidationError):
        make_summarizer(ScriptedClient()).summarize_to_multiple("Un document.", [])


def test_tiered_summary(sleeps):
    client = ScriptedClient([summary("Short."), summary("Medium one."), summary("The long one.")])
    result = make_summarizer(client).summarize_tiered("Un document.", language="en", short=10, medium=20, long=40)

    assert result == TieredSummary(short="Short.", medium="Medium one.", long="The long one.")
    assert "Maximum length: 10 words" in client.prompts[0]
    assert "Maximum length: 20 words" in client.prompts[1]
    assert "Maximum length: 40 words" in client.prompts[2]


@pytest.mark.parametrize("short, medium, long, message", [
    (50, 50, 300, "Medium length must be greater than short"),
    (50, 150, 100, "Long length must be greater than medium"),
])
def test_tiered_lengths_must_increase(sleeps, short, medium, long, message):
    client = ScriptedClient()
    with pytest.raises(InputValidationError, match=message):
        make_summarizer(client).summarize_tiered("Un document.", short=short, medium=medium, long=long)
    assert client.prompts == []


def test_tiered_summary_of_blank_text(sleeps):
    result = make_summarizer(ScriptedClient()).summarize_tiered("   ")
    assert result == TieredSummary(short="", medium="", long="")
