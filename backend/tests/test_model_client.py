from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from domain.errors import ExternalServiceError
from domain.models import MediaFile
from services import model_client as mc
from settings import Settings


def _settings(monkeypatch, **env) -> Settings:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return Settings()


def _completion(text):
    message = MagicMock()
    message.content = text
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch.object(mc, "OpenAI")
def test_client_built_lazily_and_cached(mock_openai, monkeypatch):
    client = mc.ModelClient(_settings(monkeypatch, MODEL_TIMEOUT_SECONDS="12"))
    mock_openai.assert_not_called()

    mock_openai.return_value.chat.completions.create.return_value = _completion("coffee")
    client.infer_tags("prompt one")
    client.infer_tags("prompt two")

    mock_openai.assert_called_once()
    kwargs = mock_openai.call_args.kwargs
    assert kwargs["api_key"] == "sk-test"
    assert kwargs["timeout"] == 12.0


@patch.object(mc, "OpenAI")
def test_extract_sends_one_request_with_image_parts(mock_openai, monkeypatch):
    create = mock_openai.return_value.chat.completions.create
    create.return_value = _completion('{"places": []}')
    client = mc.ModelClient(_settings(monkeypatch))

    images = [
        MediaFile(content=b"a", mime_type="image/png", filename="a.png"),
        MediaFile(content=b"b", mime_type="image/webp", filename="b.webp"),
    ]
    text = client.extract(images, "system prompt", "find places")

    assert text == '{"places": []}'
    create.assert_called_once()
    messages = create.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": "system prompt"}
    parts = messages[1]["content"]
    assert parts[0] == {"type": "text", "text": "find places"}
    urls = [p["image_url"]["url"] for p in parts[1:]]
    assert urls[0].startswith("data:image/png;base64,")
    assert urls[1].startswith("data:image/webp;base64,")
    assert parts[1]["image_url"]["detail"] == "low"


@patch.object(mc, "OpenAI")
def test_sdk_errors_are_wrapped(mock_openai, monkeypatch):
    mock_openai.return_value.chat.completions.create.side_effect = OpenAIError("upstream down")
    client = mc.ModelClient(_settings(monkeypatch))

    with pytest.raises(ExternalServiceError, match="upstream down"):
        client.infer_tags("prompt")


@patch.object(mc, "OpenAI")
def test_empty_choices_return_empty_text(mock_openai, monkeypatch):
    response = MagicMock()
    response.choices = []
    mock_openai.return_value.chat.completions.create.return_value = response
    client = mc.ModelClient(_settings(monkeypatch))

    assert client.infer_tags("prompt") == ""


def test_missing_api_key_fails_at_call_time(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = mc.ModelClient(Settings())  # constructing is fine

    with pytest.raises(ExternalServiceError, match="OPENAI_API_KEY"):
        client.infer_tags("prompt")
