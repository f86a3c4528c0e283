import json

import pytest

from elote.errors import ApiPayloadError, MissingCredentialError, ResponseParseError
from elote.providers import AnthropicAdapter, OpenAIAdapter, ProviderKind, get_adapter


def success_payload(kind, text):
    if kind is ProviderKind.OPENAI:
        return {"choices": [{"message": {"role": "assistant", "content": text}}]}
    return {"content": [{"type": "text", "text": text}]}


@pytest.mark.parametrize("kind", list(ProviderKind))
def test_success_payload_round_trips(kind):
    adapter = get_adapter(kind)
    for text in ("Hello", "", "multi\nline ✓"):
        raw = json.dumps(success_payload(kind, text)).encode("utf-8")
        assert adapter.extract_response(raw) == text


def test_openai_headers_use_bearer_token():
    headers = OpenAIAdapter().headers("sk-123")
    assert headers == {"Content-Type": "application/json", "Authorization": "Bearer sk-123"}


def test_anthropic_headers_use_api_key_and_version():
    headers = AnthropicAdapter().headers("key")
    assert headers["x-api-key"] == "key"
    assert headers["anthropic-version"] == "2023-06-01"
    assert headers["Content-Type"] == "application/json"
    assert "Authorization" not in headers


def test_headers_refuse_missing_credential():
    with pytest.raises(MissingCredentialError):
        OpenAIAdapter().headers("")


def test_request_body_shape():
    body = AnthropicAdapter().build_request("Fix this:", "teh text")
    assert body == {
        "model": "claude-3-haiku-20240307",
        "messages": [{"role": "user", "content": "Fix this: teh text"}],
        "max_tokens": 4000,
        "temperature": 0.7,
    }


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "gpt-4o"),
        ("", "gpt-4o"),
        ("GPT4", "gpt-4o"),
        ("gpt-4o", "gpt-4o"),
        ("my-gpt3.5-model", "gpt-3.5-turbo"),
        ("gpt-4-turbo", "gpt-4-turbo"),
    ],
)
def test_openai_model_normalisation(raw, expected):
    assert OpenAIAdapter().resolve_model(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "claude-3-haiku-20240307"),
        ("Claude-2.1", "claude-2"),
        ("claude 1.3", "claude-1.3"),
        ("claude3", "claude-3-haiku-20240307"),
        ("claude-3-opus-20240229", "claude-3-opus-20240229"),
        ("something-else", "something-else"),
    ],
)
def test_anthropic_model_normalisation(raw, expected):
    assert AnthropicAdapter().resolve_model(raw) == expected


def test_openai_legacy_text_completion():
    raw = json.dumps({"choices": [{"text": "legacy"}]})
    assert OpenAIAdapter().extract_response(raw) == "legacy"


def test_anthropic_legacy_completion():
    raw = json.dumps({"completion": "old style"})
    assert AnthropicAdapter().extract_response(raw) == "old style"


@pytest.mark.parametrize(
    "error, message",
    [
        ({"message": "bad request"}, "bad request"),
        ({"msg": "short form"}, "short form"),
        ({"type": "overloaded_error"}, "Error type: overloaded_error"),
    ],
)
def test_error_object_is_reported(error, message):
    with pytest.raises(ApiPayloadError) as excinfo:
        AnthropicAdapter().extract_response(json.dumps({"error": error}))
    assert excinfo.value.message == message


def test_unknown_shape_mentioning_error_is_failure():
    with pytest.raises(ApiPayloadError):
        OpenAIAdapter().extract_response(json.dumps({"status": "error happened"}))


def test_unknown_shape_is_returned_raw():
    raw = json.dumps({"output": "something"})
    assert OpenAIAdapter().extract_response(raw) == f"Raw API response: {raw}"


def test_other_vendor_shape_is_not_mistaken_for_success():
    raw = json.dumps({"content": [{"text": "Hi"}]})
    assert OpenAIAdapter().extract_response(raw).startswith("Raw API response:")


def test_malformed_json_is_parse_error():
    with pytest.raises(ResponseParseError):
        OpenAIAdapter().extract_response(b"<html>bad gateway</html>")


def test_provider_parse_accepts_display_names_and_defaults():
    assert ProviderKind.parse("Anthropic") is ProviderKind.ANTHROPIC
    assert ProviderKind.parse("openai") is ProviderKind.OPENAI
    assert ProviderKind.parse("mystery") is ProviderKind.OPENAI
    assert get_adapter("anthropic").endpoint == "https://api.anthropic.com/v1/messages"
