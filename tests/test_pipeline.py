import asyncio
import json
import time

import httpx
import pytest

from conftest import json_response
from elote.config import SettingsStore
from elote.errors import (
    ApiPayloadError,
    HttpError,
    MissingCredentialError,
    NetworkUnavailableError,
    NoTextAvailableError,
    ResponseParseError,
    TransportError,
    TransportKind,
)
from elote.pipeline import RequestPipeline
from elote.prompts import PromptStore


def ok_openai(request):
    return json_response(200, {"choices": [{"message": {"content": "Hello"}}]})


@pytest.mark.asyncio
async def test_openai_success(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, requests = make_pipeline(ok_openai)

    assert await pipeline.process("hello wrld") == "Hello"

    request = requests[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4o"
    assert body["max_tokens"] == 4000
    assert body["temperature"] == 0.7
    assert body["messages"][0]["role"] == "user"
    assert body["messages"][0]["content"].endswith(" hello wrld")


@pytest.mark.asyncio
async def test_anthropic_success_with_custom_model(store, make_pipeline):
    store.update(api_key="key", provider="anthropic", custom_model="claude-2.1")
    pipeline, requests = make_pipeline(lambda request: json_response(200, {"content": [{"text": "Hi"}]}))

    assert await pipeline.process("text") == "Hi"

    request = requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "key"
    assert request.headers["anthropic-version"] == "2023-06-01"
    assert json.loads(request.content)["model"] == "claude-2"


@pytest.mark.asyncio
async def test_missing_credential_makes_no_request(store, make_pipeline):
    pipeline, requests = make_pipeline(ok_openai)

    with pytest.raises(MissingCredentialError):
        await pipeline.process("some text")
    assert requests == []


@pytest.mark.asyncio
async def test_network_unavailable_checked_first(store, make_pipeline):
    pipeline, requests = make_pipeline(ok_openai, reachable=False)

    with pytest.raises(NetworkUnavailableError):
        await pipeline.process("")
    assert requests == []


@pytest.mark.asyncio
async def test_empty_text_makes_no_request(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, requests = make_pipeline(ok_openai)

    with pytest.raises(NoTextAvailableError):
        await pipeline.process("   ")
    assert requests == []


@pytest.mark.asyncio
async def test_rate_limit_is_classified(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(
        lambda request: json_response(429, {"error": {"message": "Slow down", "type": "rate_limit"}})
    )

    with pytest.raises(HttpError) as excinfo:
        await pipeline.process("text")
    assert excinfo.value.status_code == 429
    assert "Rate limit exceeded" in excinfo.value.message
    assert "API Error: Slow down" in excinfo.value.message
    assert "Detailed error:" in excinfo.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, fragment",
    [
        (401, "Authentication failed"),
        (403, "Access denied"),
        (404, "endpoint not found"),
        (503, "API server error. The service"),
        (418, "Status 418"),
    ],
)
async def test_http_status_messages(store, make_pipeline, status, fragment):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(lambda request: httpx.Response(status, text="nope"))

    with pytest.raises(HttpError) as excinfo:
        await pipeline.process("text")
    assert excinfo.value.status_code == status
    assert fragment in str(excinfo.value)
    assert "Detailed error" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_error_payload_in_success_response(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(lambda request: json_response(200, {"error": {"msg": "quota"}}))

    with pytest.raises(ApiPayloadError, match="quota"):
        await pipeline.process("text")


@pytest.mark.asyncio
async def test_unparseable_success_body(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(lambda request: httpx.Response(200, text="not json"))

    with pytest.raises(ResponseParseError):
        await pipeline.process("text")


def raising(exc_type):
    def handler(request):
        raise exc_type("boom", request=request)

    return handler


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc_type, kind",
    [
        (httpx.ReadTimeout, TransportKind.TIMED_OUT),
        (httpx.ConnectTimeout, TransportKind.TIMED_OUT),
        (httpx.ConnectError, TransportKind.HOST_UNREACHABLE),
        (httpx.RemoteProtocolError, TransportKind.CONNECTION_LOST),
        (httpx.ReadError, TransportKind.CONNECTION_LOST),
        (httpx.UnsupportedProtocol, TransportKind.OTHER),
    ],
)
async def test_transport_errors_are_classified(store, make_pipeline, exc_type, kind):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(raising(exc_type))

    with pytest.raises(TransportError) as excinfo:
        await pipeline.process("text")
    assert excinfo.value.kind is kind


@pytest.mark.asyncio
async def test_connect_error_while_offline(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(raising(httpx.ConnectError))
    answers = iter([True, False])
    pipeline._network_probe = lambda url: next(answers)

    with pytest.raises(TransportError) as excinfo:
        await pipeline.process("text")
    assert excinfo.value.kind is TransportKind.OFFLINE
    assert "No internet connection" in str(excinfo.value)


@pytest.mark.asyncio
async def test_failures_are_not_retried(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, requests = make_pipeline(lambda request: httpx.Response(500, text="{}"))

    with pytest.raises(HttpError):
        await pipeline.process("text")
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_null_api_key_in_file_reports_missing_credential(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"api_key": None}))
    store = SettingsStore(path=cfg_path)
    pipeline = RequestPipeline(store, PromptStore(store), network_probe=lambda url: True)

    with pytest.raises(MissingCredentialError):
        await pipeline.process("text")


@pytest.mark.asyncio
async def test_slow_reachability_check_does_not_block_the_loop(store, make_pipeline):
    store.update(api_key="sk-test")
    pipeline, _ = make_pipeline(ok_openai)

    def slow_check(url):
        time.sleep(0.2)
        return True

    pipeline._network_probe = slow_check
    ticks = []

    async def ticker():
        while True:
            ticks.append(time.monotonic())
            await asyncio.sleep(0.01)

    task = asyncio.ensure_future(ticker())
    try:
        assert await pipeline.process("text") == "Hello"
    finally:
        task.cancel()

    assert len(ticks) >= 5
