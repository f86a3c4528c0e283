"""Turn one captured text into one enhanced text via the selected provider."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .config import SettingsStore
from .errors import (
    HttpError,
    MissingCredentialError,
    NetworkUnavailableError,
    NoTextAvailableError,
    TransportError,
    TransportKind,
)
from .network import is_network_reachable
from .prompts import PromptStore
from .providers import ProviderAdapter, get_adapter

STATUS_MESSAGES = {
    401: "Authentication failed: Please check your API key.",
    403: "Access denied: You may not have permission to use this model or API.",
    404: "API endpoint not found. The service may have changed.",
    429: "Rate limit exceeded. Please try again later.",
}
SERVER_ERROR_MESSAGE = "API server error. The service may be experiencing issues."


@dataclass(frozen=True)
class RequestConfig:
    """Everything needed for a single provider call, rebuilt per invocation."""

    adapter: ProviderAdapter
    api_key: str
    model: str
    prompt_text: str
    user_text: str

    def body(self) -> dict:
        return self.adapter.build_request(self.prompt_text, self.user_text, self.model)

    def headers(self) -> dict:
        return self.adapter.headers(self.api_key)


class RequestPipeline:
    """Run the provider request for one capture.

    Preconditions are checked before anything touches the network, transport
    and HTTP failures are classified into distinct ``EloteError`` subclasses,
    and nothing is retried.
    """

    def __init__(
        self,
        store: SettingsStore,
        prompts: PromptStore,
        network_probe: Optional[Callable[[str], bool]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._store = store
        self._prompts = prompts
        self._network_probe = network_probe or is_network_reachable
        self._transport = transport

    def build_config(self, text: str) -> RequestConfig:
        settings = self._store.settings
        adapter = get_adapter(settings.provider)
        return RequestConfig(
            adapter=adapter,
            api_key=settings.api_key,
            model=adapter.resolve_model(settings.custom_model),
            prompt_text=self._prompts.formatted(),
            user_text=text,
        )

    async def process(self, captured_text: str) -> str:
        settings = self._store.settings
        adapter = get_adapter(settings.provider)

        if not await self._probe(adapter):
            raise NetworkUnavailableError()
        if not settings.api_key.strip():
            raise MissingCredentialError()
        if not captured_text or not captured_text.strip():
            raise NoTextAvailableError()

        request = self.build_config(captured_text)
        body = request.body()
        logging.debug(
            "Sending %d characters to %s (model=%s)",
            len(captured_text),
            adapter.display_name,
            request.model,
        )

        try:
            async with httpx.AsyncClient(timeout=settings.request_timeout, transport=self._transport) as client:
                response = await client.post(adapter.endpoint, json=body, headers=request.headers())
        except httpx.HTTPError as exc:
            reachable = await self._probe(adapter) if isinstance(exc, httpx.ConnectError) else True
            raise self._classify_transport_error(exc, adapter, reachable) from exc

        logging.debug("%s responded with status %s", adapter.display_name, response.status_code)
        if not response.is_success:
            raise _http_error(response)
        return adapter.extract_response(response.content)

    async def _probe(self, adapter: ProviderAdapter) -> bool:
        # getaddrinfo blocks, so the probe runs in a worker thread.
        return await asyncio.to_thread(self._network_probe, adapter.endpoint)

    def _classify_transport_error(
        self, exc: httpx.HTTPError, adapter: ProviderAdapter, reachable: bool
    ) -> TransportError:
        if isinstance(exc, httpx.TimeoutException):
            kind, message = TransportKind.TIMED_OUT, "Request timed out. The server is taking too long to respond."
        elif isinstance(exc, httpx.ConnectError):
            if reachable:
                kind = TransportKind.HOST_UNREACHABLE
                message = (
                    f"Cannot connect to {adapter.display_name} API server. "
                    "Please check your internet connection and try again."
                )
            else:
                kind = TransportKind.OFFLINE
                message = "No internet connection available. Please check your network settings."
        elif isinstance(exc, (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError, httpx.CloseError)):
            kind, message = TransportKind.CONNECTION_LOST, "Network connection was lost. Please try again."
        else:
            kind, message = TransportKind.OTHER, str(exc) or exc.__class__.__name__
        logging.error("Request to %s failed (%s): %s", adapter.display_name, kind.value, exc)
        return TransportError(kind, message)


def _http_error(response: httpx.Response) -> HttpError:
    status = response.status_code
    if status in STATUS_MESSAGES:
        message = STATUS_MESSAGES[status]
    elif status in (500, 502, 503, 504):
        message = SERVER_ERROR_MESSAGE
    else:
        message = f"API server error (Status {status})"

    body = response.text
    if body:
        logging.debug("Error response: %s", body)
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            detail = payload["error"].get("message")
            if isinstance(detail, str) and detail:
                message += f"\nAPI Error: {detail}"
        if "error" in body:
            message += f"\n\nDetailed error: {body}"
    return HttpError(status, message)
