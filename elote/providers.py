"""Request and response handling for the supported text generation vendors."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Union

from .errors import ApiPayloadError, MissingCredentialError, ResponseParseError

MAX_TOKENS = 4000
TEMPERATURE = 0.7
ANTHROPIC_VERSION = "2023-06-01"


class ProviderKind(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProviderKind":
        """Resolve a stored or user supplied provider name, defaulting to OpenAI."""

        lowered = (value or "").strip().lower()
        for kind in cls:
            if lowered in (kind.value, ADAPTERS[kind].display_name.lower()):
                return kind
        return cls.OPENAI


class ProviderAdapter(Protocol):
    """Common interface for vendor adapters."""

    kind: ProviderKind
    display_name: str
    endpoint: str
    default_model: str

    def headers(self, api_key: str) -> Dict[str, str]:
        """Return the HTTP headers for an authenticated request."""

    def resolve_model(self, model: Optional[str] = None) -> str:
        """Return the model id to send, tolerating loose user input."""

    def build_request(self, prompt_text: str, user_text: str, model: Optional[str] = None) -> Dict[str, Any]:
        """Return the JSON body for a single-turn request."""

    def extract_response(self, raw: Union[bytes, str]) -> str:
        """Return the generated text or raise an ``EloteError``."""


class _ChatAdapter:
    kind: ProviderKind
    display_name: str
    endpoint: str
    default_model: str

    def headers(self, api_key: str) -> Dict[str, str]:
        if not api_key:
            raise MissingCredentialError()
        return {"Content-Type": "application/json", **self._auth_headers(api_key)}

    def resolve_model(self, model: Optional[str] = None) -> str:
        if not model or not model.strip():
            return self.default_model
        return self._normalise_model(model.strip())

    def build_request(self, prompt_text: str, user_text: str, model: Optional[str] = None) -> Dict[str, Any]:
        return {
            "model": self.resolve_model(model),
            "messages": [{"role": "user", "content": f"{prompt_text} {user_text}"}],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

    def extract_response(self, raw: Union[bytes, str]) -> str:
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(f"Failed to parse API response: {exc}") from exc

        if isinstance(payload, dict):
            extracted = self._extract_success(payload)
            if extracted is not None:
                return extracted
            error = payload.get("error")
            if isinstance(error, dict):
                raise ApiPayloadError(_error_message(error))

        if "error" in text:
            raise ApiPayloadError(text)
        return f"Raw API response: {text}"

    def _auth_headers(self, api_key: str) -> Dict[str, str]:
        raise NotImplementedError

    def _normalise_model(self, model: str) -> str:
        return model

    def _extract_success(self, payload: Dict[str, Any]) -> Optional[str]:
        raise NotImplementedError


class OpenAIAdapter(_ChatAdapter):
    kind = ProviderKind.OPENAI
    display_name = "OpenAI"
    endpoint = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-4o"

    def _auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def _normalise_model(self, model: str) -> str:
        lowered = model.lower()
        if lowered in ("gpt4", "gpt-4o"):
            return "gpt-4o"
        if "gpt3.5" in lowered:
            return "gpt-3.5-turbo"
        return model

    def _extract_success(self, payload: Dict[str, Any]) -> Optional[str]:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        first = choices[0]
        message = first.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        # legacy text completion shape
        if isinstance(first.get("text"), str):
            return first["text"]
        return None


class AnthropicAdapter(_ChatAdapter):
    kind = ProviderKind.ANTHROPIC
    display_name = "Anthropic"
    endpoint = "https://api.anthropic.com/v1/messages"
    default_model = "claude-3-haiku-20240307"

    def _auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}

    def _normalise_model(self, model: str) -> str:
        lowered = model.lower()
        if "claude-2" in lowered:
            return "claude-2"
        if "1.3" in lowered:
            return "claude-1.3"
        if "3" in lowered and "-" not in lowered:
            return self.default_model
        return model

    def _extract_success(self, payload: Dict[str, Any]) -> Optional[str]:
        content = payload.get("content")
        if isinstance(content, list) and content and isinstance(content[0], dict):
            if isinstance(content[0].get("text"), str):
                return content[0]["text"]
        # legacy completion API
        if isinstance(payload.get("completion"), str):
            return payload["completion"]
        return None


def _error_message(error: Dict[str, Any]) -> str:
    if isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error.get("msg"), str):
        return error["msg"]
    if error.get("type") is not None:
        return f"Error type: {error['type']}"
    return "API Error"


ADAPTERS: Dict[ProviderKind, ProviderAdapter] = {
    ProviderKind.OPENAI: OpenAIAdapter(),
    ProviderKind.ANTHROPIC: AnthropicAdapter(),
}


def get_adapter(provider: Union[ProviderKind, str, None]) -> ProviderAdapter:
    """Return the adapter for a provider kind or stored provider name."""

    kind = provider if isinstance(provider, ProviderKind) else ProviderKind.parse(provider)
    return ADAPTERS[kind]
