"""Dataclasses describing persistent objects for elote."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_PROMPT_TEXT = "Improve this text to make it clear, concise, and professional."


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Prompt:
    """A named instruction template prepended to the captured text."""

    name: str
    text: str
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Prompt":
        if (
            not isinstance(payload, dict)
            or not isinstance(payload.get("name"), str)
            or not isinstance(payload.get("text"), str)
        ):
            raise ValueError(f"Invalid prompt entry: {payload!r}")
        return cls(
            name=payload["name"],
            text=payload["text"],
            id=str(payload.get("id") or _new_id()),
        )


def default_prompts() -> List[Prompt]:
    return [
        Prompt("Default", DEFAULT_PROMPT_TEXT),
        Prompt(
            "Fix Grammar",
            "Fix any grammar and spelling errors in this text. Maintain the original tone and style.",
        ),
        Prompt("Make Professional", "Make this text more professional and formal."),
    ]


@dataclass(slots=True)
class Settings:
    """User configuration stored on disk."""

    api_key: str = ""
    provider: str = "openai"
    custom_model: str = ""
    prompts: List[Prompt] = field(default_factory=default_prompts)
    selected_prompt_id: Optional[str] = None
    last_used_prompt: str = DEFAULT_PROMPT_TEXT
    auto_mode_enabled: bool = False
    auto_process: bool = False
    strict_output: bool = True
    show_notifications: bool = True
    play_notification_sounds: bool = True
    process_hotkey: str = "control+option+e"
    toggle_auto_mode_hotkey: str = "control+option+a"
    start_at_login: bool = False
    request_timeout: float = 60.0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Settings":
        """Build settings from stored JSON.

        Scalar values of the wrong type are dropped in favour of the default.
        A malformed prompt list raises ``ValueError``.
        """

        data = {}
        for key, value in payload.items():
            if key == "prompts" or _valid_value(key, value):
                data[key] = value
            else:
                logging.warning("Ignoring invalid value for %s: %r", key, value)
        raw_prompts = data.pop("prompts", None)
        settings = cls(**data)
        if raw_prompts:
            if not isinstance(raw_prompts, list):
                raise ValueError("prompts must be a list")
            settings.prompts = [Prompt.from_dict(item) for item in raw_prompts]
        return settings


_BOOL_FIELDS = {
    "auto_mode_enabled",
    "auto_process",
    "strict_output",
    "show_notifications",
    "play_notification_sounds",
    "start_at_login",
}


def _valid_value(key: str, value: Any) -> bool:
    if key in _BOOL_FIELDS:
        return isinstance(value, bool)
    if key == "request_timeout":
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
    if key == "selected_prompt_id":
        return value is None or isinstance(value, str)
    return isinstance(value, str)
