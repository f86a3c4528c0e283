"""Parsing and display of global keyboard shortcuts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

MODIFIER_ALIASES = {
    "cmd": "command",
    "⌘": "command",
    "command": "command",
    "win": "command",
    "control": "control",
    "ctrl": "control",
    "^": "control",
    "⌃": "control",
    "option": "option",
    "alt": "option",
    "opt": "option",
    "⌥": "option",
    "shift": "shift",
    "⇧": "shift",
}

MODIFIER_ORDER = ("control", "option", "shift", "command")

KEY_ALIASES = {
    "enter": "return",
    "return": "return",
    "space": "space",
    "spacebar": "space",
    "tab": "tab",
    "escape": "escape",
    "esc": "escape",
    "delete": "delete",
    "backspace": "delete",
}

MODIFIER_DISPLAY = {
    "control": "⌃",
    "option": "⌥",
    "shift": "⇧",
    "command": "⌘",
}

KEY_DISPLAY = {
    "space": "Space",
    "return": "Return",
    "tab": "Tab",
    "escape": "Esc",
    "delete": "Delete",
}


@dataclass(frozen=True)
class Hotkey:
    """A key combination such as ``control+option+e``."""

    modifiers: Tuple[str, ...]
    key: str

    @classmethod
    def parse(cls, raw: str, fallback: Optional["Hotkey"] = None) -> "Hotkey":
        """Parse a user supplied shortcut.

        Modifier aliases (``ctrl``, ``alt``, ``cmd``, symbols) are accepted in
        any order. When ``fallback`` is given, invalid input returns it
        instead of raising ``ValueError``.
        """

        try:
            return cls._parse(raw)
        except ValueError:
            if fallback is None:
                raise
            return fallback

    @classmethod
    def _parse(cls, raw: str) -> "Hotkey":
        parts = [part.strip().lower() for part in (raw or "").split("+") if part.strip()]
        if not parts:
            raise ValueError("Hotkey cannot be empty.")

        modifiers = set()
        key: Optional[str] = None
        for part in parts:
            alias = MODIFIER_ALIASES.get(part, part)
            if alias in MODIFIER_ORDER:
                modifiers.add(alias)
                continue
            if key is not None:
                raise ValueError("A shortcut can only have one primary key.")
            mapped = KEY_ALIASES.get(alias, alias)
            if not (len(mapped) == 1 and mapped.isprintable()) and mapped not in KEY_DISPLAY:
                raise ValueError(f"Unsupported key '{part}' in shortcut.")
            key = mapped

        if key is None:
            raise ValueError("A shortcut must include a primary key.")
        if not modifiers:
            raise ValueError("A global shortcut needs at least one modifier.")
        return cls(tuple(mod for mod in MODIFIER_ORDER if mod in modifiers), key)

    @property
    def canonical(self) -> str:
        return "+".join(self.modifiers + (self.key,))

    @property
    def display(self) -> str:
        prefix = "".join(MODIFIER_DISPLAY[mod] for mod in self.modifiers)
        if self.key in KEY_DISPLAY:
            return f"{prefix}{KEY_DISPLAY[self.key]}"
        return f"{prefix}{self.key.upper()}"

    def __str__(self) -> str:
        return self.canonical
