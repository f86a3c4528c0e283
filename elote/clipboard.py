"""System clipboard access."""

from __future__ import annotations

import logging
import platform
import threading
from typing import Protocol

from .errors import ClipboardError


class Clipboard(Protocol):
    """Clipboard operations the capture workflow depends on."""

    def get_text(self) -> str:
        """Return the current clipboard text, or an empty string."""

    def set_text(self, text: str) -> None:
        """Replace the clipboard contents with ``text``."""

    def change_count(self) -> int:
        """Return a counter that increases every time the clipboard changes."""


class PasteboardClipboard:
    """macOS general pasteboard via pyobjc."""

    def __init__(self) -> None:
        try:
            from AppKit import NSPasteboard, NSPasteboardTypeString  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "The `pyobjc` packages are required to access the clipboard. Install elote[mac]."
            ) from exc
        self._pasteboard = NSPasteboard.generalPasteboard()
        self._type = NSPasteboardTypeString

    def get_text(self) -> str:
        return str(self._pasteboard.stringForType_(self._type) or "")

    def set_text(self, text: str) -> None:
        self._pasteboard.clearContents()
        if not self._pasteboard.setString_forType_(text, self._type):
            raise ClipboardError()

    def change_count(self) -> int:
        return int(self._pasteboard.changeCount())


class PyperclipClipboard:
    """Cross platform clipboard backed by pyperclip.

    pyperclip has no change counter, so one is derived by comparing the
    current value with the last value seen.
    """

    def __init__(self) -> None:
        import pyperclip

        self._pyperclip = pyperclip
        self._lock = threading.Lock()
        self._count = 0
        self._last = self._paste()

    def _paste(self) -> str:
        try:
            return self._pyperclip.paste() or ""
        except self._pyperclip.PyperclipException as exc:
            logging.debug("Clipboard read failed: %s", exc)
            return ""

    def get_text(self) -> str:
        with self._lock:
            text = self._paste()
            if text != self._last:
                self._last = text
                self._count += 1
            return text

    def set_text(self, text: str) -> None:
        with self._lock:
            try:
                self._pyperclip.copy(text)
            except self._pyperclip.PyperclipException as exc:
                raise ClipboardError(f"Could not write to the clipboard: {exc}") from exc
            self._last = text
            self._count += 1

    def change_count(self) -> int:
        self.get_text()
        return self._count


def system_clipboard() -> Clipboard:
    """Return the best clipboard implementation for this platform."""

    if platform.system() == "Darwin":
        try:
            return PasteboardClipboard()
        except RuntimeError as exc:
            logging.debug("Pasteboard unavailable, using pyperclip: %s", exc)
    return PyperclipClipboard()
