"""Wiring of the capture workflow for the front-ends."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, Optional

from .capture import CaptureStateMachine
from .clipboard import Clipboard
from .config import SettingsStore
from .notifications import Notifier
from .pipeline import RequestPipeline
from .prompts import PromptStore


class Elote:
    """Settings, prompts, pipeline and state machine built around one settings store."""

    def __init__(
        self,
        clipboard: Clipboard,
        notifier: Notifier,
        store: Optional[SettingsStore] = None,
        **machine_options: Any,
    ) -> None:
        self.store = store or SettingsStore()
        self.prompts = PromptStore(self.store)
        self.pipeline = RequestPipeline(self.store, self.prompts)
        self.clipboard = clipboard
        self.notifier = notifier
        self.machine = CaptureStateMachine(
            self.pipeline, clipboard, notifier, self.store, **machine_options
        )


class LoopThread:
    """Run an asyncio event loop in a daemon thread.

    The loop is the single owner of the capture state; other threads (menu
    bar callbacks, hotkey monitors) hand work over with :meth:`submit` or
    :meth:`call`.
    """

    def __init__(self, name: str = "elote-loop") -> None:
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("Failed to start the event loop thread.")

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            loop.close()
            logging.debug("Event loop thread stopped")

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        if self._loop is None:
            raise RuntimeError("Event loop thread is not running.")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def call(self, func, *args: Any) -> None:
        if self._loop is None:
            raise RuntimeError("Event loop thread is not running.")
        self._loop.call_soon_threadsafe(func, *args)

    def stop(self) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._thread = None
        self._loop = None
        self._ready.clear()
