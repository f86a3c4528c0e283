"""Clipboard capture, debouncing, and the processing state machine."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from .clipboard import Clipboard
from .config import SettingsStore
from .errors import EloteError, NoTextAvailableError
from .hotkeys import Hotkey
from .notifications import Notifier
from .pipeline import RequestPipeline
from .providers import get_adapter

DEBOUNCE_SECONDS = 0.5
POLL_INTERVAL = 0.5
SUCCESS_WINDOW = 3.0


class CaptureState(str, Enum):
    IDLE = "idle"
    CAPTURED = "captured"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ClipboardMonitor:
    """Watch the clipboard change counter and commit new text after a quiet period.

    Must be started from inside a running event loop. Change counts are only
    accepted when strictly greater than the last one seen.
    """

    def __init__(
        self,
        clipboard: Clipboard,
        on_capture: Callable[[str], None],
        debounce: float = DEBOUNCE_SECONDS,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._clipboard = clipboard
        self._on_capture = on_capture
        self._debounce = debounce
        self._poll_interval = poll_interval
        self._last_change_count = clipboard.change_count()
        self._pending: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._last_change_count = self._clipboard.change_count()
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        logging.debug("Clipboard monitoring started")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._cancel_pending()
        logging.debug("Clipboard monitoring stopped")

    async def _poll_loop(self) -> None:
        while True:
            self.poll_once()
            await asyncio.sleep(self._poll_interval)

    def poll_once(self) -> bool:
        """Check the change counter once; return True when a change was signalled."""

        count = self._clipboard.change_count()
        if count <= self._last_change_count:
            return False
        self._last_change_count = count
        self.signal()
        return True

    def signal(self) -> None:
        """Record a change notification, restarting the debounce window."""

        self._cancel_pending()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(self._debounce, self._commit)

    def skip_own_write(self) -> None:
        """Treat the current clipboard contents as already seen."""

        self._last_change_count = max(self._last_change_count, self._clipboard.change_count())
        self._cancel_pending()

    def _commit(self) -> None:
        self._pending = None
        text = self._clipboard.get_text()
        if text.strip():
            self._on_capture(text)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


StateListener = Callable[[CaptureState], None]


class CaptureStateMachine:
    """Single owner of the capture state.

    All methods must be called on the event loop thread. At most one request
    is in flight: :meth:`trigger` is refused while processing.
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        clipboard: Clipboard,
        notifier: Notifier,
        store: SettingsStore,
        *,
        debounce: float = DEBOUNCE_SECONDS,
        poll_interval: float = POLL_INTERVAL,
        success_window: float = SUCCESS_WINDOW,
    ) -> None:
        self._pipeline = pipeline
        self._clipboard = clipboard
        self._notifier = notifier
        self._store = store
        self._success_window = success_window
        self.monitor = ClipboardMonitor(clipboard, self.capture, debounce=debounce, poll_interval=poll_interval)
        self.state = CaptureState.IDLE
        self.last_error: Optional[EloteError] = None
        self.last_result: Optional[str] = None
        self._captured = ""
        self._last_committed = ""
        self._listeners: List[StateListener] = []
        self._rest_handle: Optional[asyncio.TimerHandle] = None
        self._auto_task: Optional[asyncio.Task] = None

    @property
    def captured_text(self) -> str:
        return self._captured

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        if self._store.settings.auto_mode_enabled:
            self.monitor.start()

    def stop(self) -> None:
        self.monitor.stop()
        self._cancel_rest()

    def set_auto_mode(self, enabled: bool) -> None:
        self._store.update(auto_mode_enabled=enabled)
        if enabled:
            self.monitor.start()
            self._notifier.notify(
                "Elote Auto Mode Enabled", "Elote will now monitor your clipboard for text to process."
            )
        else:
            self.monitor.stop()
            self._notifier.notify("Elote Auto Mode Disabled", "Clipboard monitoring has been turned off.")

    def toggle_auto_mode(self) -> bool:
        enabled = not self._store.settings.auto_mode_enabled
        self.set_auto_mode(enabled)
        return enabled

    def capture(self, text: str) -> None:
        """Store newly copied text, replacing any capture not yet processed."""

        if not text.strip() or text == self._last_committed:
            logging.debug("Ignoring clipboard change with no new text")
            return
        self._last_committed = text
        self._captured = text
        logging.debug("Clipboard changed: %s...", text[:30])
        if self.state is not CaptureState.PROCESSING:
            self._cancel_rest()
            self._set_state(CaptureState.CAPTURED)

        settings = self._store.settings
        if not settings.auto_mode_enabled or self.state is CaptureState.PROCESSING:
            return
        if settings.auto_process:
            self._auto_task = asyncio.get_running_loop().create_task(self.trigger())
        else:
            hotkey = Hotkey.parse(settings.process_hotkey, fallback=Hotkey.parse("control+option+e"))
            self._notifier.notify("Text Captured", f"Press {hotkey.display} to enhance this text.")

    async def trigger(self) -> Optional[str]:
        """Process the captured text, or the clipboard when nothing is captured."""

        if self.state is CaptureState.PROCESSING:
            logging.info("Ignoring trigger while a request is in flight")
            return None

        text = self._captured or self._clipboard.get_text()
        if not text.strip():
            error = NoTextAvailableError()
            self.last_error = error
            logging.warning("%s: %s", error.title, error)
            self._notifier.notify(error.title, str(error))
            return None

        self._captured = ""
        self._cancel_rest()
        self._set_state(CaptureState.PROCESSING)
        provider = get_adapter(self._store.settings.provider).display_name
        self._notifier.notify("Processing Text", f"Elote is enhancing your text with {provider}...")

        try:
            result = await self._pipeline.process(text)
            self._clipboard.set_text(result)
        except EloteError as exc:
            self._fail(exc)
            return None
        except Exception as exc:
            logging.exception("Unexpected failure while processing text")
            self._fail(EloteError(f"Error: {exc}"))
            return None

        self._succeed(result)
        return result

    def _succeed(self, result: str) -> None:
        self.last_result = result
        self.last_error = None
        self._last_committed = result
        self.monitor.skip_own_write()
        logging.info("Enhanced text written to clipboard (%d characters)", len(result))
        self._set_state(CaptureState.SUCCEEDED)
        self._notifier.notify("Text Enhanced", "Enhanced text is now on your clipboard. Paste it anywhere.")
        if self._store.settings.play_notification_sounds:
            self._notifier.play_sound()
        self._rest_handle = asyncio.get_running_loop().call_later(self._success_window, self._return_to_rest)

    def _fail(self, error: EloteError) -> None:
        self.last_error = error
        logging.error("%s: %s", error.title, error)
        self._set_state(CaptureState.FAILED)
        self._notifier.notify(error.title, str(error))
        self._return_to_rest()

    def _return_to_rest(self) -> None:
        self._rest_handle = None
        self._set_state(CaptureState.CAPTURED if self._captured else CaptureState.IDLE)

    def _cancel_rest(self) -> None:
        if self._rest_handle is not None:
            self._rest_handle.cancel()
            self._rest_handle = None

    def _set_state(self, state: CaptureState) -> None:
        if state is self.state and state is not CaptureState.CAPTURED:
            return
        self.state = state
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logging.exception("State listener failed")
