"""macOS menu bar application for elote."""

from __future__ import annotations

import logging
import platform
from typing import Callable, Dict, Optional

from .app import Elote, LoopThread
from .capture import CaptureState
from .clipboard import PasteboardClipboard
from .config import SettingsStore
from .hotkeys import Hotkey
from .prompts import PromptError
from .providers import ADAPTERS, ProviderKind, get_adapter

STATE_TITLES = {
    CaptureState.IDLE: "🌽",
    CaptureState.CAPTURED: "🌽•",
    CaptureState.PROCESSING: "⏳",
    CaptureState.SUCCEEDED: "✅",
    CaptureState.FAILED: "⚠️",
}

DEFAULT_PROCESS_HOTKEY = Hotkey(("control", "option"), "e")
DEFAULT_TOGGLE_HOTKEY = Hotkey(("control", "option"), "a")


def _require_macos() -> None:
    if platform.system() != "Darwin":  # pragma: no cover - platform guard
        raise RuntimeError("The menu bar application is only supported on macOS.")


class KeyComboHotkeyMonitor:
    """Trigger a callback when a key combination is pressed anywhere."""

    def __init__(self, hotkey: Hotkey, on_press: Callable[[], None]) -> None:
        try:
            from AppKit import (  # type: ignore
                NSEvent,
                NSEventMaskKeyDown,
                NSEventModifierFlagCommand,
                NSEventModifierFlagControl,
                NSEventModifierFlagOption,
                NSEventModifierFlagShift,
            )
            from Quartz import (  # type: ignore
                kVK_Delete,
                kVK_Escape,
                kVK_Return,
                kVK_Space,
                kVK_Tab,
            )
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "The `pyobjc` packages are required for global hotkey support. Install elote[mac]."
            ) from exc

        modifier_flags = {
            "command": NSEventModifierFlagCommand,
            "control": NSEventModifierFlagControl,
            "option": NSEventModifierFlagOption,
            "shift": NSEventModifierFlagShift,
        }
        special_keycodes = {
            "space": kVK_Space,
            "return": kVK_Return,
            "escape": kVK_Escape,
            "tab": kVK_Tab,
            "delete": kVK_Delete,
        }

        self._NSEvent = NSEvent
        self._mask_key_down = NSEventMaskKeyDown
        self._on_press = on_press
        self._modifier_mask = 0
        for modifier in hotkey.modifiers:
            self._modifier_mask |= modifier_flags[modifier]
        self._expected_key_code = special_keycodes.get(hotkey.key)
        self._expected_char = None if self._expected_key_code is not None else hotkey.key
        self._global_monitor = None
        self._local_monitor = None

    def start(self) -> None:
        if self._global_monitor is not None:
            return

        def handle_global(event):
            if self._matches(event):
                self._on_press()

        def handle_local(event):
            if self._matches(event):
                self._on_press()
                return None
            return event

        self._global_monitor = self._NSEvent.addGlobalMonitorForEventsMatchingMask_handler_(
            self._mask_key_down, handle_global
        )
        self._local_monitor = self._NSEvent.addLocalMonitorForEventsMatchingMask_handler_(
            self._mask_key_down, handle_local
        )

    def stop(self) -> None:
        if self._global_monitor is not None:
            self._NSEvent.removeMonitor_(self._global_monitor)
            self._global_monitor = None
        if self._local_monitor is not None:
            self._NSEvent.removeMonitor_(self._local_monitor)
            self._local_monitor = None

    def _matches(self, event) -> bool:
        flags = int(event.modifierFlags())
        if (flags & self._modifier_mask) != self._modifier_mask:
            return False
        if self._expected_key_code is not None:
            return int(event.keyCode()) == int(self._expected_key_code)
        chars = event.charactersIgnoringModifiers()
        return bool(chars) and chars.lower() == self._expected_char


class RumpsNotifier:
    """Deliver notifications through Notification Center."""

    def __init__(self, rumps, store: SettingsStore) -> None:
        self._rumps = rumps
        self._store = store

    def notify(self, title: str, message: str) -> None:
        if not self._store.settings.show_notifications:
            return
        try:
            self._rumps.notification("Elote", title, message, sound=False)
        except Exception as exc:
            logging.debug("Notification unavailable: %s", exc)

    def play_sound(self) -> None:
        try:
            from AppKit import NSBeep  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            logging.debug("Sound unavailable: %s", exc)
            return
        NSBeep()


class EloteMenuApp:
    """Controller for the macOS menu bar workflow."""

    def __init__(self) -> None:
        _require_macos()
        import rumps  # type: ignore

        self._rumps = rumps
        store = SettingsStore()
        self._core = Elote(PasteboardClipboard(), RumpsNotifier(rumps, store), store)
        self._store = store
        self._loop = LoopThread()
        self._hotkey_monitors: list[KeyComboHotkeyMonitor] = []

        self._app = rumps.App("Elote", title=STATE_TITLES[CaptureState.IDLE], quit_button=None)
        self._status_item = rumps.MenuItem("")
        self._process_item = rumps.MenuItem("Process Clipboard", callback=self._process)
        self._auto_item = rumps.MenuItem("Auto Mode", callback=self._toggle_auto_mode)
        self._provider_items: Dict[ProviderKind, object] = {}
        self._prompts_menu = rumps.MenuItem("Prompts")
        self._build_menu()

        self._core.machine.add_listener(self._on_state_changed)
        self._reload_hotkeys()
        self._set_ready_status()

    def run(self) -> None:  # pragma: no cover - interactive
        self._loop.start()
        self._loop.call(self._core.machine.start)
        self._rumps.debug_mode(False)
        self._app.run()

    def _build_menu(self) -> None:
        rumps = self._rumps
        providers = rumps.MenuItem("Provider")
        for kind, adapter in ADAPTERS.items():
            item = rumps.MenuItem(adapter.display_name, callback=self._select_provider)
            self._provider_items[kind] = item
            providers.add(item)

        notifications = rumps.MenuItem("Notification Settings")
        self._show_notifications_item = rumps.MenuItem("Show Notifications", callback=self._toggle_notifications)
        self._sounds_item = rumps.MenuItem("Play Sounds", callback=self._toggle_sounds)
        notifications.add(self._show_notifications_item)
        notifications.add(self._sounds_item)

        self._app.menu = [
            self._status_item,
            rumps.separator,
            self._process_item,
            self._auto_item,
            rumps.separator,
            providers,
            rumps.MenuItem("Set Custom Model…", callback=self._set_custom_model),
            rumps.MenuItem("Set API Key…", callback=self._set_api_key),
            self._prompts_menu,
            notifications,
            rumps.separator,
            rumps.MenuItem("About", callback=self._show_about),
            rumps.MenuItem("Quit", callback=self._quit),
        ]
        self._refresh_menu()

    def _refresh_menu(self) -> None:
        settings = self._store.settings
        current = ProviderKind.parse(settings.provider)
        for kind, item in self._provider_items.items():
            item.state = int(kind is current)
        self._auto_item.state = int(settings.auto_mode_enabled)
        self._show_notifications_item.state = int(settings.show_notifications)
        self._sounds_item.state = int(settings.play_notification_sounds)

        rumps = self._rumps
        self._prompts_menu.clear()
        selected = self._core.prompts.selected
        for prompt in self._core.prompts.list():
            item = rumps.MenuItem(prompt.name, callback=self._make_prompt_selector(prompt.id))
            item.state = int(selected is not None and prompt.id == selected.id)
            self._prompts_menu.add(item)
        self._prompts_menu.add(rumps.separator)
        self._prompts_menu.add(rumps.MenuItem("New Prompt…", callback=self._create_prompt))
        self._prompts_menu.add(rumps.MenuItem("Edit Selected Prompt…", callback=self._edit_prompt))
        self._prompts_menu.add(rumps.MenuItem("Delete Selected Prompt", callback=self._delete_prompt))

    def _reload_hotkeys(self) -> None:
        for monitor in self._hotkey_monitors:
            monitor.stop()
        self._hotkey_monitors = []
        settings = self._store.settings
        bindings = (
            (Hotkey.parse(settings.process_hotkey, fallback=DEFAULT_PROCESS_HOTKEY), self._on_process_hotkey),
            (Hotkey.parse(settings.toggle_auto_mode_hotkey, fallback=DEFAULT_TOGGLE_HOTKEY), self._on_toggle_hotkey),
        )
        for hotkey, callback in bindings:
            try:
                monitor = KeyComboHotkeyMonitor(hotkey, callback)
            except Exception as exc:
                logging.error("Failed to initialise hotkey monitor: %s", exc)
                self._set_status(f"Hotkey error: {exc}")
                continue
            monitor.start()
            self._hotkey_monitors.append(monitor)

    def _on_process_hotkey(self) -> None:
        self._loop.submit(self._core.machine.trigger())

    def _on_toggle_hotkey(self) -> None:
        self._loop.call(self._apply_auto_mode_toggle)

    def _apply_auto_mode_toggle(self) -> None:
        self._core.machine.toggle_auto_mode()
        self._refresh_menu()

    def _process(self, _sender) -> None:
        self._on_process_hotkey()

    def _toggle_auto_mode(self, _sender) -> None:
        self._on_toggle_hotkey()

    def _select_provider(self, sender) -> None:
        kind = ProviderKind.parse(sender.title)
        self._store.update(provider=kind.value)
        self._refresh_menu()
        self._notify("Provider Changed", f"Now using {get_adapter(kind).display_name}.")

    def _set_custom_model(self, _sender) -> None:
        adapter = get_adapter(self._store.settings.provider)
        response = self._ask(
            "Custom Model",
            f"Enter the model identifier for {adapter.display_name} (leave empty for {adapter.default_model})",
            self._store.settings.custom_model,
        )
        if response is not None:
            self._store.update(custom_model=response.strip())

    def _set_api_key(self, _sender) -> None:
        response = self._ask("API Key", "Enter your API key:", self._store.settings.api_key)
        if response is not None:
            self._store.update(api_key=response.strip())
            self._notify("API Key Saved", "Your API key has been stored.")

    def _make_prompt_selector(self, prompt_id: str):
        def select(_sender) -> None:
            prompt = self._core.prompts.select(prompt_id)
            self._refresh_menu()
            self._notify("Prompt Changed", f"Now using prompt: {prompt.name}")

        return select

    def _create_prompt(self, _sender) -> None:
        name = self._ask("New Prompt", "Name for the new prompt:", "")
        if not name:
            return
        text = self._ask("New Prompt", "Instruction text:", "")
        if not text:
            return
        try:
            prompt = self._core.prompts.create(name, text)
        except PromptError as exc:
            self._rumps.alert("Cannot Create Prompt", str(exc))
            return
        self._core.prompts.select(prompt.id)
        self._refresh_menu()

    def _edit_prompt(self, _sender) -> None:
        prompt = self._core.prompts.selected
        if prompt is None:
            self._rumps.alert("No Prompt Selected", "Please select a prompt to edit.")
            return
        name = self._ask("Edit Prompt", "Prompt name:", prompt.name)
        if name is None:
            return
        text = self._ask("Edit Prompt", "Instruction text:", prompt.text)
        if text is None:
            return
        try:
            self._core.prompts.edit(prompt.id, name=name, text=text)
        except PromptError as exc:
            self._rumps.alert("Cannot Edit Prompt", str(exc))
            return
        self._refresh_menu()

    def _delete_prompt(self, _sender) -> None:
        prompt = self._core.prompts.selected
        if prompt is None:
            self._rumps.alert("No Prompt Selected", "Please select a prompt to delete.")
            return
        confirmed = self._rumps.alert(
            "Delete Prompt",
            f"Are you sure you want to delete the prompt '{prompt.name}'?",
            ok="Delete",
            cancel="Cancel",
        )
        if confirmed != 1:
            return
        try:
            self._core.prompts.delete(prompt.id)
        except PromptError as exc:
            self._rumps.alert("Cannot Delete", str(exc))
            return
        self._refresh_menu()

    def _toggle_notifications(self, _sender) -> None:
        self._store.update(show_notifications=not self._store.settings.show_notifications)
        self._refresh_menu()

    def _toggle_sounds(self, _sender) -> None:
        self._store.update(play_notification_sounds=not self._store.settings.play_notification_sounds)
        self._refresh_menu()

    def _ask(self, title: str, message: str, default: str) -> Optional[str]:
        window = self._rumps.Window(
            message=message,
            title=title,
            default_text=default,
            ok="Save",
            cancel="Cancel",
            dimensions=(320, 60),
        )
        response = window.run()
        if not response.clicked:
            return None
        return response.text

    def _on_state_changed(self, state: CaptureState) -> None:
        self._app.title = STATE_TITLES[state]
        if state is CaptureState.PROCESSING:
            self._process_item.title = "Processing…"
            self._set_status("Processing…")
        else:
            self._process_item.title = "Process Clipboard"
            if state is CaptureState.CAPTURED:
                self._set_status("Text captured.")
            else:
                self._set_ready_status()

    def _show_about(self, _sender) -> None:
        self._notify("Elote v0.1.0", "Clipboard text enhancement with OpenAI and Anthropic.")

    def _quit(self, _sender) -> None:
        for monitor in self._hotkey_monitors:
            monitor.stop()
        self._loop.call(self._core.machine.stop)
        self._loop.stop()
        self._rumps.quit_application()

    def _set_ready_status(self) -> None:
        hotkey = Hotkey.parse(self._store.settings.process_hotkey, fallback=DEFAULT_PROCESS_HOTKEY)
        self._set_status(f"Press {hotkey.display} to enhance clipboard text.")

    def _set_status(self, message: str) -> None:
        self._status_item.title = message

    def _notify(self, title: str, message: str) -> None:
        self._core.notifier.notify(title, message)


def run() -> None:
    """Launch the menu bar application."""

    app = EloteMenuApp()
    app.run()


__all__ = ["EloteMenuApp", "run"]
