from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import Button, Footer, Header, Input, Label, Select, Static, Switch

from .config import ConfigError, SettingsStore, parse_timeout
from .hotkeys import Hotkey
from .prompts import PromptStore
from .providers import ADAPTERS


class SettingsApp(App):
    CSS = """
    Screen {
        align: center middle;
    }

    #settings-container {
        width: 76;
        height: auto;
        border: solid $primary;
        background: $surface;
        padding: 1 2;
    }

    .section-title {
        text-style: bold;
        color: $accent;
        margin: 1 0;
    }

    .field-row {
        height: 3;
        margin: 0 0 0 2;
    }

    .field-label {
        width: 24;
        content-align: left middle;
    }

    .field-input {
        width: 36;
    }

    #button-container {
        height: 3;
        margin: 1 0 0 0;
        align: center middle;
    }

    Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+c", "quit", "Quit"),
    ]

    def __init__(self, store: SettingsStore | None = None):
        super().__init__()
        self.store = store or SettingsStore()
        self.prompts = PromptStore(self.store)
        self.settings = self.store.settings

    def compose(self) -> ComposeResult:
        yield Header()

        with Container(id="settings-container"):
            yield Static("⚙️  Elote Settings", classes="section-title")

            yield Static("Provider", classes="section-title")
            with Horizontal(classes="field-row"):
                yield Label("Provider:", classes="field-label")
                yield Select(
                    options=[(adapter.display_name, kind.value) for kind, adapter in ADAPTERS.items()],
                    value=self.settings.provider,
                    id="provider",
                    allow_blank=False,
                )

            with Horizontal(classes="field-row"):
                yield Label("Custom Model:", classes="field-label")
                yield Input(
                    value=self.settings.custom_model,
                    placeholder="provider default",
                    id="custom_model",
                    classes="field-input",
                )

            with Horizontal(classes="field-row"):
                yield Label("API Key:", classes="field-label")
                yield Input(
                    value=self.settings.api_key,
                    placeholder="sk-...",
                    password=True,
                    id="api_key",
                    classes="field-input",
                )

            with Horizontal(classes="field-row"):
                yield Label("Prompt:", classes="field-label")
                selected = self.prompts.selected
                yield Select(
                    options=[(prompt.name, prompt.id) for prompt in self.prompts.list()],
                    value=selected.id if selected is not None else Select.BLANK,
                    id="prompt",
                    allow_blank=False,
                )

            yield Static("Shortcuts", classes="section-title")
            with Horizontal(classes="field-row"):
                yield Label("Process Clipboard:", classes="field-label")
                yield Input(value=self.settings.process_hotkey, id="process_hotkey", classes="field-input")

            with Horizontal(classes="field-row"):
                yield Label("Toggle Auto Mode:", classes="field-label")
                yield Input(
                    value=self.settings.toggle_auto_mode_hotkey,
                    id="toggle_auto_mode_hotkey",
                    classes="field-input",
                )

            yield Static("Requests", classes="section-title")
            with Horizontal(classes="field-row"):
                yield Label("Request Timeout (s):", classes="field-label")
                yield Input(
                    value=f"{self.settings.request_timeout:g}",
                    id="request_timeout",
                    classes="field-input",
                )

            yield Static("Behaviour", classes="section-title")
            for field_id, label in (
                ("auto_mode_enabled", "Auto Mode:"),
                ("auto_process", "Process Immediately:"),
                ("strict_output", "Strict Output:"),
                ("show_notifications", "Notifications:"),
                ("play_notification_sounds", "Sounds:"),
                ("start_at_login", "Start at Login:"),
            ):
                with Horizontal(classes="field-row"):
                    yield Label(label, classes="field-label")
                    yield Switch(value=getattr(self.settings, field_id), id=field_id)

            with Horizontal(id="button-container"):
                yield Button("Save", variant="primary", id="save-button")
                yield Button("Cancel", variant="default", id="cancel-button")

        yield Footer()

    def action_save(self) -> None:
        self.save_settings()

    def action_cancel(self) -> None:
        self.exit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-button":
            self.save_settings()
        elif event.button.id == "cancel-button":
            self.exit()

    def save_settings(self) -> None:
        try:
            process_hotkey = Hotkey.parse(self.query_one("#process_hotkey", Input).value)
            toggle_hotkey = Hotkey.parse(self.query_one("#toggle_auto_mode_hotkey", Input).value)
        except ValueError as exc:
            self.notify(f"Invalid shortcut: {exc}", severity="error")
            return
        try:
            timeout = parse_timeout(self.query_one("#request_timeout", Input).value)
        except ConfigError as exc:
            self.notify(str(exc), severity="error")
            return

        updates = {
            "provider": str(self.query_one("#provider", Select).value),
            "custom_model": self.query_one("#custom_model", Input).value.strip(),
            "api_key": self.query_one("#api_key", Input).value.strip(),
            "process_hotkey": process_hotkey.canonical,
            "toggle_auto_mode_hotkey": toggle_hotkey.canonical,
            "request_timeout": timeout,
        }
        for field_id in (
            "auto_mode_enabled",
            "auto_process",
            "strict_output",
            "show_notifications",
            "play_notification_sounds",
            "start_at_login",
        ):
            updates[field_id] = self.query_one(f"#{field_id}", Switch).value

        self.store.update(**updates)
        prompt_id = self.query_one("#prompt", Select).value
        if isinstance(prompt_id, str):
            self.prompts.select(prompt_id)
        self.notify(f"Settings saved to {self.store.path}", severity="information")
        self.exit()


def show_settings_ui() -> None:
    app = SettingsApp()
    app.run()
