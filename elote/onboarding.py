from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from .config import ConfigError, SettingsStore, parse_timeout
from .hotkeys import Hotkey
from .models import Settings
from .providers import ADAPTERS, ProviderKind

KEY_URLS = {
    ProviderKind.OPENAI: "https://platform.openai.com/api-keys",
    ProviderKind.ANTHROPIC: "https://console.anthropic.com/settings/keys",
}


def _ask_hotkey(console: Console, label: str, default: str) -> str:
    while True:
        raw = Prompt.ask(label, default=default)
        try:
            return Hotkey.parse(raw).canonical
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")


def _ask_timeout(console: Console, current: float) -> float:
    while True:
        raw = Prompt.ask("Request timeout in seconds", default=f"{current:g}")
        try:
            return parse_timeout(raw)
        except ConfigError as exc:
            console.print(f"[red]{exc}[/red]")


def run_onboarding(store: SettingsStore | None = None) -> Settings:
    console = Console()
    store = store or SettingsStore()
    current = store.settings

    console.clear()

    welcome_text = Text()
    welcome_text.append("🌽 Welcome to Elote!\n\n", style="bold cyan")
    welcome_text.append("Copy text, press a shortcut, paste the improved version.\n", style="dim")

    console.print(Panel(welcome_text, border_style="cyan", expand=False))
    console.print()

    console.print("[bold]Provider[/bold]")
    console.print()
    kinds = list(ADAPTERS)
    for index, kind in enumerate(kinds, start=1):
        adapter = ADAPTERS[kind]
        console.print(f"  {index}. {adapter.display_name} (default model {adapter.default_model})")
    console.print()

    default_choice = str(kinds.index(ProviderKind.parse(current.provider)) + 1)
    choice = Prompt.ask("Select option", choices=[str(i) for i in range(1, len(kinds) + 1)], default=default_choice)
    kind = kinds[int(choice) - 1]

    console.print()
    console.print(f"Enter your {ADAPTERS[kind].display_name} API key:")
    console.print(f"(Get one at {KEY_URLS[kind]})")
    api_key = Prompt.ask("API Key", password=True, default=current.api_key, show_default=False)

    console.print()
    console.print("Custom model id (leave empty to use the provider default):")
    custom_model = Prompt.ask("Model", default=current.custom_model, show_default=bool(current.custom_model))

    console.print()
    console.print("[bold]Shortcuts[/bold]")
    console.print()
    process_hotkey = _ask_hotkey(console, "Process clipboard", current.process_hotkey)
    toggle_hotkey = _ask_hotkey(console, "Toggle auto mode", current.toggle_auto_mode_hotkey)

    console.print()
    console.print("[bold]Auto Mode[/bold]")
    console.print()
    auto_mode = Confirm.ask("Watch the clipboard for new text?", default=current.auto_mode_enabled)
    auto_process = False
    if auto_mode:
        auto_process = Confirm.ask(
            "Process captured text immediately instead of waiting for the shortcut?",
            default=current.auto_process,
        )

    console.print()
    console.print("[bold]Requests[/bold]")
    console.print()
    strict_output = Confirm.ask(
        "Ask the model to return only the enhanced text?", default=current.strict_output
    )
    request_timeout = _ask_timeout(console, current.request_timeout)

    console.print()
    console.print("[bold green]✓ Setup Complete![/bold green]")
    console.print()

    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column(style="cyan")
    summary.add_column()

    summary.add_row("Provider:", ADAPTERS[kind].display_name)
    summary.add_row("Model:", ADAPTERS[kind].resolve_model(custom_model))
    summary.add_row("API key:", "set" if api_key else "[red]missing[/red]")
    summary.add_row("Process shortcut:", Hotkey.parse(process_hotkey).display)
    summary.add_row("Auto mode:", "on" if auto_mode else "off")
    summary.add_row("Timeout:", f"{request_timeout:g} s")

    console.print(Panel(summary, title="Your Configuration", border_style="green"))
    console.print()

    if not Confirm.ask("Save this configuration?", default=True):
        console.print("[yellow]Configuration not saved. Run 'elote setup' to try again.[/yellow]")
        return current

    settings = store.update(
        provider=kind.value,
        api_key=api_key.strip(),
        custom_model=custom_model.strip(),
        process_hotkey=process_hotkey,
        toggle_auto_mode_hotkey=toggle_hotkey,
        auto_mode_enabled=auto_mode,
        auto_process=auto_process,
        strict_output=strict_output,
        request_timeout=request_timeout,
    )
    console.print("[green]Configuration saved to[/green]", store.path)
    console.print()
    console.print("[bold]To start the menu bar app, run:[/bold]")
    console.print("  [cyan]elote daemon[/cyan]")
    console.print()
    console.print("[bold]To process the clipboard once, run:[/bold]")
    console.print("  [cyan]elote process[/cyan]")
    console.print()
    return settings
