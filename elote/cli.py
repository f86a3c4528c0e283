"""Command line interface for the elote application."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Dict, Optional, Set

import typer

from .app import Elote
from .capture import CaptureState
from .clipboard import system_clipboard
from .config import ConfigError, SettingsStore, parse_timeout
from .errors import EloteError
from .hotkeys import Hotkey
from .network import is_network_reachable
from .notifications import ConsoleNotifier
from .prompts import PromptError, PromptStore
from .providers import ProviderKind, get_adapter

app = typer.Typer(add_completion=False, help="Enhance clipboard text with OpenAI or Anthropic models.")
prompts_app = typer.Typer(help="Manage processing prompts.")
app.add_typer(prompts_app, name="prompts")


def _mask(secret: str) -> str:
    if not secret:
        return ""
    return secret[:4] + "…" + secret[-4:] if len(secret) > 12 else "****"


def _build_core() -> Elote:
    store = SettingsStore()
    return Elote(system_clipboard(), ConsoleNotifier(store), store)


def _validate_hotkey(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return Hotkey.parse(value).canonical
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    daemon: bool = typer.Option(False, "--daemon", "-d", help="Launch the menu bar daemon"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    if version:
        typer.echo("elote v0.1.0")
        raise typer.Exit()

    if daemon:
        if ctx.invoked_subcommand is None:
            ctx.invoke(daemon_command)
        return

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def process(
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Process this text instead of the clipboard."),
) -> None:
    """Enhance the clipboard text (or --text) and copy the result back."""

    core = _build_core()

    if text is not None:
        try:
            result = asyncio.run(core.pipeline.process(text))
        except EloteError as exc:
            typer.secho(f"{exc.title}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(result)
        return

    result = asyncio.run(core.machine.trigger())
    if result is None:
        raise typer.Exit(code=1)
    typer.echo(result)


@app.command()
def watch(
    auto_process: bool = typer.Option(
        True,
        "--process/--notify-only",
        help="Process every new clipboard capture, or only report captures.",
    ),
) -> None:
    """Watch the clipboard in the foreground until interrupted."""

    core = _build_core()
    typer.secho("Watching the clipboard. Press Ctrl+C to stop.", fg=typer.colors.BLUE)
    try:
        asyncio.run(_watch(core, auto_process))
    except KeyboardInterrupt:
        typer.secho("\nStopped watching.", fg=typer.colors.BLUE)


async def _watch(core: Elote, auto_process: bool) -> None:
    loop = asyncio.get_running_loop()
    tasks: Set[asyncio.Task] = set()
    machine = core.machine

    def on_state(state: CaptureState) -> None:
        if state is CaptureState.CAPTURED:
            if auto_process:
                task = loop.create_task(machine.trigger())
                tasks.add(task)
                task.add_done_callback(tasks.discard)
            else:
                typer.echo(f"Captured: {machine.captured_text[:60]!r}")
        elif state is CaptureState.SUCCEEDED and machine.last_result is not None:
            typer.echo(machine.last_result)

    machine.add_listener(on_state)
    machine.monitor.start()
    try:
        await asyncio.Event().wait()
    finally:
        machine.stop()


@app.command()
def config(
    api_key: Optional[str] = typer.Option(None, help="API key for the selected provider."),
    provider: Optional[ProviderKind] = typer.Option(None, case_sensitive=False, help="Provider to use."),
    model: Optional[str] = typer.Option(None, help="Custom model id (empty string for the provider default)."),
    auto_mode: Optional[bool] = typer.Option(None, "--auto-mode/--no-auto-mode", help="Watch the clipboard."),
    auto_process: Optional[bool] = typer.Option(
        None, "--auto-process/--no-auto-process", help="Process captures immediately in auto mode."
    ),
    strict_output: Optional[bool] = typer.Option(
        None, "--strict-output/--no-strict-output", help="Ask the model to return only the enhanced text."
    ),
    notifications: Optional[bool] = typer.Option(None, "--notifications/--no-notifications"),
    sounds: Optional[bool] = typer.Option(None, "--sounds/--no-sounds"),
    process_hotkey: Optional[str] = typer.Option(None, help="Shortcut that processes the clipboard."),
    toggle_hotkey: Optional[str] = typer.Option(None, help="Shortcut that toggles auto mode."),
    start_at_login: Optional[bool] = typer.Option(None, "--start-at-login/--no-start-at-login"),
    timeout: Optional[float] = typer.Option(None, help="HTTP timeout (seconds) for provider calls."),
    show: bool = typer.Option(False, "--show", help="Display the active configuration."),
) -> None:
    """Update or inspect configuration settings."""

    updates: Dict[str, object] = {
        key: value
        for key, value in {
            "api_key": api_key,
            "provider": provider.value if provider is not None else None,
            "custom_model": model,
            "auto_mode_enabled": auto_mode,
            "auto_process": auto_process,
            "strict_output": strict_output,
            "show_notifications": notifications,
            "play_notification_sounds": sounds,
            "process_hotkey": _validate_hotkey(process_hotkey),
            "toggle_auto_mode_hotkey": _validate_hotkey(toggle_hotkey),
            "start_at_login": start_at_login,
        }.items()
        if value is not None
    }

    if timeout is not None:
        try:
            updates["request_timeout"] = parse_timeout(timeout)
        except ConfigError as exc:
            raise typer.BadParameter(str(exc), param_hint="--timeout") from exc

    store = SettingsStore()
    if show or not updates:
        payload = asdict(store.settings)
        payload["api_key"] = _mask(payload["api_key"])
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    try:
        store.update(**updates)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho("Configuration updated.", fg=typer.colors.BLUE)


@app.command()
def login(
    api_key: str = typer.Option(
        ...,
        "--api-key",
        help="API key for the selected provider.",
        prompt=True,
        hide_input=True,
    ),
) -> None:
    """Persist the API key used for provider requests."""

    SettingsStore().update(api_key=api_key.strip())
    typer.secho("API key stored.", fg=typer.colors.BLUE)


@app.command()
def health() -> None:
    """Check connectivity and configuration for the selected provider."""

    settings = SettingsStore().settings
    adapter = get_adapter(settings.provider)
    typer.echo(f"Provider: {adapter.display_name}")
    typer.echo(f"Model: {adapter.resolve_model(settings.custom_model)}")
    typer.echo(f"API key: {'set' if settings.api_key else 'missing'}")
    if not is_network_reachable(adapter.endpoint):
        typer.secho(f"Cannot reach {adapter.endpoint}.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo("Network: reachable")


@prompts_app.command("list")
def prompts_list() -> None:
    """List stored prompts."""

    store = PromptStore(SettingsStore())
    selected = store.selected
    header = f"{'':<2}{'ID':<10}  {'Name':<24}  {'Text':<40}"
    typer.echo(header)
    typer.echo("-" * len(header))
    for prompt in store.list():
        marker = "*" if selected is not None and prompt.id == selected.id else ""
        preview = prompt.text if len(prompt.text) <= 40 else prompt.text[:39] + "…"
        typer.echo(f"{marker:<2}{prompt.id[:8]:<10}  {prompt.name:<24}  {preview:<40}")


@prompts_app.command("add")
def prompts_add(
    name: str = typer.Argument(..., help="Display name of the prompt."),
    text: str = typer.Argument(..., help="Instruction text sent ahead of the clipboard text."),
    select: bool = typer.Option(False, "--select", help="Make the new prompt the active one."),
) -> None:
    """Create a new prompt."""

    store = PromptStore(SettingsStore())
    try:
        prompt = store.create(name, text)
        if select:
            store.select(prompt.id)
    except PromptError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Created prompt {prompt.name} ({prompt.id[:8]}).", fg=typer.colors.BLUE)


@prompts_app.command("edit")
def prompts_edit(
    reference: str = typer.Argument(..., help="Prompt id, id prefix, or name."),
    name: Optional[str] = typer.Option(None, "--name", help="New display name."),
    text: Optional[str] = typer.Option(None, "--text", help="New instruction text."),
) -> None:
    """Rename a prompt or change its text."""

    store = PromptStore(SettingsStore())
    try:
        prompt = store.edit(store.find(reference).id, name=name, text=text)
    except PromptError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Updated prompt {prompt.name}.", fg=typer.colors.BLUE)


@prompts_app.command("delete")
def prompts_delete(
    reference: str = typer.Argument(..., help="Prompt id, id prefix, or name."),
) -> None:
    """Delete a prompt. The last remaining prompt cannot be deleted."""

    store = PromptStore(SettingsStore())
    try:
        prompt = store.find(reference)
        store.delete(prompt.id)
    except PromptError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Deleted prompt {prompt.name}.", fg=typer.colors.BLUE)


@prompts_app.command("select")
def prompts_select(
    reference: str = typer.Argument(..., help="Prompt id, id prefix, or name."),
) -> None:
    """Choose the prompt used for processing."""

    store = PromptStore(SettingsStore())
    try:
        prompt = store.select(store.find(reference).id)
    except PromptError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Now using prompt: {prompt.name}", fg=typer.colors.BLUE)


@app.command(name="daemon")
def daemon_command() -> None:  # pragma: no cover - interactive
    """Launch the macOS menu bar daemon."""

    try:
        from .menubar import run as run_menubar
    except ImportError as exc:
        typer.secho(
            "Missing dependencies for daemon mode. Install with `pip install "
            '"elote[mac]"` or `pip install \'.[mac]\'` if you are using a local checkout.',
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1) from exc

    try:
        run_menubar()
    except RuntimeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def setup() -> None:  # pragma: no cover - interactive
    """Run the interactive setup wizard."""

    from .onboarding import run_onboarding

    try:
        run_onboarding()
    except Exception as exc:
        typer.secho(f"Setup failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def settings() -> None:  # pragma: no cover - interactive
    """Open the interactive settings configuration."""

    from .settings_ui import show_settings_ui

    try:
        show_settings_ui()
    except Exception as exc:
        typer.secho(f"Settings UI failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":  # pragma: no cover
    app()
