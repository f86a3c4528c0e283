"""Notification sinks used to present outcomes to the user."""

from __future__ import annotations

from typing import Protocol

import typer

from .config import SettingsStore


class Notifier(Protocol):
    def notify(self, title: str, message: str) -> None:
        """Present a short message to the user."""

    def play_sound(self) -> None:
        """Play the completion sound."""


class ConsoleNotifier:
    """Print notifications to the terminal, honouring the notification settings."""

    def __init__(self, store: SettingsStore) -> None:
        self._store = store

    def notify(self, title: str, message: str) -> None:
        if not self._store.settings.show_notifications:
            return
        color = typer.colors.RED if "error" in title.lower() or "unavailable" in title.lower() else typer.colors.BLUE
        typer.secho(f"{title}: {message}", fg=color, err=True)

    def play_sound(self) -> None:
        if self._store.settings.play_notification_sounds:
            typer.echo("\a", nl=False, err=True)
