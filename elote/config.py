"""Persisted configuration management."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Callable, Optional

from .models import Settings

CONFIG_PATH = (Path.home() / ".elote" / "config.json").expanduser()

_KNOWN_KEYS = {f.name for f in fields(Settings)}


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or saved."""


def parse_timeout(raw: Any) -> float:
    """Return ``raw`` as a positive number of seconds."""

    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout: {raw!r}") from exc
    if not value > 0:
        raise ConfigError("Timeout must be greater than zero seconds.")
    return value


def _read(path: Path) -> Settings:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Configuration file must contain a JSON object.")
    unknown = set(payload) - _KNOWN_KEYS
    if unknown:
        logging.debug("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))
    try:
        return Settings.from_dict({k: v for k, v in payload.items() if k in _KNOWN_KEYS})
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration file: {exc}") from exc


def _write(path: Path, settings: Settings) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")


class SettingsStore:
    """Single-writer owner of the settings file.

    Every mutation goes through :meth:`update` (or :meth:`mutate`), which holds
    the lock for the whole read-modify-persist sequence and writes the file
    immediately. A missing file is replaced by defaults; a corrupt file is
    logged and defaults are used in memory. Write failures are logged and the
    in-memory value stays authoritative.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._settings: Optional[Settings] = None

    @property
    def path(self) -> Path:
        return self._path or CONFIG_PATH

    @property
    def settings(self) -> Settings:
        with self._lock:
            if self._settings is None:
                self._settings = self.load()
            return self._settings

    def load(self) -> Settings:
        with self._lock:
            path = self.path
            if not path.exists():
                settings = Settings()
                self._settings = settings
                self.save(settings)
                return settings
            try:
                settings = _read(path)
            except (ConfigError, OSError) as exc:
                logging.warning("Using default settings, %s could not be loaded: %s", path, exc)
                settings = Settings()
            self._settings = settings
            return settings

    def save(self, settings: Optional[Settings] = None) -> None:
        with self._lock:
            if settings is not None:
                self._settings = settings
            try:
                _write(self.path, self.settings)
            except OSError as exc:
                logging.error("Failed to save settings to %s: %s", self.path, exc)

    def update(self, **kwargs: Any) -> Settings:
        for key in kwargs:
            if key not in _KNOWN_KEYS:
                raise ConfigError(f"Unknown configuration key: {key}")

        def apply(settings: Settings) -> None:
            for key, value in kwargs.items():
                setattr(settings, key, value)

        return self.mutate(apply)

    def mutate(self, func: Callable[[Settings], Any]) -> Settings:
        with self._lock:
            settings = self.settings
            func(settings)
            self.save()
            return settings

