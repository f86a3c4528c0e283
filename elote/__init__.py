"""Top-level package for elote."""

from . import capture, config, pipeline, prompts, providers

__all__ = ["capture", "config", "pipeline", "prompts", "providers"]

try:  # pragma: no cover - optional dependency
    from . import menubar as menubar  # type: ignore
except Exception:  # noqa: BLE001 - optional dependency failure is acceptable
    menubar = None  # type: ignore
else:
    __all__.append("menubar")
