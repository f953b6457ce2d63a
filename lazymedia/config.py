"""Pipeline configuration and its YAML loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from .assets import AssetType

LOGGER_NAME = "lazymedia"


@dataclass(slots=True)
class ClassNames:
    """CSS class names attached to generated markup, per asset kind."""

    image: str = "lazymedia-image"
    animation: str = "lazymedia-animation"
    video: str = "lazymedia-video"
    youtube: str = "lazymedia-youtube"


@dataclass(slots=True)
class DownloadConfig:
    """Fetch engine tuning."""

    timeout_sec: float = 30.0
    max_retries: int = 3
    max_delay_ms: int = 6000
    fail_fast: bool = True


@dataclass(slots=True)
class Config:
    """Runtime configuration loaded from config.yaml."""

    local: str = "public/media"
    remote: str = "remote"
    serve: str = "/media/"
    poster: str = "/media/poster.png"
    width: int | None = None
    class_names: ClassNames = field(default_factory=ClassNames)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    # Overrides of the builtin renderers, keyed by asset kind.
    renderers: dict[AssetType, Callable[..., str]] = field(default_factory=dict)
    logger: logging.Logger | None = field(default_factory=lambda: logging.getLogger(LOGGER_NAME))


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config.yaml: '{key}' must be a mapping")
    return value


def load_config(config_path: Path) -> Config:
    """Load config.yaml and apply defaults for missing keys."""
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must be a mapping")

    defaults = Config()
    classes = _section(data, "class_names")
    dl = _section(data, "download")
    width = data.get("width")

    return Config(
        local=str(data.get("local", defaults.local)),
        remote=str(data.get("remote", defaults.remote)),
        serve=str(data.get("serve", defaults.serve)),
        poster=str(data.get("poster", defaults.poster)),
        width=int(width) if width is not None else None,
        class_names=ClassNames(
            image=str(classes.get("image", defaults.class_names.image)),
            animation=str(classes.get("animation", defaults.class_names.animation)),
            video=str(classes.get("video", defaults.class_names.video)),
            youtube=str(classes.get("youtube", defaults.class_names.youtube)),
        ),
        download=DownloadConfig(
            timeout_sec=float(dl.get("timeout_sec", defaults.download.timeout_sec)),
            max_retries=int(dl.get("max_retries", defaults.download.max_retries)),
            max_delay_ms=int(dl.get("max_delay_ms", defaults.download.max_delay_ms)),
            fail_fast=bool(dl.get("fail_fast", defaults.download.fail_fast)),
        ),
    )
