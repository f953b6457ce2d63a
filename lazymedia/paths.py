"""Mapping from asset source URLs to local files and public URLs.

The download stage writes files where ``source_path`` says and the build
stage links them where ``serve_url`` says; both only ever relocate
directories and keep the artifact's own file name.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

from .config import Config


def is_served(source_url: str, config: Config) -> bool:
    """True when the URL belongs to the site's own document tree."""
    return source_url.startswith(config.serve)


def local_root(source_url: str, config: Config) -> Path:
    """Directory the asset's files are stored under."""
    if not is_served(source_url, config):
        return Path(config.local) / config.remote
    end = len(source_url) - len(posixpath.basename(source_url))
    subdir = source_url[len(config.serve) : end].strip("/")
    return Path(config.local) / subdir if subdir else Path(config.local)


def serve_root(source_url: str, config: Config) -> str:
    """URL directory the asset's files are served from."""
    if is_served(source_url, config):
        return source_url[: source_url.rfind("/")]
    return posixpath.join(config.serve, config.remote)


def source_path(source_url: str, config: Config) -> Path:
    """Absolute destination of the downloaded source file."""
    return Path(os.path.abspath(local_root(source_url, config) / posixpath.basename(source_url)))


def serve_url(artifact: str | Path, source_url: str, config: Config) -> str:
    """Public URL of ``artifact`` (source URL or encoder output) for the given asset."""
    name = posixpath.basename(artifact) if isinstance(artifact, str) else artifact.name
    return posixpath.join(serve_root(source_url, config), name)
