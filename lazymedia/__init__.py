"""Download and markup stages of a build-time media asset pipeline."""

from __future__ import annotations

from .assets import AssetType, BuiltAsset, CapturedAsset, DownloadedAsset, EncodedAsset, MediaInfo
from .build import build
from .config import Config, load_config
from .download import download
from .fetch import FetchCoordinator

__all__ = [
    "AssetType",
    "BuiltAsset",
    "CapturedAsset",
    "Config",
    "DownloadedAsset",
    "EncodedAsset",
    "FetchCoordinator",
    "MediaInfo",
    "build",
    "download",
    "load_config",
]
