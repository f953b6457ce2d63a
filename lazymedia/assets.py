"""Asset records passed between pipeline stages.

Each stage derives a new record from the previous one by adding fields:
captured -> downloaded -> encoded -> built. Records are frozen so no stage
can rewrite what an earlier one produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, TypeVar

from .errors import MalformedSourceReference

A = TypeVar("A", bound="CapturedAsset")


class AssetType(str, Enum):
    IMAGE = "image"
    ANIMATION = "animation"
    VIDEO = "video"
    YOUTUBE = "youtube"


@dataclass(frozen=True, slots=True)
class MediaInfo:
    """Natural dimensions of a source file."""

    width: int
    height: int


@dataclass(frozen=True, slots=True)
class CapturedAsset:
    """Media reference discovered in a source document."""

    source_url: str
    type: AssetType
    title: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    def extend(self, cls: type[A], **values: Any) -> A:
        """Return a ``cls`` record carrying this record's fields plus ``values``."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(values)
        return cls(**current)


@dataclass(frozen=True, slots=True)
class DownloadedAsset(CapturedAsset):
    """Captured asset with its local file location resolved."""

    source_path: Path | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class EncodedAsset(DownloadedAsset):
    """Downloaded asset plus the artifacts written by the encoder."""

    encoded_path: Path | None = None
    encoded_2x_path: Path | None = None
    poster_path: Path | None = None
    source_info: MediaInfo | None = None


@dataclass(frozen=True, slots=True)
class BuiltAsset(EncodedAsset):
    """Encoded asset with the markup that replaces its source syntax."""

    html: str = ""


_PATH_FIELDS = ("source_path", "encoded_path", "encoded_2x_path", "poster_path")


def parse_asset(data: Mapping[str, Any], cls: type[A] = CapturedAsset) -> A:
    """Build an asset record of type ``cls`` from a plain mapping."""
    if not isinstance(data, Mapping):
        raise MalformedSourceReference(f"asset entry must be a mapping, got {data!r}")
    source_url = data.get("source_url")
    if not isinstance(source_url, str) or not source_url:
        raise MalformedSourceReference(f"asset entry without source_url: {data!r}")
    try:
        asset_type = AssetType(data.get("type"))
    except ValueError as exc:
        raise MalformedSourceReference(f"{source_url}: unknown asset type {data.get('type')!r}") from exc

    known = {f.name for f in fields(cls)}
    values: dict[str, Any] = {k: v for k, v in data.items() if k in known}
    values["source_url"] = source_url
    values["type"] = asset_type
    values["meta"] = dict(data.get("meta") or {})
    for name in _PATH_FIELDS:
        if name in known and values.get(name):
            values[name] = Path(values[name])
    info = values.get("source_info")
    if isinstance(info, Mapping):
        values["source_info"] = MediaInfo(width=int(info["width"]), height=int(info["height"]))
    return cls(**values)


def asset_to_dict(asset: CapturedAsset) -> dict[str, Any]:
    """Convert a record to JSON-friendly primitives, skipping empty fields."""
    out: dict[str, Any] = {}
    for f in fields(asset):
        value = getattr(asset, f.name)
        if value is None:
            continue
        if isinstance(value, AssetType):
            value = value.value
        elif isinstance(value, Path):
            value = value.as_posix()
        elif isinstance(value, MediaInfo):
            value = {"width": value.width, "height": value.height}
        elif isinstance(value, Mapping):
            if not value:
                continue
            value = dict(value)
        out[f.name] = value
    return out
