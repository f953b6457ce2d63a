"""Build stage: render HTML for encoded assets.

Video sources are emitted as ``data-src`` attributes. The browser runtime
copies them into ``src`` once the video container scrolls into view, so
nothing is fetched before that.
"""

from __future__ import annotations

import math
from html import escape
from typing import Callable, Mapping, Sequence

from .assets import AssetType, BuiltAsset, EncodedAsset, MediaInfo
from .config import Config
from .errors import MalformedSourceReference
from .paths import serve_url

Renderer = Callable[[EncodedAsset, Config], str]

YOUTUBE_MARKER = "youtube.com/watch?v="
YOUTUBE_EMBED = "https://www.youtube-nocookie.com/embed/"


def build(assets: Sequence[EncodedAsset], config: Config) -> list[BuiltAsset]:
    """Render markup for each asset, dispatching on its type."""
    renderers = resolve_renderers(config.renderers)
    return [asset.extend(BuiltAsset, html=renderers[asset.type](asset, config)) for asset in assets]


def resolve_renderers(overrides: Mapping[AssetType, Renderer]) -> dict[AssetType, Renderer]:
    """Builtin renderers with ``overrides`` applied."""
    unknown = [key for key in overrides if not isinstance(key, AssetType)]
    if unknown:
        raise ValueError(f"renderer overrides for unknown asset types: {unknown}")
    return {**DEFAULT_RENDERERS, **overrides}


def build_image(asset: EncodedAsset, config: Config) -> str:
    return _build_picture(asset, config, config.class_names.image)


def build_animation(asset: EncodedAsset, config: Config) -> str:
    return _build_picture(asset, config, config.class_names.animation)


def _build_picture(asset: EncodedAsset, config: Config, class_name: str) -> str:
    src = serve_url(asset.source_url, asset.source_url, config)
    alt = escape(asset.title or "")
    size = build_size(asset.source_info, config.width)
    lazy = "" if asset.meta.get("lazy") is False else 'loading="lazy" decoding="async"'
    source = ""
    if asset.encoded_path:
        srcset = f"{serve_url(asset.encoded_path, asset.source_url, config)} 1x"
        if asset.encoded_2x_path:
            srcset += f", {serve_url(asset.encoded_2x_path, asset.source_url, config)} 2x"
        source = f'<source srcset="{srcset}" type="image/avif"/>'
    return f"""
<picture>
    {source}
    <img src="{src}" alt="{alt}" class="{class_name}" {size} {lazy}/>
</picture>"""


def build_video(asset: EncodedAsset, config: Config) -> str:
    src = serve_url(asset.source_url, asset.source_url, config)
    poster = serve_url(asset.poster_path, asset.source_url, config) if asset.poster_path else config.poster
    size = build_size(asset.source_info, config.width)
    encoded = ""
    if asset.encoded_path:
        encoded_src = serve_url(asset.encoded_path, asset.source_url, config)
        encoded = f'<source data-src="{encoded_src}" type="video/mp4; codecs=av01.0.05M.08">'
    return f"""
<video class="{config.class_names.video}" preload="none" loop autoplay muted playsinline poster="{poster}" {size}>
    {encoded}
    <source data-src="{src}" type="video/mp4">
</video>"""


def build_youtube(asset: EncodedAsset, config: Config) -> str:
    title = escape(asset.title or "")
    source = YOUTUBE_EMBED + youtube_id(asset.source_url)
    return f"""
<span class="{config.class_names.youtube}">
    <iframe title="{title}" src="{source}" allowfullscreen></iframe>
</span>"""


def youtube_id(url: str) -> str:
    """Video identifier of a ``youtube.com/watch?v=<id>`` URL."""
    _, marker, rest = url.partition(YOUTUBE_MARKER)
    video_id = rest.split("&", 1)[0]
    if not marker or not video_id:
        raise MalformedSourceReference(f"{url}: expected a youtube.com/watch?v=<id> URL")
    return video_id


def build_size(info: MediaInfo | None, max_width: int | None) -> str:
    """Width/height attributes scaled down to ``max_width``; empty without info."""
    if info is None:
        return ""
    scale = max_width / info.width if max_width and info.width > max_width else 1
    return f'width="{math.floor(info.width * scale)}" height="{math.floor(info.height * scale)}"'


DEFAULT_RENDERERS: dict[AssetType, Renderer] = {
    AssetType.IMAGE: build_image,
    AssetType.ANIMATION: build_animation,
    AssetType.VIDEO: build_video,
    AssetType.YOUTUBE: build_youtube,
}
