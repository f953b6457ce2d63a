"""Download stage: resolve local paths for captured assets and fetch their sources."""

from __future__ import annotations

import asyncio
from typing import Sequence

from .assets import AssetType, CapturedAsset, DownloadedAsset
from .fetch import FetchCoordinator
from .paths import source_path


async def download(assets: Sequence[CapturedAsset], coordinator: FetchCoordinator) -> list[DownloadedAsset]:
    """Fetch source files of ``assets``; return them with ``source_path`` resolved.

    Output order mirrors input order. YouTube assets are never fetched.
    With ``download.fail_fast`` the first terminal failure aborts the whole
    batch; otherwise each failed asset carries its error message instead.
    """
    config = coordinator.config
    downloaded: list[DownloadedAsset] = []
    pending: list[tuple[int, asyncio.Task[None]]] = []

    for asset in assets:
        if asset.type is AssetType.YOUTUBE:
            downloaded.append(asset.extend(DownloadedAsset, source_path=None))
            continue
        path = source_path(asset.source_url, config)
        task = coordinator.request(asset.source_url, path)
        if task is not None:
            pending.append((len(downloaded), task))
        downloaded.append(asset.extend(DownloadedAsset, source_path=path))

    if config.download.fail_fast:
        await asyncio.gather(*(task for _, task in pending))
        await coordinator.settle()
        return downloaded

    results = await asyncio.gather(*(task for _, task in pending), return_exceptions=True)
    for (index, _), result in zip(pending, results):
        if isinstance(result, Exception):
            asset = downloaded[index]
            if config.logger:
                config.logger.error("Giving up on %s: %s", asset.source_url, result)
            downloaded[index] = asset.extend(DownloadedAsset, error=str(result))
    # Fetches started by other callers report their failures to those callers.
    while coordinator.fetching:
        await asyncio.gather(*coordinator.fetching.values(), return_exceptions=True)
    return downloaded
