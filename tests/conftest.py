"""Shared fixtures: an aiohttp-like fake session and a recording sleep."""

from __future__ import annotations

import asyncio
import random
from pathlib import Path
from typing import Any, Sequence

import pytest

from lazymedia.assets import AssetType, CapturedAsset
from lazymedia.config import Config, DownloadConfig
from lazymedia.download import download
from lazymedia.fetch import FetchCoordinator

HANG = "hang"


class FakeContent:
    def __init__(self, body: bytes, error: BaseException | None = None, hang: bool = False) -> None:
        self._body = body
        self._error = error
        self._hang = hang

    async def iter_chunked(self, size: int):
        for start in range(0, len(self._body), size):
            yield self._body[start : start + size]
        if self._error is not None:
            raise self._error
        if self._hang:
            await asyncio.sleep(3600)


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        body: bytes = b"data",
        headers: dict[str, str] | None = None,
        error: BaseException | None = None,
        hang: bool = False,
        delay: float = 0,
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self.content = FakeContent(body, error, hang)
        self.delay = delay


class _FakeRequest:
    def __init__(self, step: Any) -> None:
        self._step = step

    async def __aenter__(self) -> FakeResponse:
        await asyncio.sleep(0)
        if isinstance(self._step, BaseException):
            raise self._step
        if self._step == HANG:
            await asyncio.sleep(3600)
        await asyncio.sleep(self._step.delay)
        return self._step

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeSession:
    """Replays scripted responses per URL; the last step repeats forever."""

    def __init__(self, script: dict[str, Sequence[Any]] | None = None) -> None:
        self.script = {url: list(steps) for url, steps in (script or {}).items()}
        self.calls: list[str] = []

    def get(self, url: str) -> _FakeRequest:
        self.calls.append(url)
        steps = self.script.get(url) or [FakeResponse()]
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        return _FakeRequest(step)

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


def make_config(root: Path, **download: Any) -> Config:
    """Config rooted at ``root`` with ``/assets/`` as the served prefix."""
    return Config(
        local=str(root / "cache"),
        serve="/assets/",
        poster="/assets/poster.png",
        download=DownloadConfig(**{"timeout_sec": 5.0, "max_retries": 2, "max_delay_ms": 100, **download}),
    )


def image(url: str, **kwargs: Any) -> CapturedAsset:
    return CapturedAsset(source_url=url, type=AssetType.IMAGE, **kwargs)


def run_download(config: Config, session: FakeSession, *batches: Sequence[CapturedAsset], sleep: SleepRecorder | None = None):
    """Run one download() per batch concurrently on a shared coordinator."""

    async def go():
        coordinator = FetchCoordinator(config, session, sleep=sleep or SleepRecorder(), rng=random.Random(0))
        results = await asyncio.gather(*(download(batch, coordinator) for batch in batches))
        return results, coordinator

    return asyncio.run(go())


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return make_config(tmp_path)
