"""Deduplicating fetch engine with retry, backoff and timeouts.

One ``FetchCoordinator`` lives for one pipeline invocation. It owns the
registry of in-flight fetches keyed by destination path and the per-path
attempt counters. A path is registered before the first suspension of its
fetch, so concurrent requests for the same file share one download.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from pathlib import Path
from typing import Awaitable, Callable

import aiohttp

from .config import Config
from .errors import MissingRetryDirective, NetworkFailure, RetryExhausted

CHUNK_SIZE = 64 * 1024
PART_SUFFIX = ".part"
TRANSIENT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, NetworkFailure, OSError)


class FetchCoordinator:
    """Registry of in-flight downloads for one pipeline invocation."""

    def __init__(
        self,
        config: Config,
        session: aiohttp.ClientSession,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self.fetching: dict[Path, asyncio.Task[None]] = {}
        self.retries: dict[Path, int] = {}
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def log(self) -> logging.Logger | None:
        return self.config.logger

    def request(self, url: str, dest: Path) -> asyncio.Task[None] | None:
        """Start fetching ``url`` into ``dest`` unless it is on disk or already in flight.

        Returns the task to await, or None when the file already exists.
        Must be called from a running event loop.
        """
        if dest in self.fetching:
            return self.fetching[dest]
        if dest.exists():
            return None
        task = asyncio.ensure_future(self._fetch_with_retries(url, dest))
        self.fetching[dest] = task
        task.add_done_callback(lambda _: self._forget(dest, task))
        return task

    def _forget(self, dest: Path, task: asyncio.Task[None]) -> None:
        if self.fetching.get(dest) is task:
            del self.fetching[dest]

    async def settle(self) -> None:
        """Wait for every registered fetch; the first failure propagates."""
        while self.fetching:
            await asyncio.gather(*self.fetching.values())

    async def _fetch_with_retries(self, url: str, dest: Path) -> None:
        settings = self.config.download
        while True:
            if self.log:
                self.log.info("Downloading %s to %s", url, dest)
            try:
                await self._fetch_with_timeout(url, dest)
                return
            except TRANSIENT_ERRORS as exc:
                attempts = self.retries[dest] = self.retries.get(dest, 0) + 1
                if attempts > settings.max_retries:
                    dest.unlink(missing_ok=True)
                    raise RetryExhausted(url, attempts) from exc
                if self.log:
                    self.log.warning("Failed to download %s, retrying. (error: %r)", url, exc)
                delay_ms = math.floor(self._rng.random() * settings.max_delay_ms)
                await self._sleep(delay_ms / 1000)

    async def _fetch_with_timeout(self, url: str, dest: Path) -> None:
        # Rate-limit waits repeat the same attempt and do not count as failures.
        while True:
            retry_after = await asyncio.wait_for(
                self._fetch_and_write(url, dest), self.config.download.timeout_sec
            )
            if retry_after is None:
                return
            if self.log:
                self.log.warning("Too many fetch requests; the host asked to wait %s seconds.", retry_after)
            await self._sleep(retry_after + 1)

    async def _fetch_and_write(self, url: str, dest: Path) -> float | None:
        """Fetch ``url`` into ``dest``; return the requested wait on 429, else None."""
        async with self.session.get(url) as resp:
            if resp.status == 429:
                return parse_retry_after(url, resp.headers.get("Retry-After"))
            if not 200 <= resp.status < 300:
                raise NetworkFailure(url, resp.status)
            dest.parent.mkdir(parents=True, exist_ok=True)
            # Only a complete body ever appears at dest.
            part = dest.with_name(dest.name + PART_SUFFIX)
            try:
                with part.open("wb") as fh:
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        fh.write(chunk)
                part.replace(dest)
            except BaseException:
                part.unlink(missing_ok=True)
                raise
        return None


def parse_retry_after(url: str, value: str | None) -> float:
    """Seconds requested by a Retry-After header; no default is assumed."""
    try:
        delay = float(value) if value is not None else math.nan
    except ValueError:
        delay = math.nan
    if not math.isfinite(delay) or delay < 0:
        raise MissingRetryDirective(f"{url}: 429 without retry-after header ({value}).")
    return delay
