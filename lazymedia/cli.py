"""Run the download or build stage over an asset list.

Commands:
download) Fetch sources of captured assets into the local cache directory.
build)    Render markup for encoded assets.

Both read an asset list (YAML or JSON, a list of mappings) and write the
resulting records as a JSON manifest.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Sequence

import aiohttp
import yaml

from .assets import CapturedAsset, EncodedAsset, asset_to_dict, parse_asset
from .build import build
from .config import Config, load_config
from .download import download
from .errors import LazyMediaError
from .fetch import FetchCoordinator


def load_assets(path: Path, cls: type[CapturedAsset]) -> list[Any]:
    """Load an asset list file into records of type ``cls``."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("assets") or []
    if not isinstance(data, list):
        raise ValueError(f"{path}: asset list must be a sequence")
    return [parse_asset(entry, cls) for entry in data]


def write_manifest(path: Path, assets: Sequence[CapturedAsset]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"assets": [asset_to_dict(a) for a in assets]}, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logging.info("Wrote %s asset records to %s", len(assets), path)


async def run_download(config: Config, assets_path: Path, output: Path) -> int:
    """Download stage. Return process exit code."""
    assets = load_assets(assets_path, CapturedAsset)
    logging.info("Downloading sources for %s assets into %s", len(assets), config.local)
    async with aiohttp.ClientSession() as session:
        coordinator = FetchCoordinator(config, session)
        downloaded = await download(assets, coordinator)
    write_manifest(output, downloaded)
    failed = [a for a in downloaded if a.error]
    logging.info("Download complete: ok=%s failed=%s", len(downloaded) - len(failed), len(failed))
    return 1 if failed else 0


def run_build(config: Config, assets_path: Path, output: Path) -> int:
    """Build stage. Return process exit code."""
    assets = load_assets(assets_path, EncodedAsset)
    built = build(assets, config)
    write_manifest(output, built)
    return 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """CLI options."""
    parser = argparse.ArgumentParser(description="Download and build media assets")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    commands = parser.add_subparsers(dest="command", required=True)

    dl = commands.add_parser("download", help="Fetch source files of captured assets")
    dl.add_argument("--assets", required=True, help="Captured asset list (YAML or JSON)")
    dl.add_argument("--output", default="downloaded.json", help="Downloaded asset manifest to write")

    bd = commands.add_parser("build", help="Render markup for encoded assets")
    bd.add_argument("--assets", required=True, help="Encoded asset list (YAML or JSON)")
    bd.add_argument("--output", default="built.json", help="Built asset manifest to write")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)
    config_path = Path(args.config)
    if not config_path.exists():
        raise SystemExit(f"config file not found: {config_path}")
    assets_path = Path(args.assets)
    if not assets_path.exists():
        raise SystemExit(f"asset list not found: {assets_path}")

    try:
        config = load_config(config_path)
        if args.command == "download":
            code = asyncio.run(run_download(config, assets_path, Path(args.output)))
        else:
            code = run_build(config, assets_path, Path(args.output))
    except (LazyMediaError, ValueError, yaml.YAMLError) as exc:
        logging.error("%s", exc)
        raise SystemExit(1) from exc
    raise SystemExit(code)


if __name__ == "__main__":
    main()
