"""Check a downloaded asset manifest against the local cache directory."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from .assets import AssetType, DownloadedAsset, parse_asset
from .config import Config, load_config
from .errors import MalformedSourceReference
from .paths import source_path


def load_manifest(path: Path) -> list[DownloadedAsset]:
    with path.open("r", encoding="utf-8") as f:
        data: Any = json.load(f)
    entries = data.get("assets") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected an 'assets' list")
    return [parse_asset(entry, DownloadedAsset) for entry in entries]


def check_asset(asset: DownloadedAsset, config: Config) -> str | None:
    """Return a problem description, or None when the asset is in place."""
    if asset.type is AssetType.YOUTUBE:
        return None if asset.source_path is None else f"youtube asset has a local file: {asset.source_url}"
    if asset.error:
        return f"download failed: {asset.source_url} ({asset.error})"
    expected = source_path(asset.source_url, config)
    if asset.source_path is None:
        return f"missing source_path: {asset.source_url}"
    if Path(asset.source_path) != expected:
        return f"path mismatch: {asset.source_url} (expected={expected}, actual={asset.source_path})"
    if not expected.is_file():
        return f"missing file: {expected}"
    return None


def verify(assets: Sequence[DownloadedAsset], config: Config) -> int:
    """Print a report and return the process exit code."""
    ok_count = ng_count = 0
    for asset in assets:
        problem = check_asset(asset, config)
        if problem:
            ng_count += 1
            print(f"[NG] {problem}")
        else:
            ok_count += 1
    print(f"OK: {ok_count}")
    print(f"NG: {ng_count}")
    return 1 if ng_count > 0 else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify downloaded media assets")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    parser.add_argument("--manifest", default="downloaded.json", help="Downloaded asset manifest")
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else Config()
    manifest_path = Path(args.manifest)
    if not manifest_path.exists():
        print(f"[NG] manifest not found: {manifest_path}")
        print("OK: 0")
        print("NG: 1")
        return 1

    try:
        assets = load_manifest(manifest_path)
    except (ValueError, MalformedSourceReference) as e:
        print(f"[NG] failed to load manifest: {e}")
        print("OK: 0")
        print("NG: 1")
        return 1
    return verify(assets, config)


if __name__ == "__main__":
    sys.exit(main())
