"""Asset catalog generation.

The editor writes a ``<file>.meta`` sidecar next to every asset. The
catalog maps each sidecar GUID to the copied output file so the runtime
can load assets by GUID.

The ``hash`` of an entry identifies an asset by its output path and size
only. It does not change when the content changes at equal size.
"""

import hashlib
import json
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from ..models import AssetCatalog, AssetCatalogEntry, AssetMeta
from ..services.filesystem import BuildFileSystem

logger = logging.getLogger(__name__)

ASSET_CATALOG_FILE = "asset-catalog.json"
META_EXTENSION = ".meta"

DEFAULT_ASSET_TYPES: dict[str, str] = {
    "png": "texture",
    "jpg": "texture",
    "jpeg": "texture",
    "gif": "texture",
    "webp": "texture",
    "mp3": "audio",
    "ogg": "audio",
    "wav": "audio",
    "m4a": "audio",
    "json": "data",
    "xml": "data",
    "ttf": "font",
    "woff": "font",
    "woff2": "font",
    "fnt": "font",
    "atlas": "atlas",
}

DEFAULT_ASSET_PATTERNS: list[str] = [f"*.{ext}" for ext in DEFAULT_ASSET_TYPES]
SCENE_PATTERNS: list[str] = ["*.ecs", "*.scene", "*.json"]

# Source directories scanned for sidecars; only the first two are copied.
CATALOG_SOURCE_DIRS = ("assets", "scenes", "scripts")
COPIED_SOURCE_DIRS = ("assets", "scenes")


def hash_file_info(path: str, size: int) -> str:
    """Identity hash of an output file: sha256 of ``"<path>:<size>"``, 16 hex chars."""
    return hashlib.sha256(f"{path}:{size}".encode()).hexdigest()[:16]


def get_asset_type(extension: str, type_map: dict[str, str] | None = None) -> str:
    """Catalog type for a file extension (with or without a dot), ``binary`` if unknown."""
    ext = extension.lower().lstrip(".")
    if type_map and ext in type_map:
        return type_map[ext]
    return DEFAULT_ASSET_TYPES.get(ext, "binary")


def build_asset_catalog(
    fs: BuildFileSystem,
    project_root: Path,
    output_dir: Path,
    type_map: dict[str, str] | None = None,
    created_at: int | None = None,
) -> AssetCatalog:
    """Collect catalog entries for every sidecar whose asset was copied.

    Args:
        fs: File system used for all reads
        project_root: Directory holding the source assets/, scenes/, scripts/
        output_dir: Build output directory the assets were copied into
        type_map: Extension -> type overrides
        created_at: Catalog timestamp in ms; now if None

    Returns:
        The catalog (not yet written)
    """
    catalog = AssetCatalog(
        created_at=created_at if created_at is not None else int(time.time() * 1000)
    )

    for dir_name in CATALOG_SOURCE_DIRS:
        source_dir = project_root / dir_name
        if not fs.path_exists(source_dir):
            continue
        if dir_name not in COPIED_SOURCE_DIRS:
            # Scripts are bundled, so their sidecars have no output file
            continue

        for meta_file in fs.list_files_by_extension(source_dir, [META_EXTENSION], recursive=True):
            try:
                meta = AssetMeta.model_validate(fs.read_json(meta_file))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Failed to process meta file {meta_file}: {e}")
                continue
            if not meta.guid:
                continue

            asset_source = meta_file.with_suffix("")
            relative_path = (
                Path(dir_name) / asset_source.relative_to(source_dir)
            ).as_posix()
            output_path = output_dir / relative_path
            if not fs.path_exists(output_path):
                continue

            size = fs.get_file_size(output_path)
            catalog.entries[meta.guid] = AssetCatalogEntry(
                guid=meta.guid,
                path=relative_path,
                type=meta.type or get_asset_type(asset_source.suffix, type_map),
                size=size,
                hash=hash_file_info(relative_path, size),
            )

    logger.info(f"Generated asset catalog: {len(catalog.entries)} assets")
    return catalog
