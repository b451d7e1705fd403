"""Locate and load ``module.json`` manifests under the modules directory.

Discovery prefers an explicit ``modules.index.json`` (a JSON list of
manifest paths relative to the modules directory). Without one it falls
back to a scan that never walks dependency directories:

1. ``module.json`` directly in the modules directory
2. ``package.json`` directly in the modules directory with a sibling
   ``module.json``
3. ``<name>/module.json`` exactly one level deep, skipping hidden
   directories and ``node_modules``

Each tier only runs when the previous ones found nothing.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..constants import MODULE_INDEX_FILE, MODULE_MANIFEST, SKIPPED_SCAN_DIRS
from ..models import ModuleManifest
from ..services.filesystem import BuildFileSystem
from .errors import BuildError

logger = logging.getLogger(__name__)


class ModuleDiscoveryError(BuildError):
    """The modules directory or its index file is unusable."""


def read_module_index(fs: BuildFileSystem, modules_dir: Path) -> list[Path] | None:
    """Read the explicit manifest index, if the modules directory has one.

    Returns:
        Manifest paths listed in the index, or None without an index file

    Raises:
        ModuleDiscoveryError: If the index is not a JSON list of strings
    """
    index_path = modules_dir / MODULE_INDEX_FILE
    if not fs.path_exists(index_path):
        return None
    try:
        entries = fs.read_json(index_path)
    except (OSError, json.JSONDecodeError) as e:
        raise ModuleDiscoveryError(f"Cannot read module index {index_path}: {e}") from e
    if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
        raise ModuleDiscoveryError(f"Module index must be a list of paths: {index_path}")

    paths = []
    for entry in entries:
        path = modules_dir / entry
        if fs.path_exists(path):
            paths.append(path)
        else:
            logger.warning(f"Module index lists a missing manifest: {entry}")
    return paths


def scan_module_manifests(fs: BuildFileSystem, modules_dir: Path) -> list[Path]:
    """Find manifests with the tiered scan described in the module docstring."""
    results: list[Path] = []
    package_dirs: list[Path] = []

    for file in fs.list_files_by_extension(modules_dir, ["json"], recursive=False):
        if file.name == MODULE_MANIFEST:
            results.append(file)
        elif file.name == "package.json":
            package_dirs.append(file.parent)
    if results:
        logger.debug(f"Found {len(results)} manifests at the top of {modules_dir}")

    for directory in package_dirs:
        candidate = directory / MODULE_MANIFEST
        if candidate not in results and fs.path_exists(candidate):
            results.append(candidate)
            logger.debug(f"Found manifest beside package.json: {candidate}")

    if not results:
        for file in fs.list_files_by_extension(modules_dir, ["json"], recursive=True):
            if file.name != MODULE_MANIFEST:
                continue
            parts = file.relative_to(modules_dir).parts
            if len(parts) != 2:
                continue
            if parts[0].startswith(".") or parts[0] in SKIPPED_SCAN_DIRS:
                continue
            results.append(file)
        logger.debug(f"Found {len(results)} manifests one level below {modules_dir}")

    return results


def find_module_manifests(fs: BuildFileSystem, modules_dir: Path) -> list[Path]:
    """Return manifest paths from the index file or the fallback scan.

    Raises:
        ModuleDiscoveryError: If ``modules_dir`` does not exist or its
            index file is malformed
    """
    if not fs.path_exists(modules_dir):
        raise ModuleDiscoveryError(f"Engine modules directory not found: {modules_dir}")

    indexed = read_module_index(fs, modules_dir)
    if indexed is not None:
        logger.info(f"Using module index: {len(indexed)} manifests")
        return indexed

    paths = scan_module_manifests(fs, modules_dir)
    logger.info(f"Found {len(paths)} module.json files in {modules_dir}")
    return paths


def load_manifest(fs: BuildFileSystem, path: Path) -> ModuleManifest:
    return ModuleManifest.model_validate(fs.read_json(path))


def discover_modules(fs: BuildFileSystem, modules_dir: Path) -> list[ModuleManifest]:
    """Load every discoverable manifest.

    Manifests that cannot be read or parsed are logged and skipped.
    """
    manifests = []
    for path in find_module_manifests(fs, modules_dir):
        try:
            manifests.append(load_manifest(fs, path))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to read module manifest {path}: {e}")
    return manifests
