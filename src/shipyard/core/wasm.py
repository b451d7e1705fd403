"""Copy WASM artifacts declared by module manifests."""

import logging
from pathlib import Path

from ..models import ModuleManifest, WasmFileSpec
from ..services.filesystem import BuildFileSystem
from .context import BuildContext

logger = logging.getLogger(__name__)


def resolve_wasm_source(fs: BuildFileSystem, spec: WasmFileSpec, modules_dir: Path) -> Path | None:
    """Return the first existing candidate source of ``spec``, or None."""
    for candidate in spec.candidates:
        path = modules_dir / candidate
        if fs.path_exists(path):
            return path
    return None


def copy_wasm_files(
    fs: BuildFileSystem,
    context: BuildContext,
    modules: list[ModuleManifest],
    modules_dir: Path,
) -> list[Path]:
    """Copy the WASM files of every module that requires them.

    A file spec with no existing candidate adds a warning; it never fails
    the build.

    Returns:
        Destination paths that were written
    """
    copied: list[Path] = []
    for module in modules:
        if not module.requires_wasm or module.wasm_config is None:
            continue
        for spec in module.wasm_config.files:
            source = resolve_wasm_source(fs, spec, modules_dir)
            if source is None:
                context.add_warning(
                    f"WASM file not found for {module.id}: {' or '.join(spec.candidates)}"
                )
                continue
            destination = context.output_dir / spec.dst
            fs.create_directory(destination.parent)
            fs.copy_file(source, destination)
            context.record_output(destination)
            copied.append(destination)
            logger.debug(f"Copied WASM: {source} -> {spec.dst}")
    return copied
