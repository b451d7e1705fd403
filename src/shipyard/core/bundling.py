"""Bundling strategies for the runtime and user scripts.

Split bundles:
    A generated entry re-exports every core module and is bundled into
    ``libs/esengine.core.js`` with nothing external. Each plugin is bundled
    into ``libs/plugins/<id>.js`` with every core package external, so core
    code is never duplicated into a plugin; the import map resolves those
    imports at load time.

Single bundle:
    The ``platform-web`` module's entry and everything it imports go into
    one IIFE file, ``libs/esengine.bundle.js``, exposing ``ESEngine``.
"""

import logging
from pathlib import Path

from ..models import BundleFormat, BundleOptions, BundleResult, ModuleManifest
from ..services.filesystem import BuildFileSystem
from .build_log import format_bytes
from .context import BuildContext
from .errors import BuildError

logger = logging.getLogger(__name__)

CORE_BUNDLE_NAME = "esengine.core"
CORE_ENTRY_FILE = "_core_entry.js"
SINGLE_BUNDLE_NAME = "esengine.bundle"
SINGLE_BUNDLE_GLOBAL = "ESEngine"
USER_SCRIPTS_BUNDLE_NAME = "user-scripts"
WEB_PLATFORM_MODULE = "platform-web"

ENTRY_POINT_CANDIDATES = ("index.mjs", "index.js", "dist/index.mjs", "dist/index.js")
DEFAULT_USER_SCRIPT_ENTRIES = ["index.ts", "main.ts", "game.ts", "index.js", "main.js"]


class BundlingError(BuildError):
    """A mandatory bundle could not be produced."""


def node_env_define(is_release: bool) -> dict[str, str]:
    return {"process.env.NODE_ENV": '"production"' if is_release else '"development"'}


def find_entry_point(fs: BuildFileSystem, module_dir: Path) -> Path | None:
    """Return the first existing entry candidate inside ``module_dir``."""
    for candidate in ENTRY_POINT_CANDIDATES:
        path = module_dir / candidate
        if fs.path_exists(path):
            return path
    return None


def generate_core_entry(core_modules: list[ModuleManifest]) -> str:
    """Source of the virtual module re-exporting all core packages.

    Explicit ``core_service_exports`` come first so that the named exports
    win over same-named symbols pulled in by the wildcard re-exports.
    """
    lines = ["// Auto-generated core runtime entry", ""]

    with_exports = next((m for m in core_modules if m.core_service_exports), None)
    if with_exports is not None:
        names = ", ".join(with_exports.core_service_exports or [])
        lines.append("// Explicit exports to avoid naming conflicts")
        lines.append(f'export {{ {names} }} from "{with_exports.package_name}";')
        lines.append("")

    for module in core_modules:
        lines.append(f'export * from "{module.package_name}";')

    runtime_entry = next((m for m in core_modules if m.is_runtime_entry), None)
    if runtime_entry is not None:
        lines.append("")
        lines.append("// Default export for runtime initialization")
        lines.append(f'import BrowserRuntime from "{runtime_entry.package_name}";')
        lines.append("export default BrowserRuntime;")

    return "\n".join(lines) + "\n"


def _report_bundle(context: BuildContext, result: BundleResult, label: str) -> None:
    for warning in result.warnings:
        context.add_warning(warning)
    context.record_output(result.output_file)
    context.report_progress(f"{label}: {format_bytes(result.output_size or 0)}")


def bundle_core_runtime(
    fs: BuildFileSystem,
    context: BuildContext,
    core_modules: list[ModuleManifest],
    minify: bool,
    source_map: bool,
) -> BundleResult:
    """Bundle all core modules into ``libs/esengine.core.js``.

    Raises:
        BundlingError: If the bundler fails; the core runtime is mandatory
    """
    entry_path = context.output_dir / CORE_ENTRY_FILE
    fs.write_file(entry_path, generate_core_entry(core_modules))
    logger.debug(f"Generated core entry with {len(core_modules)} modules")

    try:
        result = fs.bundle_scripts(
            BundleOptions(
                entry_points=[entry_path],
                output_dir=context.output_dir / "libs",
                format="esm",
                bundle_name=CORE_BUNDLE_NAME,
                minify=minify,
                source_map=source_map,
                external=[],
                project_root=context.project_root,
            ),
            context.cancel_token,
        )
    finally:
        try:
            fs.delete_file(entry_path)
        except OSError as e:
            logger.debug(f"Could not remove {entry_path}: {e}")

    if not result.success:
        raise BundlingError(f"Failed to bundle core runtime: {result.error}")
    _report_bundle(context, result, "Core runtime")
    return result


def bundle_plugin_modules(
    fs: BuildFileSystem,
    context: BuildContext,
    core_modules: list[ModuleManifest],
    plugin_modules: list[ModuleManifest],
    modules_dir: Path,
    minify: bool,
    source_map: bool,
) -> list[str]:
    """Bundle each plugin on its own with every core package external.

    A plugin without an entry point, or whose bundle fails, is skipped
    with a warning.

    Returns:
        Ids of the plugins that were bundled
    """
    core_packages = [m.package_name for m in core_modules]
    plugins_dir = context.output_dir / "libs" / "plugins"
    bundled = []

    for module in plugin_modules:
        entry = find_entry_point(fs, modules_dir / module.id)
        if entry is None:
            context.add_warning(f"No entry point found for plugin: {module.id}")
            continue

        result = fs.bundle_scripts(
            BundleOptions(
                entry_points=[entry],
                output_dir=plugins_dir,
                format="esm",
                bundle_name=module.id,
                minify=minify,
                source_map=source_map,
                external=core_packages,
                project_root=context.project_root,
            ),
            context.cancel_token,
        )
        if not result.success:
            context.add_warning(f"Failed to bundle plugin {module.id}: {result.error}")
            continue
        _report_bundle(context, result, f"Plugin {module.id}")
        bundled.append(module.id)

    return bundled


def bundle_single(
    fs: BuildFileSystem,
    context: BuildContext,
    modules_dir: Path,
    minify: bool,
    source_map: bool,
) -> BundleResult:
    """Bundle the web platform module and all its imports into one IIFE.

    Raises:
        BundlingError: If the entry is missing or the bundler fails
    """
    entry = find_entry_point(fs, modules_dir / WEB_PLATFORM_MODULE)
    if entry is None:
        raise BundlingError(f"Could not find {WEB_PLATFORM_MODULE} entry point in {modules_dir}")

    result = fs.bundle_scripts(
        BundleOptions(
            entry_points=[entry],
            output_dir=context.output_dir / "libs",
            format="iife",
            bundle_name=SINGLE_BUNDLE_NAME,
            minify=minify,
            source_map=source_map,
            external=[],
            project_root=context.project_root,
            global_name=SINGLE_BUNDLE_GLOBAL,
        ),
        context.cancel_token,
    )
    if not result.success:
        raise BundlingError(f"Failed to bundle: {result.error}")
    _report_bundle(context, result, "Single bundle")
    return result


def find_user_script_entries(
    fs: BuildFileSystem,
    scripts_dir: Path,
    preferred: list[str] | None = None,
    discover: bool = True,
) -> list[Path]:
    """Pick the user script entry files.

    The first existing preferred name wins. Without one, and if
    ``discover`` is set, every top-level ``.ts``/``.js`` file except
    declaration files is an entry.
    """
    for name in preferred or DEFAULT_USER_SCRIPT_ENTRIES:
        path = scripts_dir / name
        if fs.path_exists(path):
            return [path]

    if not discover:
        return []
    return [
        path
        for path in fs.list_files_by_extension(scripts_dir, ["ts", "js"], recursive=False)
        if not path.name.endswith(".d.ts")
    ]


def bundle_user_scripts(
    fs: BuildFileSystem,
    context: BuildContext,
    entries: list[Path],
    format: BundleFormat,
    bundle_name: str = USER_SCRIPTS_BUNDLE_NAME,
    external: list[str] | None = None,
    define: dict[str, str] | None = None,
) -> BundleResult:
    """Bundle user scripts into ``libs/<bundle_name>.js``.

    Minification follows ``is_release``; ``NODE_ENV`` is defined to match.

    Raises:
        BundlingError: If the bundler fails
    """
    config = context.config
    result = fs.bundle_scripts(
        BundleOptions(
            entry_points=entries,
            output_dir=context.output_dir / "libs",
            format=format,
            bundle_name=bundle_name,
            minify=config.is_release,
            source_map=config.source_map,
            external=external or [],
            project_root=context.project_root,
            define={**node_env_define(config.is_release), **(define or {})},
        ),
        context.cancel_token,
    )
    if not result.success:
        raise BundlingError(f"User scripts bundling failed: {result.error}")
    _report_bundle(context, result, "User scripts")
    return result
