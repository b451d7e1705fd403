"""Web / H5 build pipeline.

Output layout (split-bundles)::

    build/web/
    ├── index.html
    ├── build.log
    ├── start-server.bat, start-server.sh, README.md
    ├── asset-catalog.json
    ├── libs/
    │   ├── esengine.core.js
    │   ├── plugins/<id>.js
    │   ├── wasm/...
    │   └── user-scripts.js
    ├── assets/...
    └── scenes/...

Single-bundle builds replace ``esengine.core.js`` and the plugin bundles
with ``libs/esengine.bundle.js`` and skip the server scripts.
"""

import logging
from pathlib import Path

from ..constants import DEFAULT_MODULES_DIR
from ..core.asset_catalog import (
    ASSET_CATALOG_FILE,
    DEFAULT_ASSET_PATTERNS,
    SCENE_PATTERNS,
    build_asset_catalog,
)
from ..core.bundling import (
    bundle_core_runtime,
    bundle_plugin_modules,
    bundle_single,
    bundle_user_scripts,
    find_user_script_entries,
)
from ..core.classifier import classify_modules
from ..core.context import BuildContext
from ..core.html import (
    find_main_scene,
    find_wasm_runtime_path,
    generate_single_bundle_html,
    generate_split_bundles_html,
    write_server_scripts,
)
from ..core.module_discovery import discover_modules
from ..core.pipeline import BuildPipeline, BuildStep
from ..core.wasm import copy_wasm_files
from ..models import (
    ASSET_LOADING_STRATEGIES,
    SINGLE_BUNDLE,
    SPLIT_BUNDLES,
    WEB_BUILD_MODES,
    BuildConfig,
    BuildPlatform,
    BuildStatus,
    ModuleManifest,
    PlatformAvailability,
    WebBuildConfig,
)
from ..services.filesystem import BuildFileSystem

logger = logging.getLogger(__name__)

OUTPUT_SUBDIRS = ("libs", "libs/plugins", "libs/wasm", "assets", "scenes")

STEP_STATUS = {
    "prepare": BuildStatus.PREPARING,
    "analyze": BuildStatus.PREPARING,
    "bundle-runtime": BuildStatus.COMPILING,
    "copy-assets": BuildStatus.COPYING,
    "copy-scenes": BuildStatus.COPYING,
    "bundle-user-scripts": BuildStatus.COMPILING,
    "generate-catalog": BuildStatus.POST_PROCESSING,
    "generate-html": BuildStatus.POST_PROCESSING,
    "generate-server-scripts": BuildStatus.POST_PROCESSING,
}


def record_copied_files(
    fs: BuildFileSystem, context: BuildContext, directory: Path, patterns: list[str]
) -> None:
    """Record files matching ``*.ext`` patterns under ``directory`` as outputs."""
    extensions = [p[2:] for p in patterns if p.startswith("*.")]
    for path in fs.list_files_by_extension(directory, extensions, recursive=True):
        context.record_output(path)


class WebBuildPipeline(BuildPipeline):
    """Builds a browser-ready game.

    Args:
        fs: File-system and bundler collaborator
        project_root: Project directory; derived from the output path if None
        modules_path: Engine modules directory, relative to the project
            root unless absolute (default: ``modules``)
    """

    platform = BuildPlatform.WEB
    display_name = "Web / H5"
    description = "Build for web browsers"
    log_title = "ESEngine Web Build Log"

    def __init__(
        self,
        fs: BuildFileSystem,
        project_root: Path | None = None,
        modules_path: Path | None = None,
    ) -> None:
        super().__init__(fs, project_root)
        self.modules_path = modules_path

    def get_default_config(self) -> WebBuildConfig:
        return WebBuildConfig()

    def validate_config(self, config: BuildConfig) -> list[str]:
        if not isinstance(config, WebBuildConfig):
            return ["Web builds require a WebBuildConfig"]
        errors = []
        if not config.output_path.strip():
            errors.append("Output path is required")
        if config.build_mode not in WEB_BUILD_MODES:
            errors.append(f'Build mode must be "{SINGLE_BUNDLE}" or "{SPLIT_BUNDLES}"')
        if config.asset_loading_strategy not in ASSET_LOADING_STRATEGIES:
            errors.append('Asset loading strategy must be "preload" or "on-demand"')
        return errors

    def get_steps(self, config: BuildConfig) -> list[BuildStep]:
        assert isinstance(config, WebBuildConfig)
        split = config.build_mode == SPLIT_BUNDLES
        steps = [
            BuildStep("prepare", "Prepare build directory", self._step_prepare),
            BuildStep("analyze", "Analyze project", self._step_analyze),
            BuildStep(
                "bundle-runtime",
                "Bundle runtime",
                self._step_bundle_split if split else self._step_bundle_single,
            ),
            BuildStep("copy-assets", "Copy assets", self._step_copy_assets),
            BuildStep("copy-scenes", "Copy scenes", self._step_copy_scenes),
            BuildStep("bundle-user-scripts", "Bundle user scripts", self._step_bundle_user_scripts),
        ]
        if config.generate_asset_catalog:
            steps.append(
                BuildStep("generate-catalog", "Generate asset catalog", self._step_generate_catalog)
            )
        if config.generate_html:
            steps.append(BuildStep("generate-html", "Generate HTML", self._step_generate_html))
        if split:
            steps.append(
                BuildStep(
                    "generate-server-scripts",
                    "Generate server scripts",
                    self._step_generate_server_scripts,
                )
            )
        return steps

    def status_for_step(self, step_id: str) -> BuildStatus:
        return STEP_STATUS.get(step_id, BuildStatus.COMPILING)

    def check_availability(self) -> PlatformAvailability:
        reason = self.fs.find_bundler(self.project_root or Path("."))
        return PlatformAvailability(
            platform=self.platform,
            display_name=self.display_name,
            available=reason is None,
            reason=reason,
        )

    def describe_config(self, config: BuildConfig) -> dict[str, str]:
        assert isinstance(config, WebBuildConfig)
        return {"Build mode": config.build_mode}

    def modules_dir(self, project_root: Path) -> Path:
        if self.modules_path is None:
            return project_root / DEFAULT_MODULES_DIR
        return project_root / self.modules_path

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _step_prepare(self, context: BuildContext) -> None:
        self.fs.prepare_build_directory(context.output_dir)
        for subdir in OUTPUT_SUBDIRS:
            self.fs.create_directory(context.output_dir / subdir)
        context.report_progress(f"Output directory prepared: {context.output_dir}")

    def _step_analyze(self, context: BuildContext) -> None:
        config = context.config
        modules_dir = self.modules_dir(context.project_root)
        manifests = discover_modules(self.fs, modules_dir)
        classification = classify_modules(
            manifests, config.enabled_modules, config.disabled_modules
        )

        context.data.set("modules_dir", modules_dir)
        context.data.set("all_modules", classification.all_modules)
        context.data.set("core_modules", classification.core)
        context.data.set("plugin_modules", classification.plugins)

        context.report_progress(
            f"Found {len(classification.core)} core modules, "
            f"{len(classification.plugins)} plugin modules"
        )
        if classification.core:
            names = ", ".join(m.package_name for m in classification.core)
            context.report_progress(f"Core modules: {names}")
        if classification.plugins:
            names = ", ".join(m.package_name for m in classification.plugins)
            context.report_progress(f"Plugin modules: {names}")

    def _minify(self, config: WebBuildConfig) -> bool:
        return config.minify and config.is_release

    def _step_bundle_split(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        modules_dir: Path = context.data.require("modules_dir")
        core: list[ModuleManifest] = context.data.require("core_modules")
        plugins: list[ModuleManifest] = context.data.require("plugin_modules")
        minify = self._minify(config)

        bundle_core_runtime(self.fs, context, core, minify, config.source_map)
        bundled = bundle_plugin_modules(
            self.fs, context, core, plugins, modules_dir, minify, config.source_map
        )
        copy_wasm_files(self.fs, context, [*core, *plugins], modules_dir)

        context.data.set("bundled_plugins", bundled)
        context.data.set("build_mode", SPLIT_BUNDLES)

    def _step_bundle_single(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        modules_dir: Path = context.data.require("modules_dir")

        bundle_single(self.fs, context, modules_dir, self._minify(config), config.source_map)
        copy_wasm_files(self.fs, context, context.data.require("all_modules"), modules_dir)

        context.data.set("build_mode", SINGLE_BUNDLE)

    def _step_copy_assets(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        source = context.project_root / "assets"
        if not self.fs.path_exists(source):
            context.add_warning("No assets directory found, skipping assets")
            return
        patterns = config.asset_extensions or DEFAULT_ASSET_PATTERNS
        target = context.output_dir / "assets"
        count = self.fs.copy_directory(source, target, patterns)
        record_copied_files(self.fs, context, target, patterns)
        context.report_progress(f"Copied {count} asset files")

    def _step_copy_scenes(self, context: BuildContext) -> None:
        source = context.project_root / "scenes"
        if not self.fs.path_exists(source):
            context.add_warning("No scenes directory found, skipping scenes")
            return
        target = context.output_dir / "scenes"
        if context.config.scenes:
            count = self._copy_selected_scenes(context, source, target, context.config.scenes)
        else:
            count = self.fs.copy_directory(source, target, SCENE_PATTERNS)
            record_copied_files(self.fs, context, target, SCENE_PATTERNS)
        context.report_progress(f"Copied {count} scene files")

    def _copy_selected_scenes(
        self, context: BuildContext, source: Path, target: Path, scenes: list[str]
    ) -> int:
        """Copy only the listed scenes (paths relative to ``scenes/``)."""
        count = 0
        for name in scenes:
            scene = source / name
            if not self.fs.path_exists(scene):
                context.add_warning(f"Scene not found: {name}")
                continue
            destination = target / name
            self.fs.copy_file(scene, destination)
            context.record_output(destination)
            count += 1
        return count

    def _step_bundle_user_scripts(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        scripts_dir = context.project_root / "scripts"
        if not self.fs.path_exists(scripts_dir):
            context.add_warning("No scripts directory found, skipping user scripts")
            return

        core: list[ModuleManifest] = context.data.require("core_modules")
        preferred = next((m.user_script_entries for m in core if m.user_script_entries), None)
        entries = find_user_script_entries(self.fs, scripts_dir, preferred)
        if not entries:
            context.add_warning("No user script files found, skipping user scripts")
            return
        context.report_progress(f"Bundling user scripts: {', '.join(p.name for p in entries)}")

        external = next((m.user_script_externals for m in core if m.user_script_externals), None)
        fmt = "iife" if config.build_mode == SINGLE_BUNDLE else "esm"
        bundle_user_scripts(self.fs, context, entries, fmt, external=external)
        context.data.set("has_user_scripts", True)

    def _step_generate_catalog(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        catalog = build_asset_catalog(
            self.fs, context.project_root, context.output_dir, config.asset_type_map
        )
        path = context.output_dir / ASSET_CATALOG_FILE
        self.fs.write_json_file(path, catalog.to_json())
        context.record_output(path)
        context.report_progress(
            f"Generated asset catalog: {len(catalog.entries)} assets, "
            f"strategy={catalog.load_strategy}"
        )

    def _step_generate_html(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WebBuildConfig)
        build_mode = context.data.require("build_mode")
        core: list[ModuleManifest] = context.data.require("core_modules")
        plugins: list[ModuleManifest] = context.data.require("plugin_modules")

        main_scene = find_main_scene(self.fs, context.output_dir)
        wasm_runtime_path = find_wasm_runtime_path(core)
        if build_mode == SINGLE_BUNDLE:
            html = generate_single_bundle_html(
                main_scene, wasm_runtime_path, config.asset_loading_strategy
            )
        else:
            html = generate_split_bundles_html(
                main_scene, core, plugins, wasm_runtime_path, config.asset_loading_strategy
            )

        path = context.output_dir / "index.html"
        self.fs.write_file(path, html)
        context.record_output(path)
        context.report_progress(f"Generated index.html ({build_mode} mode)")

    def _step_generate_server_scripts(self, context: BuildContext) -> None:
        for path in write_server_scripts(self.fs, context.output_dir):
            context.record_output(path)
        context.report_progress("Generated server scripts: start-server.bat, start-server.sh, README.md")
