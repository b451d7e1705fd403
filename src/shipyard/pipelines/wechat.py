"""WeChat mini-game build pipeline.

Produces a directory that WeChat DevTools can open directly: ``game.js``
entry, ``game.json``, ``project.config.json``, the runtime under ``libs/``
and WASM files under ``wasm/``.
"""

import json
import logging
import re
from pathlib import Path

from ..constants import DEFAULT_MODULES_DIR
from ..core.build_log import format_bytes
from ..core.bundling import bundle_user_scripts, find_user_script_entries
from ..core.classifier import classify_modules
from ..core.context import BuildContext
from ..core.html import find_main_scene
from ..core.module_discovery import discover_modules
from ..core.pipeline import BuildPipeline, BuildStep
from ..core.wasm import copy_wasm_files
from ..models import BuildConfig, BuildPlatform, BuildStatus, WeChatBuildConfig
from ..services.filesystem import BuildFileSystem

logger = logging.getLogger(__name__)

APP_ID_PATTERN = re.compile(r"^wx[a-f0-9]{16}$")
MIN_MAIN_PACKAGE_LIMIT = 1024  # KB

USER_CODE_BUNDLE_NAME = "user-code"
USER_CODE_EXTERNALS = ["@esengine/ecs-framework", "@esengine/core"]
WECHAT_RUNTIME_DIR = Path("node_modules/@esengine/platform-wechat/dist")
STANDARD_RUNTIME_DIR = Path("node_modules/@esengine/ecs-framework/dist")
ENGINE_WASM_DIR = Path("node_modules/@esengine/es-engine/pkg")
ENGINE_WASM_FILE = "./wasm/es_engine_bg.wasm"
WECHAT_LIB_VERSION = "2.25.0"
NETWORK_TIMEOUT_MS = 60000

STEP_STATUS = {
    "prepare": BuildStatus.PREPARING,
    "compile": BuildStatus.COMPILING,
    "bundle-runtime": BuildStatus.COMPILING,
    "copy-wasm": BuildStatus.COPYING,
    "copy-assets": BuildStatus.COPYING,
    "generate-game-json": BuildStatus.POST_PROCESSING,
    "generate-game-js": BuildStatus.POST_PROCESSING,
    "generate-project-config": BuildStatus.POST_PROCESSING,
    "check-subpackages": BuildStatus.POST_PROCESSING,
    "optimize": BuildStatus.POST_PROCESSING,
}

GAME_JS_TEMPLATE = """/**
 * WeChat mini-game entry point.
 * Auto-generated, do not modify manually.
 */

require('./libs/weapp-adapter.js');
require('./libs/esengine-runtime.js');
require('./libs/user-code.js');

(async function() {{
    try {{
        // iOS loads WASM through WXWebAssembly
        const isIOS = wx.getSystemInfoSync().platform === 'ios';
        if (isIOS) {{
            await ECS.initWasm('{wasm_file}', {{ useWXWebAssembly: true }});
        }} else {{
            await ECS.initWasm('{wasm_file}');
        }}

        const canvas = wx.createCanvas();
        const runtime = ECS.createRuntime({{
            canvas: canvas,
            platform: 'wechat'
        }});

        await runtime.loadScene({main_scene});
        runtime.start();

        console.log('[Game] Started successfully');
    }} catch (error) {{
        console.error('[Game] Failed to start:', error);
    }}
}})();
"""


class WeChatBuildPipeline(BuildPipeline):
    """Builds a WeChat mini-game package.

    Args:
        fs: File-system and bundler collaborator
        project_root: Project directory; derived from the output path if None
        modules_path: Engine modules directory whose manifests declare WASM
            files, relative to the project root unless absolute
    """

    platform = BuildPlatform.WECHAT_MINIGAME
    display_name = "WeChat MiniGame"
    description = "Build for the WeChat mini-game platform"
    log_title = "ESEngine WeChat Build Log"

    def __init__(
        self,
        fs: BuildFileSystem,
        project_root: Path | None = None,
        modules_path: Path | None = None,
    ) -> None:
        super().__init__(fs, project_root)
        self.modules_path = modules_path

    def get_default_config(self) -> WeChatBuildConfig:
        return WeChatBuildConfig()

    def validate_config(self, config: BuildConfig) -> list[str]:
        if not isinstance(config, WeChatBuildConfig):
            return ["WeChat builds require a WeChatBuildConfig"]
        errors = []
        if not config.output_path.strip():
            errors.append("Output path is required")
        if not config.app_id:
            errors.append("AppID is required")
        elif not APP_ID_PATTERN.match(config.app_id):
            errors.append("AppID must be 'wx' followed by 16 lowercase hex characters")
        if config.main_package_limit < MIN_MAIN_PACKAGE_LIMIT:
            errors.append("Main package size limit cannot be less than 1024 KB")
        return errors

    def get_steps(self, config: BuildConfig) -> list[BuildStep]:
        assert isinstance(config, WeChatBuildConfig)
        steps = [
            BuildStep("prepare", "Prepare output directory", self._step_prepare),
            BuildStep("compile", "Compile user scripts", self._step_compile),
            BuildStep("bundle-runtime", "Bundle runtime", self._step_bundle_runtime),
            BuildStep("copy-wasm", "Copy WASM files", self._step_copy_wasm),
            BuildStep("copy-assets", "Copy asset files", self._step_copy_assets),
            BuildStep("generate-game-json", "Generate game.json", self._step_game_json),
            BuildStep("generate-game-js", "Generate game.js", self._step_game_js),
            BuildStep(
                "generate-project-config",
                "Generate project.config.json",
                self._step_project_config,
            ),
        ]
        if config.use_subpackages:
            steps.append(
                BuildStep("check-subpackages", "Check package size", self._step_check_subpackages)
            )
        if config.is_release:
            steps.append(BuildStep("optimize", "Optimize", self._step_optimize, optional=True))
        return steps

    def status_for_step(self, step_id: str) -> BuildStatus:
        return STEP_STATUS.get(step_id, BuildStatus.COMPILING)

    def describe_config(self, config: BuildConfig) -> dict[str, str]:
        assert isinstance(config, WeChatBuildConfig)
        return {"App ID": config.app_id}

    def modules_dir(self, project_root: Path) -> Path:
        if self.modules_path is None:
            return project_root / DEFAULT_MODULES_DIR
        return project_root / self.modules_path

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _step_prepare(self, context: BuildContext) -> None:
        self.fs.prepare_build_directory(context.output_dir)
        context.report_progress(f"Output directory prepared: {context.output_dir}")

    def _step_compile(self, context: BuildContext) -> None:
        scripts_dir = context.project_root / "scripts"
        if not self.fs.path_exists(scripts_dir):
            context.add_warning("No scripts directory found, skipping user code")
            return
        entries = find_user_script_entries(self.fs, scripts_dir, discover=False)
        if not entries:
            context.add_warning("No user script entry file found, skipping user code")
            return

        bundle_user_scripts(
            self.fs,
            context,
            entries,
            "iife",
            bundle_name=USER_CODE_BUNDLE_NAME,
            external=USER_CODE_EXTERNALS,
            define={"wx": "wx"},
        )

    def _step_bundle_runtime(self, context: BuildContext) -> None:
        target = context.output_dir / "libs"
        wechat_runtime = context.project_root / WECHAT_RUNTIME_DIR
        standard_runtime = context.project_root / STANDARD_RUNTIME_DIR

        if self.fs.path_exists(wechat_runtime):
            count = self.fs.copy_directory(wechat_runtime, target, ["*.js"])
            context.report_progress(f"Copied WeChat runtime: {count} files")
        elif self.fs.path_exists(standard_runtime):
            count = self.fs.copy_directory(standard_runtime, target, ["*.js"])
            context.report_progress(f"Copied standard runtime: {count} files")
            context.add_warning(
                "Using the standard runtime, some WeChat-specific features may not work"
            )
        else:
            context.add_warning("Runtime not found")
            return
        for path in self.fs.list_files_by_extension(target, ["js"], recursive=True):
            context.record_output(path)

    def _step_copy_wasm(self, context: BuildContext) -> None:
        modules_dir = self.modules_dir(context.project_root)
        if self.fs.path_exists(modules_dir):
            classification = classify_modules(
                discover_modules(self.fs, modules_dir),
                context.config.enabled_modules,
                context.config.disabled_modules,
            )
            copy_wasm_files(self.fs, context, classification.all_modules, modules_dir)
        else:
            logger.debug(f"No modules directory at {modules_dir}, no declared WASM files")

        engine_wasm = context.project_root / ENGINE_WASM_DIR
        if self.fs.path_exists(engine_wasm):
            count = self.fs.copy_directory(engine_wasm, context.output_dir / "wasm", ["*.wasm"])
            context.report_progress(f"Copied engine WASM: {count} files")

        context.add_warning("iOS WeChat requires WXWebAssembly for loading WASM")

    def _step_copy_assets(self, context: BuildContext) -> None:
        for name in ("scenes", "assets"):
            source = context.project_root / name
            if not self.fs.path_exists(source):
                logger.debug(f"No {name} directory, nothing to copy")
                continue
            count = self.fs.copy_directory(source, context.output_dir / name)
            context.report_progress(f"Copied {name}: {count} files")

    def _write_json(self, context: BuildContext, name: str, content: dict) -> None:
        path = context.output_dir / name
        self.fs.write_json_file(path, json.dumps(content, indent=2))
        context.record_output(path)
        context.report_progress(f"Generated {name}")

    def _step_game_json(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WeChatBuildConfig)
        game_json: dict = {
            "deviceOrientation": "portrait",
            "showStatusBar": False,
            "networkTimeout": {
                "request": NETWORK_TIMEOUT_MS,
                "connectSocket": NETWORK_TIMEOUT_MS,
                "uploadFile": NETWORK_TIMEOUT_MS,
                "downloadFile": NETWORK_TIMEOUT_MS,
            },
            "enableWebAssembly": True,
        }
        if config.use_subpackages:
            game_json["subpackages"] = []
        if config.use_plugins:
            game_json["plugins"] = {}
        self._write_json(context, "game.json", game_json)

    def _step_game_js(self, context: BuildContext) -> None:
        main_scene = find_main_scene(self.fs, context.output_dir)
        path = context.output_dir / "game.js"
        self.fs.write_file(
            path,
            GAME_JS_TEMPLATE.format(wasm_file=ENGINE_WASM_FILE, main_scene=json.dumps(main_scene)),
        )
        context.record_output(path)
        context.report_progress("Generated game.js")

    def _step_project_config(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WeChatBuildConfig)
        project_config = {
            "description": "ESEngine Game",
            "packOptions": {"ignore": [], "include": []},
            "setting": {
                "urlCheck": False,
                "es6": True,
                "enhance": True,
                "postcss": False,
                "preloadBackgroundData": False,
                "minified": config.is_release,
                "newFeature": True,
                "autoAudits": False,
                "coverView": True,
                "showShadowRootInWxmlPanel": True,
                "scopeDataCheck": False,
                "checkInvalidKey": True,
                "checkSiteMap": True,
                "uploadWithSourceMap": not config.is_release,
                "compileHotReLoad": False,
                "babelSetting": {"ignore": [], "disablePlugins": [], "outputPath": ""},
            },
            "compileType": "game",
            "libVersion": WECHAT_LIB_VERSION,
            "appid": config.app_id,
            "projectname": "ESEngine Game",
            "condition": {},
        }
        self._write_json(context, "project.config.json", project_config)

    def _step_check_subpackages(self, context: BuildContext) -> None:
        config = context.config
        assert isinstance(config, WeChatBuildConfig)
        size = self.fs.get_directory_size(context.output_dir)
        limit = config.main_package_limit * 1024
        if size > limit:
            context.add_warning(
                f"Package is {format_bytes(size)}, over the main package limit of "
                f"{config.main_package_limit} KB; move content into subpackages"
            )
        else:
            context.report_progress(
                f"Package size {format_bytes(size)} is within {config.main_package_limit} KB"
            )

    def _step_optimize(self, context: BuildContext) -> None:
        # Minification already happened while bundling
        context.report_progress("Optimization complete")
