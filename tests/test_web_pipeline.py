"""End-to-end tests for the web pipeline."""

import json
import re
import shutil
from pathlib import Path

import pytest

from shipyard.core import BuildService, ConfigValidationError, hash_file_info
from shipyard.models import BuildProgress, BuildStatus, WebBuildConfig
from shipyard.pipelines import WebBuildPipeline, create_build_service

IMPORT_MAP_PATTERN = re.compile(r'<script type="importmap">\s*(\{.*?\})\s*</script>', re.DOTALL)


def build_web(project: Path, fs, **config) -> tuple:
    service = create_build_service(fs=fs, project_root=project)
    progress: list[BuildProgress] = []
    result = service.build(WebBuildConfig(output_path="./build/web", **config), progress.append)
    return result, progress, service


class TestSplitBundleBuild:
    """The canonical core + plugin + asset project in split-bundles mode."""

    def test_end_to_end_outputs(self, web_project: Path, fake_fs) -> None:
        result, _, _ = build_web(web_project, fake_fs, build_mode="split-bundles")
        out = web_project / "build" / "web"

        assert result.success, result.error
        assert result.status == BuildStatus.COMPLETED
        assert result.warnings == []

        core_js = (out / "libs" / "esengine.core.js").read_text()
        assert "core-a-implementation" in core_js

        plugin_js = (out / "libs" / "plugins" / "plugin-b.js").read_text()
        assert "core-a-implementation" not in plugin_js
        assert "@eng/core-a" in plugin_js

        catalog = json.loads((out / "asset-catalog.json").read_text())
        assert catalog["version"] == "1.0.0"
        assert catalog["loadStrategy"] == "file"
        assert catalog["entries"]["G1"] == {
            "guid": "G1",
            "path": "assets/sprite.png",
            "type": "texture",
            "size": 7,
            "hash": hash_file_info("assets/sprite.png", 7),
        }

        html = (out / "index.html").read_text()
        match = IMPORT_MAP_PATTERN.search(html)
        assert match is not None
        import_map = json.loads(match.group(1))
        assert import_map["imports"]["@eng/core-a"] == "./libs/esengine.core.js"
        assert import_map["imports"]["@eng/plugin-b"] == "./libs/plugins/plugin-b.js"
        assert 'const plugins = [["plugin-b", "PluginB"]];' in html
        assert 'runtime.loadScene("./scenes/main.ecs")' in html

    def test_layout_and_recorded_outputs(self, web_project: Path, fake_fs) -> None:
        result, _, _ = build_web(web_project, fake_fs)
        out = web_project / "build" / "web"

        for name in (
            "index.html",
            "build.log",
            "start-server.bat",
            "start-server.sh",
            "README.md",
            "asset-catalog.json",
            "libs/esengine.core.js",
            "libs/plugins/plugin-b.js",
            "libs/user-scripts.js",
            "assets/sprite.png",
            "scenes/main.ecs",
        ):
            assert (out / name).is_file(), name
            assert name in result.output_files, name
        assert (out / "libs" / "wasm").is_dir()
        assert not (out / "assets" / "sprite.png.meta").exists()
        assert not (out / "_core_entry.js").exists()

    def test_stats_reported(self, web_project: Path, fake_fs) -> None:
        result, _, _ = build_web(web_project, fake_fs)

        assert result.stats is not None
        assert result.stats.assets_size == 7
        assert result.stats.js_size > 0
        assert result.stats.total_size >= result.stats.js_size + result.stats.assets_size

    def test_user_scripts_bundled_as_esm(self, web_project: Path, fake_fs) -> None:
        build_web(web_project, fake_fs)

        [user] = [c for c in fake_fs.calls if c.bundle_name == "user-scripts"]
        assert user.format == "esm"
        assert user.entry_points == [web_project / "scripts" / "main.ts"]
        assert user.define == {"process.env.NODE_ENV": '"production"'}
        assert user.minify is True

    def test_progress_is_ordered_and_forward_only(self, web_project: Path, fake_fs) -> None:
        _, progress, _ = build_web(web_project, fake_fs)

        steps = [p.message for p in progress[:-1]]
        assert steps == [
            "Prepare build directory",
            "Analyze project",
            "Bundle runtime",
            "Copy assets",
            "Copy scenes",
            "Bundle user scripts",
            "Generate asset catalog",
            "Generate HTML",
            "Generate server scripts",
        ]
        ranks = [p.status.rank for p in progress]
        assert ranks == sorted(ranks)
        assert progress[-1].status == BuildStatus.COMPLETED

    def test_optional_outputs_can_be_disabled(self, web_project: Path, fake_fs) -> None:
        result, progress, _ = build_web(
            web_project, fake_fs, generate_html=False, generate_asset_catalog=False
        )
        out = web_project / "build" / "web"

        assert result.success
        assert not (out / "index.html").exists()
        assert not (out / "asset-catalog.json").exists()
        assert progress[0].total_steps == 7

    def test_plugin_bundle_failure_only_warns(self, web_project: Path, fake_fs) -> None:
        fake_fs.fail = {"plugin-b"}

        result, _, _ = build_web(web_project, fake_fs)

        assert result.success
        assert any("plugin-b" in w for w in result.warnings)

    def test_core_bundle_failure_fails_build(self, web_project: Path, fake_fs) -> None:
        fake_fs.fail = {"esengine.core"}

        result, progress, _ = build_web(web_project, fake_fs)

        assert result.success is False
        assert result.status == BuildStatus.FAILED
        assert "bundle-runtime" in result.error
        assert progress[-1].error == result.error
        log_text = (web_project / "build" / "web" / "build.log").read_text()
        assert "=== Build Failed ===" in log_text

    def test_rebuild_is_deterministic(self, web_project: Path, fake_fs) -> None:
        """Two builds of the same project give the same catalog entries."""
        build_web(web_project, fake_fs)
        out = web_project / "build" / "web"
        first = json.loads((out / "asset-catalog.json").read_text())["entries"]

        build_web(web_project, fake_fs)
        second = json.loads((out / "asset-catalog.json").read_text())["entries"]

        assert first == second

    def test_prepare_removes_stale_output(self, web_project: Path, fake_fs) -> None:
        stale = web_project / "build" / "web" / "old.js"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")

        build_web(web_project, fake_fs)

        assert not stale.exists()

    def test_disabled_plugin_not_bundled(self, web_project: Path, fake_fs) -> None:
        result, _, _ = build_web(web_project, fake_fs, disabled_modules=["plugin-b"])
        out = web_project / "build" / "web"

        assert result.success
        assert not (out / "libs" / "plugins" / "plugin-b.js").exists()
        assert "@eng/plugin-b" not in (out / "index.html").read_text()

    def test_scene_selection(self, web_project: Path, fake_fs) -> None:
        """Only listed scenes are copied; listed scenes that do not exist warn."""
        levels = web_project / "scenes" / "levels"
        levels.mkdir()
        (levels / "one.ecs").write_text("{}")
        (web_project / "scenes" / "unused.ecs").write_text("{}")

        result, _, _ = build_web(
            web_project, fake_fs, scenes=["levels/one.ecs", "missing.ecs"]
        )
        out = web_project / "build" / "web"

        assert result.success
        assert (out / "scenes" / "levels" / "one.ecs").is_file()
        assert "scenes/levels/one.ecs" in result.output_files
        assert not (out / "scenes" / "main.ecs").exists()
        assert not (out / "scenes" / "unused.ecs").exists()
        assert "Scene not found: missing.ecs" in result.warnings

    def test_cancel_during_bundling(self, web_project: Path, fake_fs) -> None:
        """Cancelling while the runtime is bundled stops before assets are copied."""
        service = create_build_service(fs=fake_fs, project_root=web_project)

        def cancel(options, token) -> None:
            service.cancel_build()

        fake_fs.before_bundle = cancel
        result = service.build(WebBuildConfig(output_path="./build/web"))

        assert result.status == BuildStatus.CANCELLED
        assert not (web_project / "build" / "web" / "assets" / "sprite.png").exists()
        assert "=== Build Cancelled ===" in (
            web_project / "build" / "web" / "build.log"
        ).read_text()


class TestMissingProjectDirs:
    """Builds of projects without optional directories."""

    def test_no_scripts_directory(self, web_project: Path, fake_fs) -> None:
        """Without scripts/ the build completes with a warning and no user bundle."""
        shutil.rmtree(web_project / "scripts")

        result, _, _ = build_web(web_project, fake_fs)
        out = web_project / "build" / "web"

        assert result.success
        assert "No scripts directory found, skipping user scripts" in result.warnings
        assert list((out / "libs").glob("user-scripts.*")) == []
        assert "skipping user scripts" in (out / "build.log").read_text()

    def test_empty_scripts_directory(self, web_project: Path, fake_fs) -> None:
        shutil.rmtree(web_project / "scripts")
        (web_project / "scripts").mkdir()

        result, _, _ = build_web(web_project, fake_fs)

        assert result.success
        assert "No user script files found, skipping user scripts" in result.warnings

    def test_no_assets_or_scenes(self, web_project: Path, fake_fs) -> None:
        shutil.rmtree(web_project / "assets")
        shutil.rmtree(web_project / "scenes")

        result, _, _ = build_web(web_project, fake_fs)

        assert result.success
        assert "No assets directory found, skipping assets" in result.warnings
        assert "No scenes directory found, skipping scenes" in result.warnings
        html = (web_project / "build" / "web" / "index.html").read_text()
        assert 'runtime.loadScene("./scenes/main.ecs")' in html

    def test_missing_modules_directory_fails(self, web_project: Path, fake_fs) -> None:
        shutil.rmtree(web_project / "modules")

        result, _, _ = build_web(web_project, fake_fs)

        assert result.status == BuildStatus.FAILED
        assert "analyze" in result.error


class TestSingleBundleBuild:
    """Single-bundle mode."""

    def test_single_bundle_outputs(self, web_project: Path, fake_fs) -> None:
        platform_dir = web_project / "modules" / "platform-web"
        platform_dir.mkdir()
        (platform_dir / "index.js").write_text('import { CORE_A } from "@eng/core-a";\n')

        result, progress, _ = build_web(web_project, fake_fs, build_mode="single-bundle")
        out = web_project / "build" / "web"

        assert result.success, result.error
        assert (out / "libs" / "esengine.bundle.js").exists()
        assert not (out / "libs" / "esengine.core.js").exists()
        assert not (out / "start-server.sh").exists()
        html = (out / "index.html").read_text()
        assert "importmap" not in html
        [user] = [c for c in fake_fs.calls if c.bundle_name == "user-scripts"]
        assert user.format == "iife"
        assert "generate-server-scripts" not in [p.message for p in progress]
        assert progress[0].total_steps == 8


class TestWebPipelineContract:
    """Validation and availability."""

    def test_validate_config(self, fake_fs) -> None:
        pipeline = WebBuildPipeline(fake_fs)

        assert pipeline.validate_config(WebBuildConfig()) == []
        errors = pipeline.validate_config(
            WebBuildConfig(output_path="", build_mode="x", asset_loading_strategy="y")
        )
        assert errors == [
            "Output path is required",
            'Build mode must be "single-bundle" or "split-bundles"',
            'Asset loading strategy must be "preload" or "on-demand"',
        ]

    def test_invalid_mode_rejected_by_service(self, web_project: Path, fake_fs) -> None:
        service = create_build_service(fs=fake_fs, project_root=web_project)

        with pytest.raises(ConfigValidationError):
            service.build(WebBuildConfig(output_path="./build/web", build_mode="both"))

        assert not (web_project / "build").exists()

    def test_default_config(self, fake_fs) -> None:
        assert WebBuildPipeline(fake_fs).get_default_config() == WebBuildConfig()

    def test_available_when_bundler_found(self, fake_fs) -> None:
        service: BuildService = create_build_service(fs=fake_fs)

        web = [a for a in service.get_available_platforms() if a.platform.value == "web"]

        assert web[0].available is True
        assert web[0].display_name == "Web / H5"
