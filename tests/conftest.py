"""Shared test fixtures for shipyard tests."""

import json
import re
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shipyard.cancellation import CancelToken
from shipyard.core import BuildContext, BuildPipeline, BuildStep
from shipyard.models import (
    BuildConfig,
    BuildPlatform,
    BundleOptions,
    BundleResult,
    WebBuildConfig,
)
from shipyard.services import LocalBuildFileSystem

IMPORT_PATTERN = re.compile(r"""from ['"]([^'"]+)['"]""")

CORE_A_SOURCE = 'export const CORE_A = "core-a-implementation";\n'
PLUGIN_B_SOURCE = (
    'import { CORE_A } from "@eng/core-a";\n'
    "export const PluginB = { name: CORE_A };\n"
)


class FakeBundlerFileSystem(LocalBuildFileSystem):
    """Local file system whose bundler concatenates sources instead of running esbuild.

    Import specifiers found in ``packages`` are inlined unless they are
    external, which is enough to observe what a real bundler would pull in.
    """

    def __init__(
        self,
        packages: dict[str, Path] | None = None,
        fail: set[str] | None = None,
    ) -> None:
        super().__init__()
        self.packages = packages or {}
        self.fail = fail or set()
        self.calls: list[BundleOptions] = []
        self.before_bundle: Callable[[BundleOptions, CancelToken | None], None] | None = None

    def bundle_scripts(
        self, options: BundleOptions, cancel_token: CancelToken | None = None
    ) -> BundleResult:
        self.calls.append(options)
        if self.before_bundle is not None:
            self.before_bundle(options, cancel_token)
        if options.bundle_name in self.fail:
            return BundleResult(success=False, error=f"cannot bundle {options.bundle_name}")

        seen: set[str] = set()
        parts = [
            self._inline(self.read_file(entry), options.external, seen)
            for entry in options.entry_points
        ]
        output = options.output_file
        self.write_file(output, "\n".join(parts))
        return BundleResult(success=True, output_file=output, output_size=output.stat().st_size)

    def _inline(self, source: str, external: list[str], seen: set[str]) -> str:
        chunks = [source]
        for specifier in IMPORT_PATTERN.findall(source):
            if specifier in external or specifier in seen or specifier not in self.packages:
                continue
            seen.add(specifier)
            chunks.append(f"// inlined {specifier}")
            chunks.append(self._inline(self.read_file(self.packages[specifier]), external, seen))
        return "\n".join(chunks)

    def find_bundler(self, project_root: Path) -> str | None:
        return None


class ScriptedPipeline(BuildPipeline):
    """Pipeline running a fixed list of steps, for harness and service tests."""

    platform = BuildPlatform.WEB
    display_name = "Scripted"

    def __init__(
        self,
        fs: LocalBuildFileSystem,
        project_root: Path,
        steps: list[BuildStep],
        errors: list[str] | None = None,
        platform: BuildPlatform = BuildPlatform.WEB,
    ) -> None:
        super().__init__(fs, project_root)
        self.steps = steps
        self.errors = errors or []
        self.platform = platform

    def get_default_config(self) -> BuildConfig:
        return WebBuildConfig()

    def validate_config(self, config: BuildConfig) -> list[str]:
        errors = list(self.errors)
        if not config.output_path:
            errors.append("Output path is required")
        return errors

    def get_steps(self, config: BuildConfig) -> list[BuildStep]:
        return list(self.steps)


def write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def local_fs() -> LocalBuildFileSystem:
    return LocalBuildFileSystem()


@pytest.fixture
def make_pipeline(tmp_path: Path) -> Callable[..., ScriptedPipeline]:
    """Factory for pipelines built from explicit steps rooted at tmp_path."""

    def factory(
        steps: list[BuildStep],
        errors: list[str] | None = None,
        platform: BuildPlatform = BuildPlatform.WEB,
    ) -> ScriptedPipeline:
        return ScriptedPipeline(LocalBuildFileSystem(), tmp_path, steps, errors, platform)

    return factory


@pytest.fixture
def recording_step() -> Callable[..., BuildStep]:
    """Factory for steps that append their id to a log before running an action."""

    def factory(
        log: list[str],
        step_id: str,
        action: Callable[[BuildContext], None] | None = None,
        optional: bool = False,
    ) -> BuildStep:
        def execute(context: BuildContext) -> None:
            log.append(step_id)
            if action is not None:
                action(context)

        return BuildStep(step_id, f"Run {step_id}", execute, optional)

    return factory


@pytest.fixture
def web_project(tmp_path: Path) -> Path:
    """Project with one core module, one plugin, an asset with a sidecar, a scene and a script."""
    root = tmp_path / "game"
    modules = root / "modules"

    write_json(
        modules / "core-a" / "module.json",
        {"id": "core-a", "name": "@eng/core-a", "isCore": True},
    )
    (modules / "core-a" / "index.js").write_text(CORE_A_SOURCE)

    write_json(
        modules / "plugin-b" / "module.json",
        {
            "id": "plugin-b",
            "name": "@eng/plugin-b",
            "isCore": False,
            "externalDependencies": ["@eng/core-a"],
            "pluginExport": "PluginB",
        },
    )
    (modules / "plugin-b" / "index.js").write_text(PLUGIN_B_SOURCE)

    assets = root / "assets"
    assets.mkdir(parents=True)
    (assets / "sprite.png").write_bytes(b"PNGDATA")
    write_json(assets / "sprite.png.meta", {"guid": "G1", "type": "texture"})

    scenes = root / "scenes"
    scenes.mkdir()
    (scenes / "main.ecs").write_text("{}")

    scripts = root / "scripts"
    scripts.mkdir()
    (scripts / "main.ts").write_text("export function register(runtime) {}\n")

    return root


@pytest.fixture
def fake_fs(web_project: Path) -> FakeBundlerFileSystem:
    modules = web_project / "modules"
    return FakeBundlerFileSystem(
        packages={
            "@eng/core-a": modules / "core-a" / "index.js",
            "@eng/plugin-b": modules / "plugin-b" / "index.js",
        }
    )
