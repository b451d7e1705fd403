"""Tests for the pipeline step harness."""

from pathlib import Path

from shipyard.cancellation import CancelToken
from shipyard.core import BuildContext, StepDataError, resolve_build_paths
from shipyard.models import BuildProgress, BuildStatus, WebBuildConfig


class TestResolveBuildPaths:
    """Tests for resolve_build_paths."""

    def test_explicit_project_root_wins(self, tmp_path: Path) -> None:
        root, output = resolve_build_paths("./build/web", tmp_path)
        assert root == tmp_path
        assert output == tmp_path / "build" / "web"

    def test_root_derived_from_build_segment(self) -> None:
        root, output = resolve_build_paths("/game/build/web")
        assert root == Path("/game")
        assert output == Path("/game/build/web")

    def test_last_build_segment_used(self) -> None:
        root, _ = resolve_build_paths("/build/game/build/web")
        assert root == Path("/build/game")

    def test_falls_back_to_current_directory(self) -> None:
        root, output = resolve_build_paths("dist")
        assert root == Path(".")
        assert output == Path("dist")


class TestHarness:
    """Tests for BuildPipeline.build run directly."""

    def test_invalid_config_returns_failed_result_without_disk_access(
        self, tmp_path: Path, make_pipeline
    ) -> None:
        """The pipeline's own build() should report validation errors as a result."""
        pipeline = make_pipeline([], errors=["bad config"])
        progress: list[BuildProgress] = []

        result = pipeline.build(WebBuildConfig(output_path="build/web"), progress.append)

        assert result.status == BuildStatus.FAILED
        assert result.error == "bad config"
        assert progress[-1].status == BuildStatus.FAILED
        assert not (tmp_path / "build").exists()

    def test_pre_cancelled_token_runs_no_steps(self, make_pipeline, recording_step) -> None:
        log: list[str] = []
        token = CancelToken()
        token.cancel()
        pipeline = make_pipeline([recording_step(log, "a")])

        result = pipeline.build(WebBuildConfig(output_path="build/web"), cancel_token=token)

        assert result.status == BuildStatus.CANCELLED
        assert log == []

    def test_build_log_written_on_success(
        self, tmp_path: Path, make_pipeline, recording_step
    ) -> None:
        def warn(context: BuildContext) -> None:
            context.add_warning("heads up")

        pipeline = make_pipeline([recording_step([], "warn", warn)])

        result = pipeline.build(WebBuildConfig(output_path="build/web"))

        log_text = (tmp_path / "build" / "web" / "build.log").read_text()
        assert "=== Build Log ===" in log_text
        assert "Platform: Scripted" in log_text
        assert "Step 1/1: Run warn" in log_text
        assert "[WARNING] heads up" in log_text
        assert "=== Build Completed ===" in log_text
        assert "Warnings: 1" in log_text
        assert "build.log" in result.output_files
        assert result.warnings == ["heads up"]

    def test_build_log_written_on_failure(
        self, tmp_path: Path, make_pipeline, recording_step
    ) -> None:
        def boom(context: BuildContext) -> None:
            raise RuntimeError("kaput")

        pipeline = make_pipeline([recording_step([], "boom", boom)])

        pipeline.build(WebBuildConfig(output_path="build/web"))

        log_text = (tmp_path / "build" / "web" / "build.log").read_text()
        assert "=== Build Failed ===" in log_text
        assert "Error: Step 'boom' failed: kaput" in log_text

    def test_step_data_is_shared_and_write_once(self, make_pipeline, recording_step) -> None:
        """Later steps should read earlier data but not overwrite it."""
        seen: dict = {}

        def publish(context: BuildContext) -> None:
            context.data.set("modules", ["core"])

        def consume(context: BuildContext) -> None:
            seen["modules"] = context.data.require("modules")
            try:
                context.data.set("modules", [])
            except StepDataError as e:
                seen["error"] = e

        pipeline = make_pipeline(
            [recording_step([], "publish", publish), recording_step([], "consume", consume)]
        )

        result = pipeline.build(WebBuildConfig(output_path="build/web"))

        assert result.success
        assert seen["modules"] == ["core"]
        assert isinstance(seen["error"], StepDataError)

    def test_stats_collected(self, make_pipeline, recording_step) -> None:
        def write_js(context: BuildContext) -> None:
            path = context.output_dir / "libs" / "app.js"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("12345")
            context.record_output(path)

        pipeline = make_pipeline([recording_step([], "js", write_js)])

        result = pipeline.build(WebBuildConfig(output_path="build/web"))

        assert result.stats is not None
        assert result.stats.js_size == 5
        assert result.stats.wasm_size == 0
        assert result.stats.total_size >= 5
