"""Build pipeline contract and the shared step harness.

A pipeline is a platform-specific list of steps plus a default config and
a validator. ``BuildPipeline.build`` runs the steps in order against one
``BuildContext``:

1. Validate the config (invalid -> failed result, no filesystem access)
2. Before each step, report progress and check the cancel token
3. Execute the step; any exception fails the build (optional steps only warn)
4. Write ``build.log`` on completion, failure and cancellation alike

The harness never raises for step-level problems: every outcome is a
``BuildResult``.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..cancellation import CancelToken
from ..constants import BUILD_LOG_FILE
from ..models import (
    BuildConfig,
    BuildPlatform,
    BuildProgress,
    BuildResult,
    BuildStats,
    BuildStatus,
    PlatformAvailability,
)
from ..services.filesystem import BuildFileSystem
from .build_log import BuildLog
from .context import BuildContext
from .errors import StepExecutionError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BuildProgress], None]


@dataclass(frozen=True)
class BuildStep:
    """One unit of pipeline work.

    Attributes:
        id: Stable identifier (e.g. ``bundle-runtime``).
        name: Human-readable description shown in progress.
        execute: Callable run with the shared build context.
        optional: If True, a failure is recorded as a warning instead of
            failing the build.
    """

    id: str
    name: str
    execute: Callable[[BuildContext], None]
    optional: bool = False


def resolve_build_paths(output_path: str, project_root: Path | None = None) -> tuple[Path, Path]:
    """Work out the project root and output directory for a build.

    An explicit ``project_root`` wins and relative output paths are taken
    relative to it. Otherwise the project root is everything before the
    last ``build`` segment of the output path (``/game/build/web`` ->
    ``/game``), falling back to the current directory.

    Returns:
        Tuple of (project_root, output_dir)
    """
    output = Path(output_path)
    if project_root is not None:
        return project_root, project_root / output

    parts = output.parts
    if "build" in parts:
        build_index = len(parts) - 1 - parts[::-1].index("build")
        if build_index > 0:
            return Path(*parts[:build_index]), output
    return Path("."), output


class BuildPipeline(ABC):
    """Base class for platform pipelines.

    Subclasses provide ``platform``, ``display_name``, the default config,
    validation and the step list; the step harness lives here.

    Args:
        fs: File-system and bundler collaborator
        project_root: Project directory; derived from the output path if None
    """

    platform: BuildPlatform
    display_name: str
    description: str = ""
    log_title: str = "Build Log"

    def __init__(self, fs: BuildFileSystem, project_root: Path | None = None) -> None:
        self.fs = fs
        self.project_root = project_root

    @abstractmethod
    def get_default_config(self) -> BuildConfig:
        """Return the default config for this platform."""

    @abstractmethod
    def validate_config(self, config: BuildConfig) -> list[str]:
        """Return validation errors; an empty list means the config is valid."""

    @abstractmethod
    def get_steps(self, config: BuildConfig) -> list[BuildStep]:
        """Return the ordered steps for ``config``."""

    def status_for_step(self, step_id: str) -> BuildStatus:
        """Map a step id to the status reported while it runs."""
        return BuildStatus.COMPILING

    def check_availability(self) -> PlatformAvailability:
        return PlatformAvailability(
            platform=self.platform, display_name=self.display_name, available=True
        )

    def describe_config(self, config: BuildConfig) -> dict[str, str]:
        """Extra ``build.log`` header lines for this platform."""
        return {}

    def build(
        self,
        config: BuildConfig,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> BuildResult:
        """Run every step of the pipeline.

        Args:
            config: Build configuration
            on_progress: Called before each step and once at the end
            cancel_token: Checked between steps

        Returns:
            BuildResult describing success, failure or cancellation
        """
        start = time.monotonic()
        cancel_token = cancel_token or CancelToken()

        errors = self.validate_config(config)
        if errors:
            message = "; ".join(errors)
            logger.error(f"[{self.platform.value}] Invalid build config: {message}")
            _emit(
                on_progress,
                BuildProgress(status=BuildStatus.FAILED, message="Invalid build config", error=message),
            )
            return self._result(config, BuildStatus.FAILED, start, [], error=message)

        project_root, output_dir = resolve_build_paths(config.output_path, self.project_root)
        steps = self.get_steps(config)
        total = len(steps)
        warnings: list[str] = []
        build_log = BuildLog(
            self.log_title,
            {
                "Platform": self.display_name,
                **self.describe_config(config),
                "Output path": str(output_dir),
                "Project root": str(project_root),
            },
        )

        def report_progress(message: str, percent: int | None = None) -> None:
            suffix = f" ({percent}%)" if percent is not None else ""
            build_log.log(f"{message}{suffix}")
            logger.info(f"[{self.platform.value}] {message}")

        def add_warning(message: str) -> None:
            warnings.append(message)
            build_log.warning(message)
            logger.warning(f"[{self.platform.value}] {message}")

        context = BuildContext(
            config=config,
            project_root=project_root,
            temp_dir=project_root / "temp" / f"build-{self.platform.value}",
            output_dir=output_dir,
            report_progress=report_progress,
            add_warning=add_warning,
            cancel_token=cancel_token,
        )

        status = BuildStatus.PREPARING
        current = 0
        try:
            for index, step in enumerate(steps):
                current = index + 1
                status = status.advance(self.status_for_step(step.id))
                _emit(
                    on_progress,
                    BuildProgress(
                        status=status,
                        message=step.name,
                        progress_percent=round(index / total * 100),
                        current_step=current,
                        total_steps=total,
                        warnings=list(warnings),
                    ),
                )
                # Checked after reporting so a callback can still stop this step
                if cancel_token.cancelled:
                    return self._cancelled(
                        config, context, build_log, warnings, start, on_progress, step.name
                    )
                report_progress(f"Step {current}/{total}: {step.name}")

                try:
                    step.execute(context)
                except Exception as e:
                    if cancel_token.cancelled:
                        # Interrupted bundler calls fail; report the cancellation instead
                        return self._cancelled(
                            config, context, build_log, warnings, start, on_progress, step.name
                        )
                    if not step.optional:
                        raise StepExecutionError(step.id, e) from e
                    add_warning(f"Optional step '{step.id}' failed: {e}")

            if cancel_token.cancelled:
                return self._cancelled(config, context, build_log, warnings, start, on_progress, None)

        except StepExecutionError as e:
            error = str(e)
            logger.error(f"[{self.platform.value}] Build failed: {error}")
            build_log.failed(error)
            self._write_log(context, build_log)
            _emit(
                on_progress,
                BuildProgress(
                    status=BuildStatus.FAILED,
                    message="Build failed",
                    progress_percent=round((current - 1) / total * 100) if total else 0,
                    current_step=current,
                    total_steps=total,
                    warnings=list(warnings),
                    error=error,
                ),
            )
            return self._result(
                config,
                BuildStatus.FAILED,
                start,
                warnings,
                error=error,
                output_files=context.relative_outputs(),
            )

        stats = self._collect_stats(context)
        build_log.completed(
            time.monotonic() - start, stats.total_size if stats else None, len(warnings)
        )
        self._write_log(context, build_log)
        _emit(
            on_progress,
            BuildProgress(
                status=BuildStatus.COMPLETED,
                message="Build completed",
                progress_percent=100,
                current_step=total,
                total_steps=total,
                warnings=list(warnings),
            ),
        )
        logger.info(f"[{self.platform.value}] Build completed: {context.output_dir}")
        return self._result(
            config,
            BuildStatus.COMPLETED,
            start,
            warnings,
            stats=stats,
            output_files=context.relative_outputs(),
        )

    # ------------------------------------------------------------------
    # Harness helpers
    # ------------------------------------------------------------------

    def _cancelled(
        self,
        config: BuildConfig,
        context: BuildContext,
        build_log: BuildLog,
        warnings: list[str],
        start: float,
        on_progress: ProgressCallback | None,
        step_name: str | None,
    ) -> BuildResult:
        logger.warning(f"[{self.platform.value}] Build cancelled")
        build_log.cancelled(step_name)
        self._write_log(context, build_log)
        _emit(
            on_progress,
            BuildProgress(
                status=BuildStatus.CANCELLED,
                message="Build cancelled",
                warnings=list(warnings),
            ),
        )
        return self._result(
            config,
            BuildStatus.CANCELLED,
            start,
            warnings,
            error="Build cancelled",
            output_files=context.relative_outputs(),
        )

    def _write_log(self, context: BuildContext, build_log: BuildLog) -> None:
        log_path = context.output_dir / BUILD_LOG_FILE
        try:
            self.fs.write_file(log_path, build_log.render())
        except OSError as e:
            logger.warning(f"Could not write build log to {log_path}: {e}")
            return
        context.record_output(log_path)

    def _collect_stats(self, context: BuildContext) -> BuildStats | None:
        output_dir = context.output_dir
        try:
            total_size = self.fs.get_directory_size(output_dir)
            js_size = sum(
                self.fs.get_file_size(p)
                for p in context.output_files
                if p.suffix == ".js" and self.fs.path_exists(p)
            )
            wasm_dir = output_dir / "libs" / "wasm"
            wasm_size = self.fs.get_directory_size(wasm_dir) if self.fs.path_exists(wasm_dir) else 0
            assets_dir = output_dir / "assets"
            assets_size = (
                self.fs.get_directory_size(assets_dir) if self.fs.path_exists(assets_dir) else 0
            )
        except OSError as e:
            logger.debug(f"Could not compute build stats: {e}")
            return None
        return BuildStats(
            total_size=total_size, js_size=js_size, wasm_size=wasm_size, assets_size=assets_size
        )

    def _result(
        self,
        config: BuildConfig,
        status: BuildStatus,
        start: float,
        warnings: list[str],
        error: str | None = None,
        stats: BuildStats | None = None,
        output_files: list[str] | None = None,
    ) -> BuildResult:
        return BuildResult(
            success=status == BuildStatus.COMPLETED,
            status=status,
            platform=config.platform,
            output_path=config.output_path,
            duration=time.monotonic() - start,
            output_files=output_files or [],
            warnings=list(warnings),
            error=error,
            stats=stats,
        )


def _emit(on_progress: ProgressCallback | None, progress: BuildProgress) -> None:
    if on_progress is not None:
        on_progress(progress)
