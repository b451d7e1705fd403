"""Build service: owns the single in-flight build and the build history.

``BuildService.build`` refuses to start (by raising) in exactly three
cases, all checked before any task state or file is touched:

- another build is current (``ConcurrentBuildError``)
- no pipeline is registered for the platform (``PipelineNotFoundError``)
- the pipeline rejects the config (``ConfigValidationError``)

Once started, a build always returns a ``BuildResult``.
"""

import logging
import threading
from collections import deque
from datetime import datetime

from ..constants import HISTORY_LIMIT
from ..models import (
    BuildConfig,
    BuildPlatform,
    BuildProgress,
    BuildResult,
    BuildStatus,
    PlatformAvailability,
)
from .errors import ConcurrentBuildError, ConfigValidationError, PipelineNotFoundError
from .pipeline import BuildPipeline, ProgressCallback
from .registry import PipelineRegistry
from .task import BuildTask, generate_task_id

logger = logging.getLogger(__name__)


class BuildService:
    """Runs builds one at a time through registered pipelines.

    Args:
        registry: Pipelines to build with; an empty registry if None
        history_limit: Number of finished tasks kept, newest first
    """

    def __init__(
        self, registry: PipelineRegistry | None = None, history_limit: int = HISTORY_LIMIT
    ) -> None:
        self.registry = registry if registry is not None else PipelineRegistry()
        self._lock = threading.Lock()
        self._current: BuildTask | None = None
        self._history: deque[BuildTask] = deque(maxlen=history_limit)

    # Registry interface

    def register(self, pipeline: BuildPipeline) -> None:
        self.registry.register(pipeline)

    def get(self, platform: BuildPlatform) -> BuildPipeline | None:
        return self.registry.get(platform)

    def get_all(self) -> list[BuildPipeline]:
        return self.registry.get_all()

    def has(self, platform: BuildPlatform) -> bool:
        return self.registry.has(platform)

    def get_available_platforms(self) -> list[PlatformAvailability]:
        return self.registry.get_available_platforms()

    # Builds

    def build(
        self, config: BuildConfig, on_progress: ProgressCallback | None = None
    ) -> BuildResult:
        """Run a build to completion.

        Args:
            config: Build configuration; its platform selects the pipeline
            on_progress: Called with each progress update of the task

        Returns:
            BuildResult (failed and cancelled builds included)

        Raises:
            ConcurrentBuildError: If a build is already running
            PipelineNotFoundError: If no pipeline handles ``config.platform``
            ConfigValidationError: If the pipeline rejects ``config``
        """
        with self._lock:
            if self._current is not None:
                raise ConcurrentBuildError(
                    f"A build is already in progress: {self._current.id}"
                )
            pipeline = self.registry.get(config.platform)
            if pipeline is None:
                raise PipelineNotFoundError(config.platform.value)
            errors = pipeline.validate_config(config)
            if errors:
                raise ConfigValidationError(errors)

            task = BuildTask(
                id=generate_task_id(config.platform), platform=config.platform, config=config
            )
            self._current = task

        logger.info(f"Build {task.id} started ({pipeline.display_name})")

        def relay(progress: BuildProgress) -> None:
            stored = task.apply_progress(progress)
            if on_progress is not None:
                on_progress(stored)

        result: BuildResult | None = None
        try:
            result = pipeline.build(config, relay, task.cancel_token)
        except Exception as e:
            logger.exception(f"Build {task.id} raised")
            status = BuildStatus.CANCELLED if task.cancel_token.cancelled else BuildStatus.FAILED
            result = BuildResult(
                success=False,
                status=status,
                platform=config.platform,
                output_path=config.output_path,
                duration=(datetime.now() - task.start_time).total_seconds(),
                warnings=list(task.progress.warnings),
                error=str(e),
            )
        finally:
            with self._lock:
                if result is not None:
                    task.finish(result)
                    self._history.appendleft(task)
                self._current = None

        logger.info(f"Build {task.id} finished: {result.status.value} in {result.duration:.2f}s")
        return result

    def cancel_build(self) -> bool:
        """Signal the current build to stop.

        Files already written are left in place.

        Returns:
            True if a running build was signalled
        """
        with self._lock:
            task = self._current
            if task is None:
                return False
            task.mark_cancelled()
        logger.info(f"Build {task.id} cancellation requested")
        return True

    def get_current_task(self) -> BuildTask | None:
        return self._current

    def get_history(self) -> list[BuildTask]:
        """Finished tasks, newest first."""
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
