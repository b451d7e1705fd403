"""Build task record owned by the build service."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..cancellation import CancelToken
from ..models import BuildConfig, BuildPlatform, BuildProgress, BuildResult, BuildStatus


def generate_task_id(platform: BuildPlatform) -> str:
    """Generate a unique task id like ``build-web-20260101-120000-1a2b3c``."""
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"build-{platform.value}-{timestamp}-{uuid.uuid4().hex[:6]}"


@dataclass
class BuildTask:
    """One build, from ``build()`` until it lands in the history.

    The task is mutated in place while the pipeline runs. Its status only
    ever moves forward: progress reports that would move it back are
    clamped, and once terminal it no longer changes.
    """

    id: str
    platform: BuildPlatform
    config: BuildConfig
    progress: BuildProgress = field(
        default_factory=lambda: BuildProgress(status=BuildStatus.PREPARING, message="Starting")
    )
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    cancel_token: CancelToken = field(default_factory=CancelToken)
    result: BuildResult | None = None

    @property
    def status(self) -> BuildStatus:
        return self.progress.status

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    def apply_progress(self, progress: BuildProgress) -> BuildProgress:
        """Record a progress report, keeping the status forward-only.

        Returns:
            The progress as stored on the task
        """
        status = self.progress.status.advance(progress.status)
        self.progress = progress.model_copy(update={"status": status})
        return self.progress

    def mark_cancelled(self) -> None:
        self.cancel_token.cancel()
        self.progress = self.progress.model_copy(
            update={
                "status": self.progress.status.advance(BuildStatus.CANCELLED),
                "message": "Cancelling",
            }
        )

    def finish(self, result: BuildResult) -> None:
        """Store the final result and settle the terminal status."""
        self.result = result
        self.end_time = datetime.now()
        self.progress = self.progress.model_copy(
            update={
                "status": self.progress.status.advance(result.status),
                "warnings": list(result.warnings),
                "error": result.error,
            }
        )
