"""Build progress snapshot reported to callers before each step."""

from pydantic import BaseModel, Field

from .platform import BuildStatus


class BuildProgress(BaseModel):
    """Progress of a running build.

    Attributes:
        status: Current lifecycle status.
        message: Human-readable name of the current step.
        progress_percent: Overall progress (0-100).
        current_step: 1-indexed step number.
        total_steps: Number of steps in the pipeline.
        warnings: Warnings collected so far.
        error: Error message when the build failed.
    """

    status: BuildStatus = BuildStatus.IDLE
    message: str = ""
    progress_percent: int = Field(default=0, ge=0, le=100)
    current_step: int = 0
    total_steps: int = 0
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
