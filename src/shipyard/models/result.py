"""Build result and platform availability models."""

from pydantic import BaseModel, Field

from .platform import BuildPlatform, BuildStatus


class BuildStats(BaseModel):
    """Size statistics of a build output, in bytes."""

    total_size: int = 0
    js_size: int = 0
    wasm_size: int = 0
    assets_size: int = 0


class BuildResult(BaseModel):
    """Outcome of a build.

    Always returned by ``build()``: pipeline failures and cancellation are
    states of the result, never exceptions.
    """

    success: bool = Field(description="True if every step completed")
    status: BuildStatus = Field(description="Terminal status of the build")
    platform: BuildPlatform
    output_path: str
    duration: float = Field(default=0.0, description="Wall time in seconds")
    output_files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
    stats: BuildStats | None = None

    @property
    def cancelled(self) -> bool:
        return self.status == BuildStatus.CANCELLED


class PlatformAvailability(BaseModel):
    """Whether a registered platform can build on this machine."""

    platform: BuildPlatform
    display_name: str
    available: bool
    reason: str | None = None
