"""Build error taxonomy.

Only the first three are raised to callers of ``BuildService.build``;
everything that happens inside a step ends up in the ``BuildResult``.
"""


class BuildError(Exception):
    """Base exception for build errors."""


class ConfigValidationError(BuildError):
    """Build config rejected by the pipeline's validator."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid build config: " + "; ".join(self.errors))


class ConcurrentBuildError(BuildError):
    """A build is already running on this service."""


class PipelineNotFoundError(BuildError):
    """No pipeline is registered for the requested platform."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"No build pipeline registered for platform: {platform}")


class StepExecutionError(BuildError):
    """A pipeline step raised."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"Step '{step_id}' failed: {cause}")


class StepDataError(BuildError):
    """A step tried to overwrite data published by an earlier step."""
