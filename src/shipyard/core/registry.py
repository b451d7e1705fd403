"""Platform -> pipeline registry."""

import logging

from ..models import BuildPlatform, PlatformAvailability
from .pipeline import BuildPipeline

logger = logging.getLogger(__name__)


class PipelineRegistry:
    """Maps each platform to the pipeline that builds it.

    Registering a platform twice replaces the earlier pipeline.
    """

    def __init__(self) -> None:
        self._pipelines: dict[BuildPlatform, BuildPipeline] = {}

    def register(self, pipeline: BuildPipeline) -> None:
        if pipeline.platform in self._pipelines:
            logger.warning(f"Overwriting build pipeline for platform: {pipeline.platform.value}")
        self._pipelines[pipeline.platform] = pipeline
        logger.debug(f"Registered build pipeline: {pipeline.display_name}")

    def get(self, platform: BuildPlatform) -> BuildPipeline | None:
        return self._pipelines.get(platform)

    def get_all(self) -> list[BuildPipeline]:
        return list(self._pipelines.values())

    def has(self, platform: BuildPlatform) -> bool:
        return platform in self._pipelines

    def get_available_platforms(self) -> list[PlatformAvailability]:
        """Ask every registered pipeline whether it can build here.

        A pipeline whose check raises is reported as unavailable.
        """
        platforms = []
        for pipeline in self._pipelines.values():
            try:
                availability = pipeline.check_availability()
            except Exception as e:
                logger.warning(f"Availability check failed for {pipeline.platform.value}: {e}")
                availability = PlatformAvailability(
                    platform=pipeline.platform,
                    display_name=pipeline.display_name,
                    available=False,
                    reason=str(e),
                )
            platforms.append(availability)
        return platforms
