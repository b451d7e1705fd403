"""Platform build pipelines.

- web: Web / H5 (split-bundles or single-bundle)
- wechat: WeChat mini-game
"""

from pathlib import Path

from ..config import ShipyardConfig
from ..core import BuildService, PipelineRegistry
from ..services.filesystem import BuildFileSystem, LocalBuildFileSystem
from .web import WebBuildPipeline
from .wechat import WeChatBuildPipeline


def create_build_service(
    fs: BuildFileSystem | None = None,
    project_root: Path | None = None,
    modules_path: Path | None = None,
    config: ShipyardConfig | None = None,
) -> BuildService:
    """Create a build service with the Web and WeChat pipelines registered.

    Args:
        fs: File-system collaborator; a LocalBuildFileSystem using the
            configured bundler if None
        project_root: Project directory handed to every pipeline
        modules_path: Engine modules directory (default: from config)
        config: Project configuration (default: built-in defaults)

    Returns:
        BuildService ready to build
    """
    config = config or ShipyardConfig()
    if fs is None:
        fs = LocalBuildFileSystem(
            esbuild_exec=config.bundler.exec, bundler_timeout=config.bundler.timeout
        )
    if modules_path is None:
        modules_path = Path(config.modules.path)

    registry = PipelineRegistry()
    registry.register(WebBuildPipeline(fs, project_root, modules_path))
    registry.register(WeChatBuildPipeline(fs, project_root, modules_path))
    return BuildService(registry)


__all__ = ["WeChatBuildPipeline", "WebBuildPipeline", "create_build_service"]
