"""Build configuration models.

A config is frozen once constructed: the service hands the same instance
to the pipeline, every step and the task record, and nothing may change it
while a build is running. Platform-specific fields live on subclasses.

Mode-like fields (``build_mode``, ``asset_loading_strategy``) are plain
strings so that a bad value surfaces as a validation message from the
pipeline rather than as a pydantic error at construction time.
"""

from pydantic import BaseModel, ConfigDict, Field

from .platform import BuildPlatform

SPLIT_BUNDLES = "split-bundles"
SINGLE_BUNDLE = "single-bundle"
WEB_BUILD_MODES = (SPLIT_BUNDLES, SINGLE_BUNDLE)

ASSET_LOADING_STRATEGIES = ("preload", "on-demand")


class BuildConfig(BaseModel):
    """Options common to every platform."""

    model_config = ConfigDict(frozen=True)

    platform: BuildPlatform = Field(description="Target platform")
    output_path: str = Field(description="Output directory")
    is_release: bool = Field(default=True, description="Release build (minify, optimize)")
    source_map: bool = Field(default=False, description="Emit source maps")
    scenes: list[str] = Field(
        default_factory=list, description="Scene paths under scenes/ to copy (empty = all)"
    )
    enabled_modules: list[str] = Field(
        default_factory=list, description="Module allow-list (empty = all)"
    )
    disabled_modules: list[str] = Field(
        default_factory=list, description="Module deny-list, wins over enabled_modules"
    )


class WebBuildConfig(BuildConfig):
    """Web / H5 build options."""

    platform: BuildPlatform = BuildPlatform.WEB
    output_path: str = "./build/web"
    build_mode: str = Field(default=SPLIT_BUNDLES, description="split-bundles or single-bundle")
    minify: bool = Field(default=True, description="Minify output (release builds only)")
    generate_html: bool = Field(default=True, description="Emit index.html bootstrap page")
    asset_loading_strategy: str = Field(default="on-demand", description="preload or on-demand")
    generate_asset_catalog: bool = Field(default=True, description="Emit asset-catalog.json")
    asset_extensions: list[str] | None = Field(
        default=None, description="Asset copy patterns, e.g. ['*.png']"
    )
    asset_type_map: dict[str, str] | None = Field(
        default=None, description="Extension -> catalog asset type"
    )


class WeChatBuildConfig(BuildConfig):
    """WeChat mini-game build options."""

    platform: BuildPlatform = BuildPlatform.WECHAT_MINIGAME
    output_path: str = "./build/wechat"
    app_id: str = Field(default="", description="WeChat AppID (wx + 16 hex chars)")
    use_subpackages: bool = Field(default=False, description="Check subpackage size limits")
    main_package_limit: int = Field(default=4096, description="Main package size limit in KB")
    use_plugins: bool = Field(default=False, description="Declare mini-game plugins")
