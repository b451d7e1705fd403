"""Configuration management for shipyard."""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field

from .constants import BUNDLER_TIMEOUT, CONFIG_FILE, DEFAULT_MODULES_DIR
from .models import (
    SPLIT_BUNDLES,
    BuildConfig,
    BuildPlatform,
    WebBuildConfig,
    WeChatBuildConfig,
)


class ProjectConfig(BaseModel):
    """Project-level configuration."""

    name: str = "unnamed-game"


class ModulesConfig(BaseModel):
    """Engine module selection."""

    path: str = Field(default=DEFAULT_MODULES_DIR, description="Engine modules directory")
    enabled: list[str] = Field(default_factory=list, description="Allow-list (empty = all)")
    disabled: list[str] = Field(default_factory=list, description="Deny-list")


class BundlerConfig(BaseModel):
    """Configuration for the esbuild executable."""

    exec: str = "esbuild"  # Used when the project has no local install
    timeout: int = BUNDLER_TIMEOUT


class WebConfig(BaseModel):
    """Defaults for ``shipyard build web``."""

    output_path: str = "./build/web"
    build_mode: str = SPLIT_BUNDLES
    is_release: bool = True
    source_map: bool = False
    minify: bool = True
    generate_html: bool = True
    asset_loading_strategy: str = "on-demand"
    generate_asset_catalog: bool = True
    scenes: list[str] = Field(default_factory=list, description="Scenes to copy (empty = all)")
    asset_extensions: list[str] | None = None
    asset_type_map: dict[str, str] | None = None


class WeChatConfig(BaseModel):
    """Defaults for ``shipyard build wechat-minigame``."""

    output_path: str = "./build/wechat"
    app_id: str = ""
    is_release: bool = True
    source_map: bool = False
    use_subpackages: bool = False
    main_package_limit: int = 4096
    use_plugins: bool = False


class ShipyardConfig(BaseModel):
    """Root configuration for shipyard."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    modules: ModulesConfig = Field(default_factory=ModulesConfig)
    bundler: BundlerConfig = Field(default_factory=BundlerConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    wechat: WeChatConfig = Field(default_factory=WeChatConfig)

    def build_config(self, platform: BuildPlatform, **overrides: object) -> BuildConfig:
        """Build config for ``platform`` from the file's section.

        Keyword overrides (e.g. ``is_release=False``) win over the file;
        None values are ignored.

        Raises:
            ValueError: If no section exists for ``platform``
        """
        selection = {
            "enabled_modules": self.modules.enabled,
            "disabled_modules": self.modules.disabled,
        }
        changes = {k: v for k, v in overrides.items() if v is not None}
        if platform == BuildPlatform.WEB:
            return WebBuildConfig(**{**self.web.model_dump(), **selection, **changes})
        if platform == BuildPlatform.WECHAT_MINIGAME:
            return WeChatBuildConfig(**{**self.wechat.model_dump(), **selection, **changes})
        raise ValueError(f"No configuration section for platform: {platform.value}")


def load_config(project_root: Path) -> ShipyardConfig:
    """Load config from shipyard.toml.

    Args:
        project_root: Directory containing shipyard.toml

    Returns:
        Loaded configuration, or defaults if shipyard.toml doesn't exist
    """
    config_path = project_root / CONFIG_FILE
    if not config_path.exists():
        return ShipyardConfig()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return ShipyardConfig.model_validate(data)


def write_config_template(project_root: Path, name: str = "your-game") -> Path:
    """Write default shipyard.toml template.

    Args:
        project_root: Directory to write shipyard.toml into
        name: Project name to put in the template

    Returns:
        Path to the written config file
    """
    config_path = project_root / CONFIG_FILE
    template = {
        "project": {"name": name},
        "modules": {"path": DEFAULT_MODULES_DIR, "enabled": [], "disabled": []},
        "bundler": {"exec": "esbuild", "timeout": BUNDLER_TIMEOUT},
        "web": {
            "output_path": "./build/web",
            "build_mode": SPLIT_BUNDLES,
            "is_release": True,
            "source_map": False,
            "minify": True,
            "generate_html": True,
            "asset_loading_strategy": "on-demand",
            "generate_asset_catalog": True,
        },
        "wechat": {
            "output_path": "./build/wechat",
            "app_id": "",
            "use_subpackages": False,
            "main_package_limit": 4096,
        },
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
