"""Pydantic data models for shipyard builds.

This package defines the data structures shared by pipelines, the build
service and the CLI:
- Platform and status enums (BuildPlatform, BuildStatus)
- Build configuration (BuildConfig, WebBuildConfig, WeChatBuildConfig)
- Module manifests (ModuleManifest, WasmConfig, WasmFileSpec)
- Progress and results (BuildProgress, BuildResult, BuildStats)
- Bundler requests (BundleOptions, BundleResult)
- Asset catalog (AssetCatalog, AssetCatalogEntry, AssetMeta)

Example:
    >>> from shipyard.models import WebBuildConfig
    >>> config = WebBuildConfig(output_path="./build/web")
    >>> config.model_dump_json()
"""

from .build_config import (
    ASSET_LOADING_STRATEGIES,
    SINGLE_BUNDLE,
    SPLIT_BUNDLES,
    WEB_BUILD_MODES,
    BuildConfig,
    WebBuildConfig,
    WeChatBuildConfig,
)
from .bundle import BundleFormat, BundleOptions, BundleResult
from .catalog import CATALOG_VERSION, AssetCatalog, AssetCatalogEntry, AssetMeta
from .manifest import DEFAULT_PACKAGE_SCOPE, ModuleManifest, WasmConfig, WasmFileSpec
from .platform import BuildPlatform, BuildStatus
from .progress import BuildProgress
from .result import BuildResult, BuildStats, PlatformAvailability

__all__ = [
    "ASSET_LOADING_STRATEGIES",
    "CATALOG_VERSION",
    "DEFAULT_PACKAGE_SCOPE",
    "SINGLE_BUNDLE",
    "SPLIT_BUNDLES",
    "WEB_BUILD_MODES",
    "AssetCatalog",
    "AssetCatalogEntry",
    "AssetMeta",
    "BuildConfig",
    "BuildPlatform",
    "BuildProgress",
    "BuildResult",
    "BuildStats",
    "BuildStatus",
    "BundleFormat",
    "BundleOptions",
    "BundleResult",
    "ModuleManifest",
    "PlatformAvailability",
    "WasmConfig",
    "WasmFileSpec",
    "WeChatBuildConfig",
    "WebBuildConfig",
]
