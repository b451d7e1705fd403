"""Core build logic for shipyard.

This package holds the build machinery; all disk and bundler access goes
through an injected BuildFileSystem:
- pipeline: BuildPipeline contract and the step harness
- registry / service: pipeline registry and the single-build orchestrator
- context / task / build_log: per-build state, task record and build.log
- module_discovery / classifier: manifest discovery and core/plugin split
- import_map / bundling / wasm: split and single bundling strategies
- asset_catalog / html: asset catalog and bootstrap page generation
"""

from .asset_catalog import build_asset_catalog, get_asset_type, hash_file_info
from .build_log import BuildLog, format_bytes
from .bundling import BundlingError, find_entry_point, generate_core_entry
from .classifier import ModuleClassification, classify_modules
from .context import BuildContext, StepData
from .errors import (
    BuildError,
    ConcurrentBuildError,
    ConfigValidationError,
    PipelineNotFoundError,
    StepDataError,
    StepExecutionError,
)
from .import_map import generate_import_map, render_import_map
from .module_discovery import ModuleDiscoveryError, discover_modules, find_module_manifests
from .pipeline import BuildPipeline, BuildStep, ProgressCallback, resolve_build_paths
from .registry import PipelineRegistry
from .service import BuildService
from .task import BuildTask
from .wasm import copy_wasm_files

__all__ = [
    "BuildContext",
    "BuildError",
    "BuildLog",
    "BuildPipeline",
    "BuildService",
    "BuildStep",
    "BuildTask",
    "BundlingError",
    "ConcurrentBuildError",
    "ConfigValidationError",
    "ModuleClassification",
    "ModuleDiscoveryError",
    "PipelineNotFoundError",
    "PipelineRegistry",
    "ProgressCallback",
    "StepData",
    "StepDataError",
    "StepExecutionError",
    "build_asset_catalog",
    "classify_modules",
    "copy_wasm_files",
    "discover_modules",
    "find_entry_point",
    "find_module_manifests",
    "format_bytes",
    "generate_core_entry",
    "generate_import_map",
    "get_asset_type",
    "hash_file_info",
    "render_import_map",
    "resolve_build_paths",
]
