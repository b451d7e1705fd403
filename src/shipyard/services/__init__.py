"""External integrations for shipyard.

This package provides the I/O side of a build:
- filesystem: BuildFileSystem protocol and the local-disk implementation
- esbuild: esbuild subprocess runner
"""

from .esbuild import EsbuildError, build_esbuild_args, find_esbuild, run_esbuild
from .filesystem import BuildFileSystem, LocalBuildFileSystem, matches_patterns

__all__ = [
    "BuildFileSystem",
    "EsbuildError",
    "LocalBuildFileSystem",
    "build_esbuild_args",
    "find_esbuild",
    "matches_patterns",
    "run_esbuild",
]
