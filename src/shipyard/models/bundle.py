"""Bundler request and response models."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

BundleFormat = Literal["esm", "iife"]


class BundleOptions(BaseModel):
    """Arguments for one bundler invocation.

    The output file is ``output_dir / f"{bundle_name}.js"``.
    """

    entry_points: list[Path]
    output_dir: Path
    format: BundleFormat = "esm"
    bundle_name: str
    minify: bool = False
    source_map: bool = False
    external: list[str] = Field(default_factory=list)
    project_root: Path
    define: dict[str, str] = Field(default_factory=dict)
    global_name: str | None = None

    @property
    def output_file(self) -> Path:
        return self.output_dir / f"{self.bundle_name}.js"


class BundleResult(BaseModel):
    success: bool
    output_file: Path | None = None
    output_size: int | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
