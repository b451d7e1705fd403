"""File-system and bundler collaborator for build pipelines.

Pipelines never touch the disk or the bundler directly: every I/O call
goes through a ``BuildFileSystem``. ``LocalBuildFileSystem`` is the
default implementation backed by pathlib/shutil and the esbuild executable.
"""

import base64
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Protocol

from ..constants import SKIPPED_SCAN_DIRS
from ..cancellation import CancelToken
from ..models import BundleOptions, BundleResult
from .esbuild import EsbuildError, find_esbuild, run_esbuild

logger = logging.getLogger(__name__)


class BuildFileSystem(Protocol):
    """I/O and bundling primitives consumed by pipelines."""

    def prepare_build_directory(self, output_path: Path) -> None: ...

    def copy_directory(self, src: Path, dst: Path, patterns: list[str] | None = None) -> int: ...

    def bundle_scripts(
        self, options: BundleOptions, cancel_token: CancelToken | None = None
    ) -> BundleResult: ...

    def list_files_by_extension(
        self, dir_path: Path, extensions: list[str], recursive: bool = False
    ) -> list[Path]: ...

    def generate_html(
        self, output_path: Path, title: str, scripts: list[str], body_content: str | None = None
    ) -> None: ...

    def get_file_size(self, path: Path) -> int: ...

    def get_directory_size(self, path: Path) -> int: ...

    def write_json_file(self, path: Path, content: str) -> None: ...

    def copy_file(self, src: Path, dst: Path) -> None: ...

    def path_exists(self, path: Path) -> bool: ...

    def read_file(self, path: Path) -> str: ...

    def write_file(self, path: Path, content: str) -> None: ...

    def read_json(self, path: Path) -> Any: ...

    def create_directory(self, path: Path) -> None: ...

    def read_binary_file_as_base64(self, path: Path) -> str: ...

    def delete_file(self, path: Path) -> None: ...

    def find_bundler(self, project_root: Path) -> str | None:
        """Return a reason string if the bundler is unavailable, else None."""
        ...


def matches_patterns(file_name: str, patterns: list[str] | None) -> bool:
    """Check a file name against copy patterns.

    ``*.ext`` matches by suffix; any other pattern matches as a substring.
    No patterns means everything matches.
    """
    if patterns is None:
        return True
    for pattern in patterns:
        if pattern.startswith("*."):
            if file_name.endswith(pattern[1:]):
                return True
        elif pattern in file_name:
            return True
    return False


def _normalize_extensions(extensions: list[str]) -> set[str]:
    return {ext.lower().lstrip(".") for ext in extensions}


def _is_skipped_dir(name: str) -> bool:
    return name.startswith(".") or name in SKIPPED_SCAN_DIRS


class LocalBuildFileSystem:
    """BuildFileSystem over the local disk, bundling with esbuild.

    Args:
        esbuild_exec: esbuild executable name or path used when the project
            has no local install
        bundler_timeout: Per-invocation timeout in seconds
    """

    def __init__(self, esbuild_exec: str = "esbuild", bundler_timeout: float | None = None) -> None:
        self.esbuild_exec = esbuild_exec
        self.bundler_timeout = bundler_timeout

    def prepare_build_directory(self, output_path: Path) -> None:
        """Remove and recreate the output directory."""
        if output_path.exists():
            shutil.rmtree(output_path)
        output_path.mkdir(parents=True)

    def copy_directory(self, src: Path, dst: Path, patterns: list[str] | None = None) -> int:
        """Recursively copy files matching ``patterns``; return the file count.

        Hidden directories are skipped.

        Raises:
            FileNotFoundError: If ``src`` does not exist
        """
        if not src.is_dir():
            raise FileNotFoundError(f"Source directory does not exist: {src}")
        dst.mkdir(parents=True, exist_ok=True)

        count = 0
        for entry in sorted(src.iterdir()):
            target = dst / entry.name
            if entry.is_dir():
                if entry.name.startswith("."):
                    continue
                target.mkdir(parents=True, exist_ok=True)
                count += self.copy_directory(entry, target, patterns)
            elif matches_patterns(entry.name, patterns):
                shutil.copy2(entry, target)
                count += 1
        return count

    def bundle_scripts(
        self, options: BundleOptions, cancel_token: CancelToken | None = None
    ) -> BundleResult:
        try:
            exec_path = find_esbuild(options.project_root, self.esbuild_exec)
            return run_esbuild(
                options, exec_path, timeout=self.bundler_timeout, cancel_token=cancel_token
            )
        except EsbuildError as e:
            return BundleResult(success=False, error=str(e))

    def list_files_by_extension(
        self, dir_path: Path, extensions: list[str], recursive: bool = False
    ) -> list[Path]:
        """List files whose extension is in ``extensions``.

        Extensions may be given with or without a leading dot. Recursion
        skips hidden directories, node_modules and target. A missing
        directory yields an empty list.
        """
        if not dir_path.is_dir():
            return []
        wanted = _normalize_extensions(extensions)
        files: list[Path] = []
        for entry in sorted(dir_path.iterdir()):
            if entry.is_dir():
                if recursive and not _is_skipped_dir(entry.name):
                    files.extend(self.list_files_by_extension(entry, extensions, recursive))
            elif entry.suffix.lower().lstrip(".") in wanted:
                files.append(entry)
        return files

    def generate_html(
        self, output_path: Path, title: str, scripts: list[str], body_content: str | None = None
    ) -> None:
        """Write a minimal HTML page loading ``scripts`` in order."""
        scripts_html = "\n".join(f'    <script src="{s}"></script>' for s in scripts)
        body = body_content or (
            '    <canvas id="game-canvas" style="width: 100%; height: 100%;"></canvas>'
        )
        html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        html, body {{ width: 100%; height: 100%; overflow: hidden; background: #000; }}
    </style>
</head>
<body>
{body}
{scripts_html}
</body>
</html>"""
        self.write_file(output_path, html)

    def get_file_size(self, path: Path) -> int:
        return path.stat().st_size

    def get_directory_size(self, path: Path) -> int:
        if not path.is_dir():
            raise FileNotFoundError(f"Directory does not exist: {path}")
        return sum(p.stat().st_size for p in path.rglob("*") if p.is_file())

    def write_json_file(self, path: Path, content: str) -> None:
        self.write_file(path, content)

    def copy_file(self, src: Path, dst: Path) -> None:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def read_file(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_file(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def read_json(self, path: Path) -> Any:
        return json.loads(self.read_file(path))

    def create_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def read_binary_file_as_base64(self, path: Path) -> str:
        return base64.b64encode(path.read_bytes()).decode("ascii")

    def delete_file(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    def find_bundler(self, project_root: Path) -> str | None:
        try:
            find_esbuild(project_root, self.esbuild_exec)
        except EsbuildError as e:
            return str(e)
        return None
