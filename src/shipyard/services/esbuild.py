"""esbuild integration for shipyard.

Drives the esbuild executable as a subprocess. While it runs, the
cancellation token is polled so that a cancelled build does not have to
wait for a long bundling call to finish.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path

from ..constants import (
    BUNDLER_POLL_INTERVAL,
    BUNDLER_TIMEOUT,
    BUNDLER_VERSION_TIMEOUT,
    GRACEFUL_SHUTDOWN_TIMEOUT,
)
from ..cancellation import CancelToken
from ..models import BundleOptions, BundleResult

logger = logging.getLogger(__name__)


class EsbuildError(Exception):
    """esbuild could not be located or started."""


def find_esbuild(project_root: Path, exec_name: str = "esbuild") -> str:
    """Locate the esbuild executable.

    Prefers the project's local ``node_modules/.bin`` install, then falls
    back to ``exec_name`` on PATH.

    Raises:
        EsbuildError: If no usable executable is found
    """
    local_name = "esbuild.cmd" if os.name == "nt" else "esbuild"
    local = project_root / "node_modules" / ".bin" / local_name
    if local.exists():
        return str(local)

    found = shutil.which(exec_name)
    if found is None:
        raise EsbuildError(f"esbuild not found (looked for {local} and '{exec_name}' on PATH)")

    try:
        result = subprocess.run(
            [found, "--version"],
            capture_output=True,
            text=True,
            timeout=BUNDLER_VERSION_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise EsbuildError(f"esbuild is not runnable: {e}") from e
    if result.returncode != 0:
        raise EsbuildError(f"esbuild --version failed: {result.stderr.strip()}")
    return found


def build_esbuild_args(options: BundleOptions) -> list[str]:
    """Translate bundle options into esbuild command-line arguments."""
    args = [str(p) for p in options.entry_points]
    args.extend(
        [
            "--bundle",
            f"--outfile={options.output_file}",
            f"--format={options.format}",
            "--platform=browser",
            "--target=es2020",
            "--log-level=warning",
        ]
    )
    if options.source_map:
        args.append("--sourcemap")
    if options.minify:
        args.append("--minify")
    args.extend(f"--external:{name}" for name in options.external)
    args.extend(f"--define:{key}={value}" for key, value in options.define.items())
    if options.global_name and options.format == "iife":
        args.append(f"--global-name={options.global_name}")
    return args


def _stop_process(proc: subprocess.Popen[str]) -> None:
    """Terminate a process, escalating to kill if it does not exit."""
    proc.terminate()
    try:
        proc.wait(timeout=GRACEFUL_SHUTDOWN_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(f"esbuild (PID {proc.pid}) did not terminate, killing")
        proc.kill()
        proc.wait()


def run_esbuild(
    options: BundleOptions,
    exec_path: str,
    timeout: float | None = None,
    cancel_token: CancelToken | None = None,
) -> BundleResult:
    """Run one esbuild invocation.

    Args:
        options: What to bundle and where
        exec_path: Path to the esbuild executable
        timeout: Overall timeout in seconds (default: BUNDLER_TIMEOUT)
        cancel_token: Polled while the process runs; when set the process
            is terminated and a failed result returned

    Returns:
        BundleResult. A non-zero exit is reported as ``success=False`` with
        esbuild's stderr as the error; stderr lines on success become warnings.
    """
    timeout = timeout or BUNDLER_TIMEOUT
    options.output_dir.mkdir(parents=True, exist_ok=True)
    cmd = [exec_path, *build_esbuild_args(options)]
    logger.debug(f"esbuild [{options.bundle_name}]: {' '.join(cmd)}")

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=options.project_root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise EsbuildError(f"Failed to run esbuild: {e}") from e

    waited = 0.0
    while True:
        try:
            _stdout, stderr = proc.communicate(timeout=BUNDLER_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            waited += BUNDLER_POLL_INTERVAL
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"Cancelling esbuild for {options.bundle_name} (PID {proc.pid})")
                _stop_process(proc)
                return BundleResult(success=False, error="Bundling cancelled")
            if waited >= timeout:
                logger.error(f"esbuild timed out after {timeout} seconds")
                _stop_process(proc)
                return BundleResult(
                    success=False, error=f"esbuild timed out after {timeout} seconds"
                )

    if proc.returncode != 0:
        return BundleResult(success=False, error=stderr.strip() or f"exit code {proc.returncode}")

    output_file = options.output_file
    output_size = output_file.stat().st_size if output_file.exists() else None
    warnings = [line.strip() for line in stderr.splitlines() if line.strip()]
    return BundleResult(
        success=True,
        output_file=output_file,
        output_size=output_size,
        warnings=warnings,
    )
