"""Shared state threaded through the steps of one build."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..cancellation import CancelToken
from ..models import BuildConfig
from .errors import StepDataError

_MISSING = object()


class StepData:
    """Keyed store steps use to hand results to later steps.

    Keys are write-once: a value published by one step is read-only for
    every step after it.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        if key in self._values:
            raise StepDataError(f"Step data key already written: {key}")
        self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def require(self, key: str) -> Any:
        value = self._values.get(key, _MISSING)
        if value is _MISSING:
            raise StepDataError(f"Step data key not available: {key}")
        return value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class BuildContext:
    """Everything a step may see or touch.

    Attributes:
        config: Frozen build config for this run.
        project_root: Project directory holding assets/, scenes/, scripts/.
        temp_dir: Scratch directory for intermediate files.
        output_dir: Build output directory.
        report_progress: Log a progress line (message, optional percent).
        add_warning: Record a non-fatal warning.
        cancel_token: Cancellation flag for this build.
        data: Write-once store for inter-step results.
        output_files: Files produced so far, recorded by the steps.
    """

    config: BuildConfig
    project_root: Path
    temp_dir: Path
    output_dir: Path
    report_progress: Callable[..., None]
    add_warning: Callable[[str], None]
    cancel_token: CancelToken = field(default_factory=CancelToken)
    data: StepData = field(default_factory=StepData)
    output_files: list[Path] = field(default_factory=list)

    def record_output(self, path: Path | None) -> None:
        """Remember a file written into the output directory."""
        if path is not None and path not in self.output_files:
            self.output_files.append(path)

    def relative_outputs(self) -> list[str]:
        """Recorded outputs as forward-slash paths relative to ``output_dir``."""
        result = []
        for path in self.output_files:
            try:
                result.append(path.relative_to(self.output_dir).as_posix())
            except ValueError:
                result.append(path.as_posix())
        return result
