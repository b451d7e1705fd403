"""Line-by-line build trace written to ``build.log``."""

from datetime import datetime


def format_bytes(size: int) -> str:
    """Format a byte count for humans (B, KB, MB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


class BuildLog:
    """Collects timestamped progress and warning lines for one build.

    The log is always written to the output directory, whether the build
    completes, fails or is cancelled.
    """

    def __init__(self, title: str, header: dict[str, str]) -> None:
        self.lines: list[str] = [
            f"=== {title} ===",
            f"Build started: {datetime.now().isoformat()}",
        ]
        self.lines.extend(f"{key}: {value}" for key, value in header.items())
        self.lines.append("")

    def log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        self.lines.append(f"[{timestamp}] {message}")

    def warning(self, message: str) -> None:
        self.log(f"[WARNING] {message}")

    def completed(self, duration: float, total_size: int | None, warning_count: int) -> None:
        size = format_bytes(total_size) if total_size else "unknown"
        self.lines.extend(
            [
                "",
                "=== Build Completed ===",
                f"Duration: {duration:.2f}s",
                f"Total size: {size}",
                f"Warnings: {warning_count}",
            ]
        )

    def failed(self, error: str) -> None:
        self.lines.extend(["", "=== Build Failed ===", f"Error: {error}"])

    def cancelled(self, step_name: str | None) -> None:
        where = f" at step: {step_name}" if step_name else ""
        self.lines.extend(["", "=== Build Cancelled ===", f"Cancelled{where}"])

    def render(self) -> str:
        return "\n".join(self.lines) + "\n"
