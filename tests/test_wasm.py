"""Tests for WASM artifact copying."""

from pathlib import Path

from shipyard.core import BuildContext, copy_wasm_files
from shipyard.models import ModuleManifest, WebBuildConfig


def make_context(tmp_path: Path, warnings: list[str]) -> BuildContext:
    return BuildContext(
        config=WebBuildConfig(output_path="out"),
        project_root=tmp_path,
        temp_dir=tmp_path / "temp",
        output_dir=tmp_path / "out",
        report_progress=lambda message, percent=None: None,
        add_warning=warnings.append,
    )


def wasm_module(src, dst: str = "libs/wasm/engine.wasm", requires: bool = True) -> ModuleManifest:
    return ModuleManifest.model_validate(
        {
            "id": "engine",
            "requiresWasm": requires,
            "wasmConfig": {"files": [{"src": src, "dst": dst}]},
        }
    )


class TestCopyWasmFiles:
    """Tests for copy_wasm_files."""

    def test_first_existing_candidate_copied(self, tmp_path: Path, local_fs) -> None:
        """Candidates are tried in order; the first one that exists wins."""
        modules_dir = tmp_path / "modules"
        (modules_dir / "pkg").mkdir(parents=True)
        (modules_dir / "pkg" / "second.wasm").write_bytes(b"second")
        (modules_dir / "pkg" / "third.wasm").write_bytes(b"third")
        warnings: list[str] = []
        context = make_context(tmp_path, warnings)

        copied = copy_wasm_files(
            local_fs,
            context,
            [wasm_module(["pkg/first.wasm", "pkg/second.wasm", "pkg/third.wasm"])],
            modules_dir,
        )

        target = tmp_path / "out" / "libs" / "wasm" / "engine.wasm"
        assert copied == [target]
        assert target.read_bytes() == b"second"
        assert target in context.output_files
        assert warnings == []

    def test_missing_candidates_warn(self, tmp_path: Path, local_fs) -> None:
        warnings: list[str] = []
        context = make_context(tmp_path, warnings)

        copied = copy_wasm_files(
            local_fs, context, [wasm_module(["a.wasm", "b.wasm"])], tmp_path / "modules"
        )

        assert copied == []
        assert warnings == ["WASM file not found for engine: a.wasm or b.wasm"]

    def test_modules_without_requires_wasm_ignored(self, tmp_path: Path, local_fs) -> None:
        (tmp_path / "modules").mkdir()
        (tmp_path / "modules" / "a.wasm").write_bytes(b"x")
        warnings: list[str] = []
        context = make_context(tmp_path, warnings)

        copied = copy_wasm_files(
            local_fs, context, [wasm_module("a.wasm", requires=False)], tmp_path / "modules"
        )

        assert copied == []
        assert not (tmp_path / "out").exists()
