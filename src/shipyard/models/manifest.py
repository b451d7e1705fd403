"""Module manifest model.

Each engine or plugin module ships a ``module.json`` describing how the
build should treat it. The manifest is read-only input: classification
and bundling decisions are derived from it, never written back.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_PACKAGE_SCOPE = "@esengine/"


class _ManifestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class WasmFileSpec(_ManifestModel):
    """One WASM artifact to copy.

    ``src`` is either a single path or an ordered list of candidates,
    relative to the engine modules directory; the first existing one wins.
    """

    src: str | list[str]
    dst: str

    @property
    def candidates(self) -> list[str]:
        return list(self.src) if isinstance(self.src, list) else [self.src]


class WasmConfig(_ManifestModel):
    files: list[WasmFileSpec] = Field(default_factory=list)
    runtime_path: str | None = None


class ModuleManifest(_ManifestModel):
    """Static descriptor of an engine or plugin module.

    Attributes:
        id: Directory name of the module under the modules root.
        name: npm package name used for imports and the import map.
        is_core: Core modules always go into the shared runtime bundle.
        is_runtime_entry: Default-exported from the core bundle.
        requires_wasm: Whether ``wasm_config`` files must be copied.
        core_service_exports: Names re-exported explicitly from the core entry.
        user_script_entries: Preferred user script entry file names.
        user_script_externals: Packages left external when bundling user scripts.
        external_dependencies: Packages a plugin imports at runtime.
        plugin_export: Export name registered on the runtime after import.
    """

    id: str
    name: str | None = None
    display_name: str | None = None
    version: str | None = None
    is_core: bool = False
    is_runtime_entry: bool = False
    requires_wasm: bool = False
    wasm_config: WasmConfig | None = None
    core_service_exports: list[str] | None = None
    user_script_entries: list[str] | None = None
    user_script_externals: list[str] | None = None
    external_dependencies: list[str] | None = None
    plugin_export: str | None = None

    @property
    def package_name(self) -> str:
        """Import specifier for this module."""
        return self.name or f"{DEFAULT_PACKAGE_SCOPE}{self.id}"
