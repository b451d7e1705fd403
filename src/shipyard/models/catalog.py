"""Asset catalog models.

The catalog is written to ``asset-catalog.json`` and read by the runtime's
asset loader, so its JSON keys are fixed (``createdAt``, ``loadStrategy``).
"""

from pydantic import BaseModel, ConfigDict, Field

CATALOG_VERSION = "1.0.0"


class AssetMeta(BaseModel):
    """Contents of a ``*.meta`` sidecar written by the editor."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    guid: str = ""
    type: str | None = None
    import_settings: dict | None = Field(default=None, alias="importSettings")
    labels: list[str] = Field(default_factory=list)
    version: int | None = None
    last_modified: int | None = Field(default=None, alias="lastModified")


class AssetCatalogEntry(BaseModel):
    guid: str
    path: str = Field(description="Output-relative path with forward slashes")
    type: str
    size: int
    hash: str = Field(description="Identity hash over (path, size), not content")


class AssetCatalog(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str = CATALOG_VERSION
    created_at: int = Field(alias="createdAt", description="Milliseconds since epoch")
    load_strategy: str = Field(default="file", alias="loadStrategy")
    entries: dict[str, AssetCatalogEntry] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
