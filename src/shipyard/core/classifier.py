"""Split discovered modules into core and plugin sets."""

import logging
from dataclasses import dataclass, field

from ..models import ModuleManifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleClassification:
    """Modules selected for one build.

    Attributes:
        all_modules: Every selected module, in discovery order.
        core: Modules bundled into the shared core runtime.
        plugins: Modules bundled separately and resolved via the import map.
    """

    all_modules: list[ModuleManifest] = field(default_factory=list)
    core: list[ModuleManifest] = field(default_factory=list)
    plugins: list[ModuleManifest] = field(default_factory=list)


def classify_modules(
    manifests: list[ModuleManifest],
    enabled: list[str] | None = None,
    disabled: list[str] | None = None,
) -> ModuleClassification:
    """Apply the allow/deny lists and partition by ``is_core``.

    A disabled module is always skipped. With a non-empty ``enabled`` list,
    modules not on it are skipped unless they are core.
    """
    enabled = enabled or []
    disabled = disabled or []
    selected: list[ModuleManifest] = []
    core: list[ModuleManifest] = []
    plugins: list[ModuleManifest] = []

    for manifest in manifests:
        if manifest.id in disabled:
            logger.debug(f"Skipping disabled module: {manifest.id}")
            continue
        if enabled and manifest.id not in enabled and not manifest.is_core:
            logger.debug(f"Skipping non-enabled module: {manifest.id}")
            continue
        selected.append(manifest)
        (core if manifest.is_core else plugins).append(manifest)

    return ModuleClassification(all_modules=selected, core=core, plugins=plugins)
