"""Import map generation for split-bundle web builds."""

import json
import logging

from ..models import DEFAULT_PACKAGE_SCOPE, ModuleManifest

logger = logging.getLogger(__name__)

CORE_BUNDLE_PATH = "./libs/esengine.core.js"


def plugin_bundle_path(module_id: str) -> str:
    return f"./libs/plugins/{module_id}.js"


def generate_import_map(
    core_modules: list[ModuleManifest], plugin_modules: list[ModuleManifest]
) -> dict[str, str]:
    """Map package names to bundle paths.

    Every core package maps to the shared core bundle and every plugin
    package to its own bundle. A plugin's external dependencies that are
    still unmapped are assumed to be plugins named after the package with
    the ``@esengine/`` scope stripped. A package name already mapped is
    never remapped.

    Modules without a declared ``name`` are mapped under their
    ``package_name`` fallback (``@esengine/<id>``) so that imports written
    against the default scope still resolve.
    """
    imports: dict[str, str] = {}

    def add(package: str, path: str) -> None:
        existing = imports.get(package)
        if existing is None:
            imports[package] = path
        elif existing != path:
            logger.warning(f"Package {package} already maps to {existing}, ignoring {path}")

    for module in core_modules:
        add(module.package_name, CORE_BUNDLE_PATH)
    for module in plugin_modules:
        add(module.package_name, plugin_bundle_path(module.id))

    for module in plugin_modules:
        for dep in module.external_dependencies or []:
            if dep not in imports:
                dep_id = dep.removeprefix(DEFAULT_PACKAGE_SCOPE)
                imports[dep] = plugin_bundle_path(dep_id)

    return imports


def render_import_map(imports: dict[str, str], indent: int = 8) -> str:
    """Serialize as the JSON body of ``<script type="importmap">``."""
    return json.dumps({"imports": imports}, indent=indent)
