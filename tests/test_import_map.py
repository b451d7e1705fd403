"""Tests for import map generation."""

import json

from hypothesis import given, settings
from hypothesis import strategies as st

from shipyard.core import generate_import_map, render_import_map
from shipyard.core.import_map import CORE_BUNDLE_PATH, plugin_bundle_path
from shipyard.models import ModuleManifest

module_ids = st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=8)


class TestGenerateImportMap:
    """Tests for generate_import_map."""

    def test_core_and_plugin_paths(self) -> None:
        core = [ModuleManifest(id="core-a", name="@eng/core-a", is_core=True)]
        plugins = [ModuleManifest(id="plugin-b", name="@eng/plugin-b")]

        imports = generate_import_map(core, plugins)

        assert imports == {
            "@eng/core-a": "./libs/esengine.core.js",
            "@eng/plugin-b": "./libs/plugins/plugin-b.js",
        }

    def test_unmapped_external_dependency_assumed_plugin(self) -> None:
        """A dependency outside the classified sets maps to a same-named plugin bundle."""
        plugins = [
            ModuleManifest(
                id="ui",
                external_dependencies=["@esengine/sprite", "@esengine/core"],
            )
        ]
        core = [ModuleManifest(id="core", is_core=True)]

        imports = generate_import_map(core, plugins)

        assert imports["@esengine/sprite"] == "./libs/plugins/sprite.js"
        assert imports["@esengine/core"] == CORE_BUNDLE_PATH

    def test_unnamed_modules_use_default_scope(self) -> None:
        """Modules without a name are keyed by the default-scope package name."""
        core = [ModuleManifest(id="engine", is_core=True)]
        plugins = [ModuleManifest(id="tilemap")]

        imports = generate_import_map(core, plugins)

        assert imports == {
            "@esengine/engine": CORE_BUNDLE_PATH,
            "@esengine/tilemap": plugin_bundle_path("tilemap"),
        }

    def test_plugin_never_remaps_core_package(self) -> None:
        """A plugin declaring the same package as a core module keeps the core mapping."""
        core = [ModuleManifest(id="core", name="@eng/shared", is_core=True)]
        plugins = [ModuleManifest(id="other", name="@eng/shared")]

        imports = generate_import_map(core, plugins)

        assert imports == {"@eng/shared": CORE_BUNDLE_PATH}

    @given(
        core_ids=st.lists(module_ids, unique=True, max_size=5),
        plugin_ids=st.lists(module_ids, unique=True, max_size=5),
    )
    @settings(max_examples=100)
    def test_one_entry_per_module_package(
        self, core_ids: list[str], plugin_ids: list[str]
    ) -> None:
        """Every classified package appears exactly once with its bundle path."""
        plugin_ids = [p for p in plugin_ids if p not in core_ids]
        core = [ModuleManifest(id=i, name=f"@core/{i}", is_core=True) for i in core_ids]
        plugins = [ModuleManifest(id=i, name=f"@plugin/{i}") for i in plugin_ids]

        imports = generate_import_map(core, plugins)

        assert len(imports) == len(core) + len(plugins)
        for module in core:
            assert imports[module.package_name] == CORE_BUNDLE_PATH
        for module in plugins:
            assert imports[module.package_name] == plugin_bundle_path(module.id)

    def test_render_wraps_in_imports_key(self) -> None:
        rendered = render_import_map({"@eng/a": "./libs/esengine.core.js"})

        assert json.loads(rendered) == {"imports": {"@eng/a": "./libs/esengine.core.js"}}
