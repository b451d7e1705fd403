"""Bootstrap page and local server scripts for web builds.

Both page variants catch every startup failure and show it in an error
panel instead of leaving a blank canvas.
"""

import json
import logging
from pathlib import Path

from ..models import ModuleManifest
from ..services.filesystem import BuildFileSystem
from .import_map import generate_import_map, render_import_map

logger = logging.getLogger(__name__)

DEFAULT_MAIN_SCENE = "./scenes/main.ecs"
SCENE_EXTENSIONS = [".ecs", ".scene"]
PAGE_TITLE = "ESEngine Game"
SERVER_PORT = 3000

COMMON_STYLES = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        html, body { width: 100%; height: 100%; overflow: hidden; background: #1a1a2e; }
        #game-canvas { width: 100%; height: 100%; display: block; }
        #loading {
            position: fixed; inset: 0;
            display: flex; flex-direction: column;
            align-items: center; justify-content: center;
            background: #1a1a2e; color: #eee; font-family: system-ui, sans-serif;
        }
        .spinner {
            width: 40px; height: 40px;
            border: 3px solid #333; border-top-color: #4a9eff;
            border-radius: 50%; animation: spin 1s linear infinite;
        }
        .message { margin-top: 16px; font-size: 14px; }
        @keyframes spin { to { transform: rotate(360deg); } }
        #error {
            position: fixed; inset: 0; display: none;
            flex-direction: column; align-items: center; justify-content: center;
            background: #1a1a2e; color: #ff6b6b; font-family: system-ui, sans-serif;
            padding: 20px; text-align: center;
        }
        #error.show { display: flex; }
        #error pre {
            background: rgba(0,0,0,0.3); padding: 16px; border-radius: 8px;
            max-width: 600px; white-space: pre-wrap; word-break: break-word;
        }"""

COMMON_BODY = """
    <div id="loading">
        <div class="spinner"></div>
        <div class="message" id="loading-message">Loading...</div>
    </div>
    <div id="error">
        <h2>Failed to start game</h2>
        <pre id="error-message"></pre>
    </div>
    <canvas id="game-canvas"></canvas>"""

SCRIPT_HELPERS = """
            const loading = document.getElementById('loading');
            const loadingMessage = document.getElementById('loading-message');
            const errorDiv = document.getElementById('error');
            const errorMessage = document.getElementById('error-message');

            function showError(msg) {
                loading.style.display = 'none';
                errorMessage.textContent = msg;
                errorDiv.classList.add('show');
            }

            function updateLoading(msg) {
                loadingMessage.textContent = msg;
            }"""

RUNTIME_OPTIONS = """{{
                canvasId: 'game-canvas',
                width: window.innerWidth,
                height: window.innerHeight,
                assetBaseUrl: './assets',
                assetCatalogUrl: './asset-catalog.json',
                assetLoadingStrategy: {strategy}
            }}"""

SINGLE_BUNDLE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0, user-scalable=no">
    <title>{title}</title>
    <style>{styles}
    </style>
</head>
<body>{body}

    <script src="libs/esengine.bundle.js"></script>
    <script src="libs/user-scripts.js" onerror="console.log('[Game] No user scripts')"></script>
    <script>
        (async function() {{{helpers}

            try {{
                if (typeof ESEngine === 'undefined') {{
                    throw new Error('ESEngine not loaded');
                }}

                updateLoading('Initializing...');
                {wasm_import}

                const runtime = ESEngine.create({runtime_options});

                await runtime.initialize(wasmModule);

                updateLoading('Loading scene...');
                await runtime.loadScene({main_scene});

                loading.style.display = 'none';
                runtime.start();

                window.addEventListener('resize', () => {{
                    runtime.handleResize(window.innerWidth, window.innerHeight);
                }});

                console.log('[Game] Started successfully');
            }} catch (error) {{
                console.error('[Game] Failed to start:', error);
                showError(error.message || String(error));
            }}
        }})();
    </script>
</body>
</html>
"""

SPLIT_BUNDLES_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0, user-scalable=no">
    <title>{title}</title>
    <script type="importmap">
{import_map}
    </script>
    <style>{styles}
    </style>
</head>
<body>{body}

    <script type="module">{helpers}

        try {{
            updateLoading('Loading core runtime...');
            const {{ default: ESEngine }} = await import('./libs/esengine.core.js');

            const runtime = ESEngine.create({runtime_options});

            {wasm_import}

            updateLoading('Loading plugins...');
            const plugins = {plugins};

            for (const [id, exportName] of plugins) {{
                try {{
                    const module = await import('./libs/plugins/' + id + '.js');
                    if (module[exportName]) {{
                        runtime.registerPlugin(module[exportName]);
                    }}
                }} catch (e) {{
                    console.warn('Failed to load plugin:', id, e.message);
                }}
            }}

            updateLoading('Loading user scripts...');
            try {{
                const userScripts = await import('./libs/user-scripts.js');
                if (userScripts.register) {{
                    userScripts.register(runtime);
                }}
                console.log('[Game] User scripts loaded');
            }} catch (e) {{
                console.log('[Game] No user scripts or failed to load:', e.message);
            }}

            updateLoading('Initializing...');
            await runtime.initialize(wasmModule);

            updateLoading('Loading scene...');
            await runtime.loadScene({main_scene});

            loading.style.display = 'none';
            runtime.start();

            window.addEventListener('resize', () => {{
                runtime.handleResize(window.innerWidth, window.innerHeight);
            }});

            console.log('[Game] Started successfully');
        }} catch (error) {{
            console.error('[Game] Failed to start:', error);
            showError(error.message || String(error));
        }}
    </script>
</body>
</html>
"""

START_SERVER_BAT = """@echo off
echo ============================================
echo   ESEngine Game Server
echo ============================================
echo.

where npx >nul 2>nul
if %ERRORLEVEL% neq 0 (
    echo [ERROR] Node.js is not installed.
    echo Please install from https://nodejs.org
    pause
    exit /b 1
)

echo Starting server: http://localhost:{port}
echo.
echo Open browser and go to: http://localhost:{port}
echo Press Ctrl+C to stop
echo.

npx serve . -p {port}
"""

START_SERVER_SH = """#!/bin/bash
echo "============================================"
echo "  ESEngine Game Server"
echo "============================================"
echo ""

if ! command -v npx &> /dev/null; then
    echo "[ERROR] Node.js is not installed. Please install from https://nodejs.org"
    exit 1
fi

echo "Starting local server on http://localhost:{port}"
echo ""
echo "Press Ctrl+C to stop the server"
echo ""

npx serve . -p {port}
"""

SERVER_README = """# ESEngine Game Build

## How to Run

### Option 1: Use the launch script

**Windows:** double-click `start-server.bat`

**macOS/Linux:**
```bash
chmod +x start-server.sh
./start-server.sh
```

### Option 2: Use any HTTP server

```bash
# npx serve (recommended)
npx serve . -p {port}

# Python
python -m http.server {port}

# PHP
php -S localhost:{port}
```

Then open http://localhost:{port} in your browser.

### Option 3: Deploy to hosting

Upload all files to any static hosting service:

- [Vercel](https://vercel.com)
- [Netlify](https://netlify.com)
- [GitHub Pages](https://pages.github.com)
- [Cloudflare Pages](https://pages.cloudflare.com)

## Why an HTTP server?

Browsers refuse to load ES modules over the `file://` protocol, so opening
`index.html` directly shows a blank page. Serve the directory over HTTP
instead.
"""

SERVER_SCRIPT_FILES = ("start-server.bat", "start-server.sh", "README.md")


def find_main_scene(fs: BuildFileSystem, output_dir: Path) -> str:
    """Page-relative path of the first scene in the output, sorted by name."""
    scenes = sorted(fs.list_files_by_extension(output_dir / "scenes", SCENE_EXTENSIONS))
    if not scenes:
        return DEFAULT_MAIN_SCENE
    return f"./scenes/{scenes[0].name}"


def find_wasm_runtime_path(core_modules: list[ModuleManifest]) -> str | None:
    for module in core_modules:
        if module.wasm_config is not None and module.wasm_config.runtime_path:
            return module.wasm_config.runtime_path
    return None


def _runtime_options(strategy: str) -> str:
    return RUNTIME_OPTIONS.format(strategy=json.dumps(strategy))


def generate_single_bundle_html(
    main_scene: str,
    wasm_runtime_path: str | None = None,
    asset_loading_strategy: str = "on-demand",
) -> str:
    """Page loading the IIFE bundle and user scripts with classic script tags."""
    if wasm_runtime_path:
        wasm_import = f"const wasmModule = await import({json.dumps('./' + wasm_runtime_path)});"
    else:
        wasm_import = "const wasmModule = null;"
    return SINGLE_BUNDLE_TEMPLATE.format(
        title=PAGE_TITLE,
        styles=COMMON_STYLES,
        body=COMMON_BODY,
        helpers=SCRIPT_HELPERS,
        wasm_import=wasm_import,
        runtime_options=_runtime_options(asset_loading_strategy),
        main_scene=json.dumps(main_scene),
    )


def generate_split_bundles_html(
    main_scene: str,
    core_modules: list[ModuleManifest],
    plugin_modules: list[ModuleManifest],
    wasm_runtime_path: str | None = None,
    asset_loading_strategy: str = "on-demand",
) -> str:
    """Page with an import map that loads core, plugins and user scripts as ES modules."""
    if wasm_runtime_path:
        wasm_import = (
            "updateLoading('Loading WASM module...');\n"
            f"            const wasmModule = await import({json.dumps('./' + wasm_runtime_path)});"
        )
    else:
        wasm_import = "const wasmModule = null;"
    plugins = [[m.id, m.plugin_export] for m in plugin_modules if m.plugin_export]
    imports = generate_import_map(core_modules, plugin_modules)
    return SPLIT_BUNDLES_TEMPLATE.format(
        title=PAGE_TITLE,
        import_map=render_import_map(imports),
        styles=COMMON_STYLES,
        body=COMMON_BODY,
        helpers=SCRIPT_HELPERS,
        runtime_options=_runtime_options(asset_loading_strategy),
        wasm_import=wasm_import,
        plugins=json.dumps(plugins),
        main_scene=json.dumps(main_scene),
    )


def write_server_scripts(fs: BuildFileSystem, output_dir: Path, port: int = SERVER_PORT) -> list[Path]:
    """Write the batch and shell launchers plus a README explaining them."""
    contents = {
        "start-server.bat": START_SERVER_BAT.format(port=port),
        "start-server.sh": START_SERVER_SH.format(port=port),
        "README.md": SERVER_README.format(port=port),
    }
    written = []
    for name in SERVER_SCRIPT_FILES:
        path = output_dir / name
        fs.write_file(path, contents[name])
        written.append(path)
    logger.debug(f"Generated server scripts in {output_dir}")
    return written
