"""Constants for shipyard builds."""

# Subprocess timeouts (seconds)
BUNDLER_TIMEOUT = 300  # 5 minutes per esbuild invocation
BUNDLER_VERSION_TIMEOUT = 10
BUNDLER_POLL_INTERVAL = 0.1
GRACEFUL_SHUTDOWN_TIMEOUT = 5.0

# Build service
HISTORY_LIMIT = 10

# Project layout
CONFIG_FILE = "shipyard.toml"
DEFAULT_MODULES_DIR = "modules"
MODULE_MANIFEST = "module.json"
MODULE_INDEX_FILE = "modules.index.json"
BUILD_LOG_FILE = "build.log"

# Directories skipped when scanning module and asset trees
SKIPPED_SCAN_DIRS = frozenset({"node_modules", "target", ".git"})
