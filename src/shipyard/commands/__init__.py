"""CLI command implementations for shipyard.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .build import build
from .init import init
from .modules import modules
from .platforms import platforms

__all__ = [
    "build",
    "init",
    "modules",
    "platforms",
]
