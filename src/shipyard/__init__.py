"""Shipyard: per-platform build pipelines for engine projects."""

__version__ = "0.1.0"
