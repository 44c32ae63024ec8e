"""Watcher implementations used by the private-network agent."""

from .metadata import MetadataWatcher  # noqa: F401

__all__ = ["MetadataWatcher"]
