"""Exports for test fakes."""

from .filesystem import InMemoryFileSystem

__all__ = ["InMemoryFileSystem"]
