"""Concrete implementations of the core's external interfaces."""
from .filesystem import LocalFileSystem

__all__ = ["LocalFileSystem"]
