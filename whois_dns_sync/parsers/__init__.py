"""
Input parsers.

This package reads registry files and change metadata, and rebuilds the
content of deleted registry files from their patches.
"""

from .patch import PatchParser, recover_deleted_content
from .registry import RegistryReader, load_changed_files, select_registry_files

__all__ = [
    "PatchParser",
    "RegistryReader",
    "load_changed_files",
    "recover_deleted_content",
    "select_registry_files",
]
