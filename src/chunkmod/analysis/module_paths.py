"""
Module Path Resolution

Computes the module specifier one chunk uses to import another. Chunk module
names are treated as URI-style paths ('/' separated, no filesystem access).
Specifiers always start with './', '../' or '/', because anything else would
be loaded as a bare package name.

This module is stateless.
"""

import logging
import posixpath
from typing import List, Optional

from ..utils.config import MODULE_FILE_EXTENSION, RELATIVE_PREFIX
from .chunk_graph import Chunk

logger = logging.getLogger(__name__)


class UnresolvableModulePathError(ValueError):
    """Raised when one path cannot be expressed relative to another."""

    def __init__(self, from_path: str, to_path: str, reason: str):
        super().__init__(f"cannot relativize '{to_path}' against '{from_path}': {reason}")
        self.from_path = from_path
        self.to_path = to_path


def chunk_module_name(chunk: Chunk) -> str:
    """File name a chunk is emitted under, e.g. 'chunk1' -> 'chunk1.js'."""
    return chunk.name + MODULE_FILE_EXTENSION


def _parent(path: str) -> Optional[str]:
    """Parent directory, or None for a bare file name."""
    head, _ = posixpath.split(path)
    if not head:
        return None
    return head


def _split(path: str) -> List[str]:
    return [p for p in path.split("/") if p and p != "."]


def relativize(base_dir: str, target: str) -> str:
    """
    Path of target relative to base_dir.

    Raises UnresolvableModulePathError when one path is absolute and the other
    is not, or when base_dir climbs above its own root with '..'.
    """
    if base_dir.startswith("/") != target.startswith("/"):
        raise UnresolvableModulePathError(base_dir, target, "paths have different roots")
    base_parts = _split(posixpath.normpath(base_dir))
    target_parts = _split(posixpath.normpath(target))
    if ".." in base_parts:
        raise UnresolvableModulePathError(base_dir, target, "base directory is not normalizable")

    common = 0
    for a, b in zip(base_parts, target_parts):
        if a != b:
            break
        common += 1
    parts = [".."] * (len(base_parts) - common) + target_parts[common:]
    return "/".join(parts)


def relative_path(from_uri_path: str, to_uri_path: str) -> str:
    """
    Specifier for importing to_uri_path from a module at from_uri_path.

        relative_path('m0.js', 'm1.js')          -> './m1.js'
        relative_path('a/m0.js', 'a/b/m1.js')    -> './b/m1.js'
        relative_path('a/m0.js', 'c/m1.js')      -> '../c/m1.js'
    """
    from_folder = _parent(from_uri_path)
    if from_folder is None:
        return RELATIVE_PREFIX + to_uri_path

    calculated = relativize(from_folder, to_uri_path)
    if calculated.startswith(".") or calculated.startswith("/"):
        return calculated
    return RELATIVE_PREFIX + calculated


def resolve_specifier(from_uri_path: str, specifier: str) -> str:
    """Inverse of relative_path: the normalized path a specifier points to."""
    if specifier.startswith("/"):
        return posixpath.normpath(specifier)
    from_folder = _parent(from_uri_path) or ""
    return posixpath.normpath(posixpath.join(from_folder, specifier))
