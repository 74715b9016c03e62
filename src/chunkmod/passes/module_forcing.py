"""
Force every non-empty output chunk to parse as an ES module.

A chunk that neither exports nor imports anything still gets an empty export
set, so `export {};` is emitted and loaders treat the file as a module.
"""

import logging
from typing import Iterable, List

from ..analysis.chunk_graph import Chunk
from .cross_chunk_references import CrossChunkRelations

logger = logging.getLogger(__name__)


def add_empty_exports(chunks: Iterable[Chunk], relations: CrossChunkRelations) -> List[Chunk]:
    """Give each non-empty chunk without imports or exports an empty export set.

    Returns the chunks that were given one.
    """
    forced = []
    for chunk in chunks:
        if (
            not relations.has_exports(chunk)
            and not relations.has_imports(chunk)
            and not chunk.is_empty()
        ):
            relations.ensure_export_set(chunk)
            forced.append(chunk)
    if forced:
        logger.debug(f"[ModuleForcing] empty export for {[c.name for c in forced]}")
    return forced
