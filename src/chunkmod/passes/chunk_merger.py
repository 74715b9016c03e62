"""
Chunk-to-module merging.

Moves all code of a chunk into its first input, wrapped in a MODULE_BODY, and
marks that input as an ES module. Inputs must still be scripts at this point.
"""

import logging
from typing import Dict, Optional

from ..analysis.chunk_graph import Chunk, CompilerInput
from ..shared.errors import ModuleSyntaxError, check_state
from ..shared.features import Feature
from ..shared.nodes import NodeId, Prop, Token
from .base import CompilerContext

logger = logging.getLogger(__name__)


def module_body_of(ctx: CompilerContext, chunk: Chunk) -> NodeId:
    """MODULE_BODY of a converted chunk (first child of its first input)."""
    check_state(not chunk.is_empty(), f"chunk '{chunk.name}' has no inputs")
    body = ctx.arena.first_child(chunk.get_input(0).root)
    check_state(
        ctx.arena.is_module_body(body),
        f"chunk '{chunk.name}' has not been converted to a module",
    )
    return body


class ChunkToModuleMerger:

    def __init__(self, ctx: CompilerContext):
        self._ctx = ctx
        self._arena = ctx.arena

    def convert(self) -> Dict[Chunk, NodeId]:
        """Convert every non-empty chunk. Returns the module body per chunk."""
        bodies: Dict[Chunk, NodeId] = {}
        for chunk in self._ctx.chunk_graph.get_all_chunks():
            if chunk.is_empty():
                continue
            bodies[chunk] = self.convert_chunk(chunk)
        logger.debug(f"[ChunkMerger] converted {len(bodies)} chunks to modules")
        return bodies

    def convert_chunk(self, chunk: Chunk) -> NodeId:
        arena = self._arena
        first_input: Optional[CompilerInput] = None
        module_body: Optional[NodeId] = None
        for inp in chunk.inputs:
            script = inp.root
            check_state(arena.token(script) is Token.SCRIPT, f"input '{inp.name}' root is not a SCRIPT")
            script_features = inp.feature_set(arena)
            if script_features.contains(Feature.MODULES):
                raise ModuleSyntaxError(inp.name)

            if first_input is None:
                first_input = inp
                arena.put_prop(script, Prop.FEATURE_SET, script_features.with_feature(Feature.MODULES))
                module_body = arena.new(Token.MODULE_BODY, location=arena.location(script))
                arena.add_children_to_back(module_body, arena.remove_children(script))
                arena.add_child_to_front(script, module_body)
            else:
                combined = first_input.feature_set(arena).union(script_features)
                arena.put_prop(script, Prop.FEATURE_SET, combined)
                # The carrier holds this input's code now, so it carries its features too.
                arena.put_prop(first_input.root, Prop.FEATURE_SET, combined)
                module_body = arena.first_child(first_input.root)
                check_state(arena.is_module_body(module_body), "carrier lost its MODULE_BODY")
                arena.add_children_to_back(module_body, arena.remove_children(script))
                inp.merged_into = first_input

        check_state(module_body is not None, f"chunk '{chunk.name}' has no inputs")
        return module_body
