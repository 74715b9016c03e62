"""
Scope Resolution Pass

Builds the ScopeIndex for the whole program and installs it as the
context's BindingResolver.
"""

import logging

from ..analysis.scopes import ScopeIndex, create_scope_index
from .base import BasePass, CompilerContext

logger = logging.getLogger(__name__)


class ScopeResolutionPass(BasePass):
    requires = []

    def run(self, ctx: CompilerContext) -> None:
        if ctx.scope_index is not None:
            logger.debug("[ScopeResolution] resolver supplied by caller, skipping")
            return
        index: ScopeIndex = create_scope_index(ctx.arena, ctx.chunk_graph.get_all_inputs())
        ctx.scope_index = index
        ctx.set_analysis(ScopeResolutionPass, index)
