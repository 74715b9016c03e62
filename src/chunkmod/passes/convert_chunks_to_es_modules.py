"""
Convert Chunks to ES Modules Pass

Finds all references to global names declared in a different output chunk and
adds ES module imports and exports for them.

    // chunk1.js                         // chunk1.js
    var a = 1;                           var a = 1;
    function b() { return a }     ->     function b() { return a }
                                         export {a};

    // chunk2.js                         // chunk2.js
    console.log(a);               ->     import {a} from './chunk1.js';
                                         console.log(a);

Chunks can then be loaded as modules that depend on each other's symbols
without a shared global namespace.

Steps, in order:
1. classify every NAME (FindCrossChunkReferences)
2. give chunks with no imports and no exports an empty export set
3. merge each chunk's inputs into one module body
4. append exports, then prepend imports
"""

import logging

from .base import BasePass, CompilerContext
from .chunk_merger import ChunkToModuleMerger
from .cross_chunk_references import CrossChunkRelations, FindCrossChunkReferences
from .import_export_synthesis import ExportImportSynthesizer
from .module_forcing import add_empty_exports
from .scope_resolution import ScopeResolutionPass

logger = logging.getLogger(__name__)


class ConvertChunksToESModulesPass(BasePass):
    """
    Whole-program pass. Reports assignment-to-import and unresolvable-path
    errors and keeps going; raises ModuleSyntaxError if an input is already a
    module.
    """
    requires = [ScopeResolutionPass]

    def run(self, ctx: CompilerContext) -> None:
        relations = FindCrossChunkReferences(ctx, CrossChunkRelations()).traverse()
        add_empty_exports(ctx.chunk_graph.get_all_chunks(), relations)

        ChunkToModuleMerger(ctx).convert()

        synthesizer = ExportImportSynthesizer(ctx, relations)
        synthesizer.add_export_statements()
        synthesizer.add_import_statements()

        ctx.set_analysis(ConvertChunksToESModulesPass, relations)
