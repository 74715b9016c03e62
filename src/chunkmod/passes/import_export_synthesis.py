"""
Import/export statement synthesis.

Turns the recorded cross-chunk relations into EXPORT statements (appended to
the declaring chunk's module body) and IMPORT statements (prepended to the
referencing chunk's module body, one per declaring chunk).
"""

import logging
from typing import Iterable, List

from ..analysis.chunk_graph import Chunk
from ..analysis.module_paths import chunk_module_name, relative_path
from ..shared.errors import DiagnosticType
from ..shared.nodes import NodeId, Prop, Token
from .base import CompilerContext
from .chunk_merger import module_body_of
from .cross_chunk_references import CrossChunkRelations

logger = logging.getLogger(__name__)


UNABLE_TO_COMPUTE_RELATIVE_PATH = DiagnosticType.error(
    "JSC_UNABLE_TO_COMPUTE_RELATIVE_PATH",
    'Unable to compute relative import path from "{0}" to "{1}"',
)


class ExportImportSynthesizer:

    def __init__(self, ctx: CompilerContext, relations: CrossChunkRelations):
        self._ctx = ctx
        self._arena = ctx.arena
        self._relations = relations

    def _specs(self, specs_token: Token, spec_token: Token, names: Iterable[str]) -> NodeId:
        arena = self._arena
        specs = arena.new(specs_token)
        for name in names:
            spec = arena.new(spec_token, children=[arena.new_name(name), arena.new_name(name)])
            arena.put_prop(spec, Prop.IS_SHORTHAND_PROPERTY, True)
            arena.add_child_to_back(specs, spec)
        return specs

    def add_export_statements(self) -> None:
        arena = self._arena
        for chunk, names in self._relations.exports.items():
            module_body = module_body_of(self._ctx, chunk)
            export_specs = self._specs(Token.EXPORT_SPECS, Token.EXPORT_SPEC, names)
            export = arena.new(Token.EXPORT, children=[export_specs])
            arena.use_source_info_from_for_tree(export, module_body)
            arena.add_child_to_back(module_body, export)
            logger.debug(f"[Synthesis] {chunk.name} exports {list(names)}")

    def add_import_statements(self) -> None:
        arena = self._arena
        for importing_chunk in self._relations.importing_chunks():
            module_body = module_body_of(self._ctx, importing_chunk)
            import_statements: List[NodeId] = []
            # One import statement per distinct chunk that defines referenced names.
            for exporting_chunk, names in self._relations.imports_for(importing_chunk):
                import_specs = self._specs(Token.IMPORT_SPECS, Token.IMPORT_SPEC, names)
                import_path = self.import_path(importing_chunk, exporting_chunk, module_body)
                statement = arena.new(Token.IMPORT, children=[
                    arena.new_empty(),
                    import_specs,
                    arena.new_string(import_path),
                ])
                arena.use_source_info_from_for_tree(statement, module_body)
                import_statements.insert(0, statement)
            # Each front insertion lands before the previous one, so reversed
            # collection order yields first-recorded chunk first.
            for statement in import_statements:
                arena.add_child_to_front(module_body, statement)

    def import_path(self, importing_chunk: Chunk, exporting_chunk: Chunk, module_body: NodeId) -> str:
        """Specifier for exporting_chunk as seen from importing_chunk; reports on failure."""
        from_name = chunk_module_name(importing_chunk)
        to_name = chunk_module_name(exporting_chunk)
        try:
            return relative_path(from_name, to_name)
        except ValueError as e:
            logger.debug(f"[Synthesis] {e}")
            self._ctx.reporter.report(
                UNABLE_TO_COMPUTE_RELATIVE_PATH,
                self._arena.location(module_body),
                from_name,
                to_name,
            )
            return to_name
