"""
Tests for export/import statement synthesis and empty-export forcing.
"""

from chunkmod.analysis.chunk_graph import Chunk
from chunkmod.passes.chunk_merger import ChunkToModuleMerger, module_body_of
from chunkmod.passes.convert_chunks_to_es_modules import ConvertChunksToESModulesPass
from chunkmod.passes.cross_chunk_references import CrossChunkRelations
from chunkmod.passes.import_export_synthesis import (
    UNABLE_TO_COMPUTE_RELATIVE_PATH,
    ExportImportSynthesizer,
)
from chunkmod.passes.module_forcing import add_empty_exports
from chunkmod.passes.scope_resolution import ScopeResolutionPass
from chunkmod.shared.nodes import Prop, Token
from tests.test_utils import build_context, chunk_code, normalize


def _convert(*chunks):
    ctx = build_context(*chunks)
    ScopeResolutionPass().run(ctx)
    ConvertChunksToESModulesPass().run(ctx)
    return ctx


class TestAddEmptyExports:
    """Test forcing empty exports onto isolated chunks"""

    def test_isolated_chunk_forced(self):
        """Test a non-empty chunk without imports or exports is forced"""
        relations = CrossChunkRelations()
        ctx = build_context(("lonely", "var a;"))
        lonely = ctx.chunk_graph.get_chunk("lonely")
        forced = add_empty_exports(ctx.chunk_graph.get_all_chunks(), relations)
        assert forced == [lonely]
        assert relations.exported_names(lonely) == []
        assert relations.has_exports(lonely)

    def test_empty_chunk_not_forced(self):
        """Test a chunk without inputs is left alone"""
        relations = CrossChunkRelations()
        assert add_empty_exports([Chunk("empty")], relations) == []
        assert relations.exports == {}

    def test_importing_chunk_not_forced(self):
        """Test a chunk that imports is not forced"""
        relations = CrossChunkRelations()
        ctx = build_context(("chunk1", "var a;"), ("chunk2", "use(a);"))
        chunk1, chunk2 = ctx.chunk_graph.get_all_chunks()
        relations.record(chunk2, chunk1, "a")
        assert add_empty_exports([chunk1, chunk2], relations) == []
        assert not relations.has_exports(chunk2)


class TestExportStatements:
    """Test synthesized export declarations"""

    def test_export_appended_last(self):
        """Test the export declaration ends the module body"""
        ctx = _convert(("chunk1", "var a = 1; var b = 2;"), ("chunk2", "use(b, a);"))
        assert normalize(chunk_code(ctx, "chunk1")) == [
            "var a = 1;",
            "var b = 2;",
            "export {b, a};",
        ]

    def test_specifiers_are_shorthand(self):
        """Test export specifiers are shorthand"""
        ctx = _convert(("chunk1", "var a = 1;"), ("chunk2", "use(a);"))
        body = module_body_of(ctx, ctx.chunk_graph.get_chunk("chunk1"))
        export = ctx.arena.last_child(body)
        assert ctx.arena.token(export) is Token.EXPORT
        spec = ctx.arena.first_child(ctx.arena.first_child(export))
        assert ctx.arena.get_prop(spec, Prop.IS_SHORTHAND_PROPERTY) is True
        local, exported = ctx.arena.children(spec)
        assert ctx.arena.string(local) == ctx.arena.string(exported) == "a"

    def test_synthesized_nodes_take_module_body_location(self):
        """Test synthesized nodes copy the module body location"""
        ctx = _convert(("chunk1", "var a = 1;"), ("chunk2", "use(a);"))
        body = module_body_of(ctx, ctx.chunk_graph.get_chunk("chunk1"))
        export = ctx.arena.last_child(body)
        assert ctx.arena.location(export) == ctx.arena.location(body)

    def test_forced_empty_export(self):
        """Test a forced chunk gets an empty export"""
        ctx = _convert(("chunk1", "var a = 1;"))
        assert normalize(chunk_code(ctx, "chunk1")) == ["var a = 1;", "export {};"]


class TestImportStatements:
    """Test synthesized import declarations"""

    def test_imports_prepended_in_recorded_order(self):
        """Test imports open the module body in recorded order"""
        ctx = _convert(
            ("chunk1", "var a = 1;"),
            ("chunk2", "var b = 2;"),
            ("chunk3", "f(b); g(a); g(b);"),
        )
        assert normalize(chunk_code(ctx, "chunk3")) == [
            "import {b} from './chunk2.js';",
            "import {a} from './chunk1.js';",
            "f(b);",
            "g(a);",
            "g(b);",
        ]

    def test_import_statement_shape(self):
        """Test the import node has a default slot, specs and path"""
        ctx = _convert(("chunk1", "var a = 1;"), ("chunk2", "use(a);"))
        body = module_body_of(ctx, ctx.chunk_graph.get_chunk("chunk2"))
        statement = ctx.arena.first_child(body)
        default_slot, specs, path = ctx.arena.children(statement)
        assert ctx.arena.token(default_slot) is Token.EMPTY
        assert ctx.arena.token(specs) is Token.IMPORT_SPECS
        assert ctx.arena.string(path) == "./chunk1.js"

    def test_import_path_fallback_reports(self):
        """Test an unresolvable path is reported and falls back"""
        ctx = build_context(("/abs/m0", "var x;"), ("rel/m1", "use(x);"))
        ChunkToModuleMerger(ctx).convert()
        synthesizer = ExportImportSynthesizer(ctx, CrossChunkRelations())
        importing, exporting = ctx.chunk_graph.get_chunk("rel/m1"), ctx.chunk_graph.get_chunk("/abs/m0")
        body = module_body_of(ctx, importing)
        assert synthesizer.import_path(importing, exporting, body) == "/abs/m0.js"
        errors = ctx.reporter.errors_of_type(UNABLE_TO_COMPUTE_RELATIVE_PATH)
        assert [e.args for e in errors] == [("rel/m1.js", "/abs/m0.js")]

    def test_relations_stored_on_context(self):
        """Test the relations are published as an analysis result"""
        ctx = _convert(("chunk1", "var a = 1;"), ("chunk2", "use(a);"))
        relations = ctx.get_analysis(ConvertChunksToESModulesPass)
        assert relations.exported_names(ctx.chunk_graph.get_chunk("chunk1")) == ["a"]
