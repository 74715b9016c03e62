"""
Tests for cross-chunk reference classification and the two relations it builds.
"""

import pytest

from chunkmod.analysis.chunk_graph import Chunk
from chunkmod.passes.cross_chunk_references import (
    ASSIGNMENT_TO_IMPORT,
    CrossChunkRelations,
    FindCrossChunkReferences,
    OrderedNameSet,
)
from chunkmod.passes.scope_resolution import ScopeResolutionPass
from chunkmod.shared.errors import ChunkModImplementationError
from tests.test_utils import build_context


def _classify(*chunks):
    ctx = build_context(*chunks)
    ScopeResolutionPass().run(ctx)
    relations = FindCrossChunkReferences(ctx, CrossChunkRelations()).traverse()
    return ctx, relations


def _chunk(ctx, name):
    return ctx.chunk_graph.get_chunk(name)


class TestOrderedNameSet:
    """Test the insertion-ordered name set"""

    def test_insertion_order_and_dedup(self):
        """Test names keep first insertion order without duplicates"""
        names = OrderedNameSet()
        assert names.add("b")
        assert names.add("a")
        assert not names.add("b")
        assert list(names) == ["b", "a"]
        assert len(names) == 2
        assert "a" in names

    def test_equality_is_order_sensitive(self):
        """Test sets with the same names in another order differ"""
        assert OrderedNameSet(["a", "b"]) == OrderedNameSet(["a", "b"])
        assert OrderedNameSet(["a", "b"]) != OrderedNameSet(["b", "a"])


class TestCrossChunkRelations:
    """Test the export and import relations"""

    def test_record_updates_both_relations(self):
        """Test recording a reference fills exports and imports"""
        relations = CrossChunkRelations()
        declaring, referencing = Chunk("chunk1"), Chunk("chunk2")
        relations.record(referencing, declaring, "a")
        relations.record(referencing, declaring, "a")
        assert relations.exported_names(declaring) == ["a"]
        assert relations.imported_names(referencing, declaring) == ["a"]
        assert relations.has_imports(referencing)
        assert not relations.has_imports(declaring)

    def test_same_chunk_record_rejected(self):
        """Test a chunk cannot import from itself"""
        chunk = Chunk("chunk1")
        with pytest.raises(ChunkModImplementationError):
            CrossChunkRelations().record(chunk, chunk, "a")

    def test_ensure_export_set_is_idempotent(self):
        """Test ensuring an export set keeps existing names"""
        relations = CrossChunkRelations()
        chunk = Chunk("chunk1")
        first = relations.ensure_export_set(chunk)
        first.add("x")
        assert relations.ensure_export_set(chunk) is first
        assert relations.has_exports(chunk)


class TestFindCrossChunkReferences:
    """Test classification of cross-chunk name references"""

    def test_basic_reference(self):
        """Test a reference to another chunk's global is recorded"""
        ctx, relations = _classify(
            ("chunk1", "var a = 1; function b() { return a; }"),
            ("chunk2", "console.log(a);"),
        )
        chunk1, chunk2 = _chunk(ctx, "chunk1"), _chunk(ctx, "chunk2")
        assert relations.exported_names(chunk1) == ["a"]
        assert relations.imported_names(chunk2, chunk1) == ["a"]
        assert not relations.has_exports(chunk2)
        assert not ctx.reporter.has_errors()

    def test_same_chunk_references_are_skipped(self):
        """Test references inside the declaring chunk are ignored"""
        ctx, relations = _classify(("chunk1", "var a = 1; use(a);"))
        assert relations.exports == {}
        assert relations.imports == {}

    def test_local_shadowing_is_skipped(self):
        """Test a local that shadows a global is ignored"""
        ctx, relations = _classify(
            ("chunk1", "var a = 1;"),
            ("chunk2", "function f(a) { return a; }"),
        )
        assert relations.exports == {}

    def test_export_order_follows_first_reference(self):
        """Test exported names follow first reference order"""
        ctx, relations = _classify(
            ("chunk1", "var a = 1; var b = 2; var c = 3;"),
            ("chunk2", "use(c); use(a); use(c);"),
        )
        assert relations.exported_names(_chunk(ctx, "chunk1")) == ["c", "a"]

    def test_post_order_within_expression(self):
        """Children are visited before parents, left to right."""
        ctx, relations = _classify(
            ("chunk1", "var f = 1; var x = 2; var y = 3;"),
            ("chunk2", "f(x)[y];"),
        )
        assert relations.exported_names(_chunk(ctx, "chunk1")) == ["f", "x", "y"]

    def test_import_pairs_in_first_reference_order(self):
        """Test declaring chunks are imported in first reference order"""
        ctx, relations = _classify(
            ("chunk1", "var a = 1;"),
            ("chunk2", "var b = 2;"),
            ("chunk3", "f(b); g(a);"),
        )
        chunk1, chunk2, chunk3 = (_chunk(ctx, n) for n in ("chunk1", "chunk2", "chunk3"))
        assert [d for d, _ in relations.imports_for(chunk3)] == [chunk2, chunk1]
        assert relations.importing_chunks() == [chunk3]

    def test_assignment_to_import_reported_and_recorded(self):
        """Test assigning an imported name is reported but still recorded"""
        ctx, relations = _classify(("chunk1", "var a = 1;"), ("chunk2", "a = 2;"))
        errors = ctx.reporter.errors_of_type(ASSIGNMENT_TO_IMPORT)
        assert len(errors) == 1
        assert errors[0].args == ("a", "chunk2.js")
        assert errors[0].location.file == "chunk2_input.js"
        assert (errors[0].location.line, errors[0].location.column) == (1, 1)
        assert relations.imported_names(_chunk(ctx, "chunk2"), _chunk(ctx, "chunk1")) == ["a"]

    def test_compound_assignment_is_not_reported(self):
        """Test compound assignment to an imported name is not reported"""
        ctx, relations = _classify(("chunk1", "var a = 1;"), ("chunk2", "a += 2;"))
        assert not ctx.reporter.has_errors()
        assert relations.exported_names(_chunk(ctx, "chunk1")) == ["a"]

    def test_property_assignment_is_not_reported(self):
        """Test assigning a property of an imported name is allowed"""
        ctx, relations = _classify(("chunk1", "var a = {};"), ("chunk2", "a.x = 2;"))
        assert not ctx.reporter.has_errors()
        assert relations.exported_names(_chunk(ctx, "chunk1")) == ["a"]

    def test_redeclaration_is_treated_as_reference(self):
        """Test redeclaring another chunk's global counts as a reference"""
        ctx, relations = _classify(("chunk1", "var a = 1;"), ("chunk2", "var a = 2;"))
        assert relations.imported_names(_chunk(ctx, "chunk2"), _chunk(ctx, "chunk1")) == ["a"]
        assert not ctx.reporter.has_errors()

    def test_backward_reference_into_later_chunk(self):
        """Test a reference to a later chunk's global is recorded"""
        ctx, relations = _classify(("chunk1", "use(late);"), ("chunk2", "var late = 1;"))
        assert relations.imported_names(_chunk(ctx, "chunk1"), _chunk(ctx, "chunk2")) == ["late"]

    def test_requires_scope_index(self):
        """Test the classifier needs a resolved scope index"""
        ctx = build_context(("chunk1", "var a;"))
        with pytest.raises(ChunkModImplementationError):
            FindCrossChunkReferences(ctx, CrossChunkRelations())
