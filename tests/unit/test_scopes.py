"""
Tests for scope creation and the BindingResolver queries it answers.
"""

from chunkmod.analysis.scopes import create_scope_index
from chunkmod.shared.scope import BindingType, ScopeKind
from tests.test_utils import build_context, find_names


def _index(ctx):
    return create_scope_index(ctx.arena, ctx.chunk_graph.get_all_inputs())


def _root(ctx, chunk_name, index=0):
    return ctx.chunk_graph.get_chunk(chunk_name).get_input(index).root


class TestGlobalBindings:
    """Test global scope resolution across inputs"""

    def test_var_visible_from_other_chunk(self):
        """Test a global var resolves from another chunk"""
        ctx = build_context(("chunk1", "var a = 1;"), ("chunk2", "use(a);"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk2"), "a")[0]
        global_ref = index.resolve_global(ref)
        assert global_ref is not None
        assert global_ref.chunk.name == "chunk1"
        assert not global_ref.is_declaration
        assert global_ref.binding.binding_type is BindingType.VAR

    def test_declaration_occurrence(self):
        """Test the declaring occurrence is marked as a declaration"""
        ctx = build_context(("chunk1", "var a = 1;"))
        index = _index(ctx)
        decl = find_names(ctx.arena, _root(ctx, "chunk1"), "a")[0]
        assert index.is_declaration(decl)
        assert index.resolve_global(decl).is_declaration

    def test_top_level_function_and_lexical_are_global(self):
        """Test top-level function, let and const are global"""
        ctx = build_context(("chunk1", "function f() {} let x = 1; const y = 2;"))
        index = _index(ctx)
        assert set(index.global_scope.names()) == {"f", "x", "y"}

    def test_later_input_declaration_is_visible_to_earlier_reference(self):
        """Test a reference sees a declaration from a later input"""
        ctx = build_context(("chunk1", "use(late);"), ("chunk2", "var late = 1;"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk1"), "late")[0]
        assert index.resolve_global(ref).chunk.name == "chunk2"

    def test_first_declaration_wins(self):
        """Test the first global declaration keeps the binding"""
        ctx = build_context(("chunk1", "var a = 1;"), ("chunk2", "var a = 2;"))
        index = _index(ctx)
        second = find_names(ctx.arena, _root(ctx, "chunk2"), "a")[0]
        ref = index.resolve_global(second)
        assert ref.chunk.name == "chunk1"
        assert ref.is_declaration

    def test_unbound_name(self):
        """Test an undeclared name resolves to nothing"""
        ctx = build_context(("chunk1", "console.log(1);"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk1"), "console")[0]
        assert index.resolve(ref) is None
        assert index.resolve_global(ref) is None


class TestLocalBindings:
    """Test function and block scopes"""

    def test_parameter_shadows_global(self):
        """Test a parameter shadows a global"""
        ctx = build_context(("chunk1", "var a = 1;"), ("chunk2", "function f(a) { return a; }"))
        index = _index(ctx)
        param, ref = find_names(ctx.arena, _root(ctx, "chunk2"), "a")
        assert index.resolve_global(ref) is None
        assert index.resolve(ref).binding_type is BindingType.PARAMETER
        assert index.resolve(param) is index.resolve(ref)

    def test_var_inside_function_is_local(self):
        """Test var inside a function is local"""
        ctx = build_context(("chunk1", "function f() { if (x) { var v = 1; } return v; }"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk1"), "v")[-1]
        binding = index.resolve(ref)
        assert binding.scope.kind is ScopeKind.FUNCTION
        assert index.resolve_global(ref) is None

    def test_let_in_block_is_block_scoped(self):
        """Test let inside a block is block scoped"""
        ctx = build_context(("chunk1", "{ let b = 1; use(b); } use(b);"))
        index = _index(ctx)
        decl, inner, outer = find_names(ctx.arena, _root(ctx, "chunk1"), "b")
        assert index.resolve(inner).scope.kind is ScopeKind.BLOCK
        assert index.resolve(outer) is None

    def test_var_in_top_level_block_is_global(self):
        """Test var in a top-level block is global"""
        ctx = build_context(("chunk1", "if (c) { var g = 1; }"), ("chunk2", "use(g);"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk2"), "g")[0]
        assert index.resolve_global(ref).chunk.name == "chunk1"

    def test_named_function_expression_binds_only_inside(self):
        """Test a function expression name is bound only inside it"""
        ctx = build_context(("chunk1", "var f = function g() { return g; }; use(g);"))
        index = _index(ctx)
        name_node, inner, outer = find_names(ctx.arena, _root(ctx, "chunk1"), "g")
        assert index.resolve(inner).scope.kind is ScopeKind.FUNCTION_NAME
        assert index.resolve_global(inner) is None
        assert index.resolve(outer) is None

    def test_closure_reference_resolves_to_global(self):
        """Test a closure reference resolves to the global"""
        ctx = build_context(("chunk1", "var a = 1;"), ("chunk2", "function f() { return a; }"))
        index = _index(ctx)
        ref = find_names(ctx.arena, _root(ctx, "chunk2"), "a")[0]
        assert index.resolve_global(ref).chunk.name == "chunk1"
