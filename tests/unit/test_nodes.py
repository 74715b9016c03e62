"""
Tests for the AST arena: construction, structural edits and queries.
"""

import pytest

from chunkmod.shared.errors import ChunkModImplementationError
from chunkmod.shared.nodes import NodeArena, Prop, Token
from chunkmod.shared.source_location import SourceLocation


@pytest.fixture
def arena():
    return NodeArena()


class TestConstruction:
    """Test creating arena nodes"""

    def test_new_with_children_sets_parents(self, arena):
        """Test children given at creation get their parent set"""
        a = arena.new_name("a")
        b = arena.new_name("b")
        var = arena.new(Token.VAR, children=[a, b])
        assert arena.children(var) == [a, b]
        assert arena.parent(a) == var
        assert arena.parent(b) == var
        assert len(arena) == 3

    def test_props(self, arena):
        """Test node properties with defaults"""
        spec = arena.new(Token.EXPORT_SPEC)
        assert arena.get_prop(spec, Prop.IS_SHORTHAND_PROPERTY) is None
        arena.put_prop(spec, Prop.IS_SHORTHAND_PROPERTY, True)
        assert arena.get_prop(spec, Prop.IS_SHORTHAND_PROPERTY) is True

    def test_children_returns_copy(self, arena):
        """Test mutating the returned children list leaves the node alone"""
        block = arena.new(Token.BLOCK, children=[arena.new_empty()])
        arena.children(block).clear()
        assert arena.child_count(block) == 1


class TestEdits:
    """Test tree edits on the arena"""

    def test_add_children_to_front_keeps_order(self, arena):
        """Test a group added to the front keeps its order"""
        body = arena.new(Token.MODULE_BODY, children=[arena.new_name("z")])
        x, y = arena.new_name("x"), arena.new_name("y")
        arena.add_children_to_front(body, [x, y])
        assert [arena.string(c) for c in arena.children(body)] == ["x", "y", "z"]

    def test_add_child_to_front_reverses_repeated_insertions(self, arena):
        """Test repeated front insertion puts the newest first"""
        body = arena.new(Token.MODULE_BODY)
        for name in ("first", "second"):
            arena.add_child_to_front(body, arena.new_name(name))
        assert [arena.string(c) for c in arena.children(body)] == ["second", "first"]

    def test_remove_children_detaches(self, arena):
        """Test removed children have no parent"""
        a, b = arena.new_name("a"), arena.new_name("b")
        script = arena.new(Token.SCRIPT, children=[a, b])
        removed = arena.remove_children(script)
        assert removed == [a, b]
        assert arena.child_count(script) == 0
        assert arena.parent(a) is None

    def test_attach_twice_rejected(self, arena):
        """Test a node with a parent cannot be attached again"""
        a = arena.new_name("a")
        arena.new(Token.VAR, children=[a])
        other = arena.new(Token.VAR)
        with pytest.raises(ChunkModImplementationError):
            arena.add_child_to_back(other, a)

    def test_detach_then_reattach(self, arena):
        """Test a detached node can be attached elsewhere"""
        a = arena.new_name("a")
        first = arena.new(Token.VAR, children=[a])
        second = arena.new(Token.LET)
        arena.add_child_to_back(second, arena.detach(a))
        assert arena.child_count(first) == 0
        assert arena.parent(a) == second

    def test_replace_with(self, arena):
        """Test replacing a node takes over its slot"""
        old = arena.new_name("old")
        call = arena.new(Token.CALL, children=[old, arena.new_name("arg")])
        new = arena.new_name("new")
        arena.replace_with(old, new)
        assert arena.first_child(call) == new
        assert arena.parent(old) is None

    def test_replace_detached_rejected(self, arena):
        """Test a detached node cannot be replaced"""
        with pytest.raises(ChunkModImplementationError):
            arena.replace_with(arena.new_name("a"), arena.new_name("b"))

    def test_use_source_info_from_for_tree(self, arena):
        """Test source info is copied to a whole tree"""
        loc = SourceLocation(file="f.js", line=3, column=1)
        body = arena.new(Token.MODULE_BODY, location=loc)
        spec = arena.new(Token.EXPORT_SPEC, children=[arena.new_name("a"), arena.new_name("a")])
        export = arena.new(Token.EXPORT, children=[arena.new(Token.EXPORT_SPECS, children=[spec])])
        arena.use_source_info_from_for_tree(export, body)
        assert all(arena.location(n) == loc for n in arena.walk_post_order(export))


class TestQueries:
    """Test arena traversal and queries"""

    def test_walk_post_order(self, arena):
        """Test post-order walk visits children first"""
        a, one = arena.new_name("a"), arena.new(Token.NUMBER, "1")
        assign = arena.new(Token.ASSIGN, children=[a, one])
        stmt = arena.new(Token.EXPR_RESULT, children=[assign])
        assert list(arena.walk_post_order(stmt)) == [a, one, assign, stmt]

    def test_is_lhs_of_assign(self, arena):
        """Test the target of a plain assignment is an LHS"""
        a, b = arena.new_name("a"), arena.new_name("b")
        arena.new(Token.ASSIGN, children=[a, b])
        assert arena.is_lhs_of_assign(a)
        assert not arena.is_lhs_of_assign(b)

    def test_compound_assignment_target_is_not_plain_lhs(self, arena):
        """Test a compound assignment target is not a plain LHS"""
        a = arena.new_name("a")
        arena.new(Token.ASSIGN_OP, "+=", children=[a, arena.new(Token.NUMBER, "1")])
        assert not arena.is_lhs_of_assign(a)
