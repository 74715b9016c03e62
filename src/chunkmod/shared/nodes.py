"""
JavaScript AST Arena

Nodes live in a NodeArena and are addressed by integer handles (NodeId).
Tree edits go through the arena (detach, add, replace) so no node is ever
reachable from two parents at once.

Shape conventions (one token per construct):
    SCRIPT            children: statements (or a single MODULE_BODY after conversion)
    VAR / LET / CONST children: NAME, each NAME optionally holding its initializer
    FUNCTION          children: NAME (string '' when anonymous), PARAM_LIST, BLOCK
    ASSIGN            children: target, value
    ASSIGN_OP         string: operator ('+=' ...); children: target, value
    GETPROP           string: property name; children: object
    STRING_KEY        string: key; children: value
    IMPORT            children: EMPTY (default slot), IMPORT_SPECS, STRING (specifier)
    EXPORT            children: EXPORT_SPECS, or the exported declaration
    IMPORT_SPEC       children: NAME (imported), NAME (local)
    EXPORT_SPEC       children: NAME (local), NAME (exported)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .errors import check_state
from .source_location import SourceLocation

NodeId = int


class Token(Enum):
    """AST node kinds"""
    ROOT = "root"
    SCRIPT = "script"
    MODULE_BODY = "module_body"
    # statements
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    PARAM_LIST = "param_list"
    BLOCK = "block"
    RETURN = "return"
    IF = "if"
    WHILE = "while"
    EXPR_RESULT = "expr_result"
    EMPTY = "empty"
    # expressions
    NAME = "name"
    ASSIGN = "assign"
    ASSIGN_OP = "assign_op"
    CALL = "call"
    NEW = "new"
    GETPROP = "getprop"
    GETELEM = "getelem"
    NUMBER = "number"
    STRING = "string"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    THIS = "this"
    BINARY = "binary"
    UNARY = "unary"
    UPDATE = "update"
    HOOK = "hook"
    ARRAY_LIT = "array_lit"
    OBJECT_LIT = "object_lit"
    STRING_KEY = "string_key"
    # module syntax
    IMPORT = "import"
    IMPORT_SPECS = "import_specs"
    IMPORT_SPEC = "import_spec"
    EXPORT = "export"
    EXPORT_SPECS = "export_specs"
    EXPORT_SPEC = "export_spec"


class Prop(Enum):
    """Node properties"""
    FEATURE_SET = "feature_set"
    IS_SHORTHAND_PROPERTY = "is_shorthand_property"
    INPUT_NAME = "input_name"
    PREFIX = "prefix"


class Node:
    """One arena slot. Edit through NodeArena, never directly."""
    __slots__ = ('token', 'string', 'location', 'parent', 'children', 'props')

    def __init__(self, token: Token, string: Optional[str], location: Optional[SourceLocation]):
        self.token = token
        self.string = string
        self.location = location
        self.parent: Optional[NodeId] = None
        self.children: List[NodeId] = []
        self.props: Dict[Prop, Any] = {}

    def __repr__(self) -> str:
        if self.string is not None:
            return f"Node({self.token.name} {self.string!r})"
        return f"Node({self.token.name})"


class NodeArena:
    """Owns every node of one compilation."""

    def __init__(self) -> None:
        self._nodes: List[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def new(
        self,
        token: Token,
        string: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        children: Iterable[NodeId] = (),
    ) -> NodeId:
        nid = len(self._nodes)
        self._nodes.append(Node(token, string, location))
        self.add_children_to_back(nid, children)
        return nid

    def new_name(self, name: str, location: Optional[SourceLocation] = None) -> NodeId:
        return self.new(Token.NAME, name, location)

    def new_string(self, value: str, location: Optional[SourceLocation] = None) -> NodeId:
        return self.new(Token.STRING, value, location)

    def new_empty(self, location: Optional[SourceLocation] = None) -> NodeId:
        return self.new(Token.EMPTY, None, location)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def node(self, nid: NodeId) -> Node:
        return self._nodes[nid]

    def token(self, nid: NodeId) -> Token:
        return self._nodes[nid].token

    def string(self, nid: NodeId) -> Optional[str]:
        return self._nodes[nid].string

    def location(self, nid: NodeId) -> Optional[SourceLocation]:
        return self._nodes[nid].location

    def parent(self, nid: NodeId) -> Optional[NodeId]:
        return self._nodes[nid].parent

    def children(self, nid: NodeId) -> List[NodeId]:
        return list(self._nodes[nid].children)

    def child_count(self, nid: NodeId) -> int:
        return len(self._nodes[nid].children)

    def first_child(self, nid: NodeId) -> Optional[NodeId]:
        kids = self._nodes[nid].children
        return kids[0] if kids else None

    def last_child(self, nid: NodeId) -> Optional[NodeId]:
        kids = self._nodes[nid].children
        return kids[-1] if kids else None

    def is_module_body(self, nid: Optional[NodeId]) -> bool:
        return nid is not None and self.token(nid) is Token.MODULE_BODY

    def get_prop(self, nid: NodeId, prop: Prop, default: Any = None) -> Any:
        return self._nodes[nid].props.get(prop, default)

    def put_prop(self, nid: NodeId, prop: Prop, value: Any) -> None:
        self._nodes[nid].props[prop] = value

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def add_child_to_back(self, parent: NodeId, child: NodeId) -> None:
        self._attach_check(child)
        self._nodes[child].parent = parent
        self._nodes[parent].children.append(child)

    def add_child_to_front(self, parent: NodeId, child: NodeId) -> None:
        self._attach_check(child)
        self._nodes[child].parent = parent
        self._nodes[parent].children.insert(0, child)

    def add_children_to_back(self, parent: NodeId, children: Iterable[NodeId]) -> None:
        for child in children:
            self.add_child_to_back(parent, child)

    def add_children_to_front(self, parent: NodeId, children: Iterable[NodeId]) -> None:
        """Insert children at the front, keeping their relative order."""
        for child in reversed(list(children)):
            self.add_child_to_front(parent, child)

    def remove_children(self, parent: NodeId) -> List[NodeId]:
        """Detach and return all children of parent, in order."""
        kids = self._nodes[parent].children
        self._nodes[parent].children = []
        for child in kids:
            self._nodes[child].parent = None
        return kids

    def detach(self, nid: NodeId) -> NodeId:
        parent = self._nodes[nid].parent
        if parent is not None:
            self._nodes[parent].children.remove(nid)
            self._nodes[nid].parent = None
        return nid

    def replace_with(self, old: NodeId, new: NodeId) -> NodeId:
        """Put new in old's slot; old is left detached. Returns new."""
        parent = self._nodes[old].parent
        check_state(parent is not None, f"cannot replace detached node {self._nodes[old]!r}")
        self._attach_check(new)
        siblings = self._nodes[parent].children
        siblings[siblings.index(old)] = new
        self._nodes[new].parent = parent
        self._nodes[old].parent = None
        return new

    def _attach_check(self, child: NodeId) -> None:
        check_state(
            self._nodes[child].parent is None,
            f"node {self._nodes[child]!r} already has a parent; detach it first",
        )

    def use_source_info_from_for_tree(self, nid: NodeId, source: NodeId) -> NodeId:
        """Give nid and all of its descendants the location of source."""
        location = self._nodes[source].location
        for n in self.walk_post_order(nid):
            self._nodes[n].location = location
        return nid

    # ------------------------------------------------------------------
    # Traversal and queries
    # ------------------------------------------------------------------

    def walk_post_order(self, root: NodeId) -> Iterator[NodeId]:
        """Children before parents, siblings left to right."""
        stack = [(root, False)]
        while stack:
            nid, expanded = stack.pop()
            if expanded:
                yield nid
                continue
            stack.append((nid, True))
            for child in reversed(self._nodes[nid].children):
                stack.append((child, False))

    def is_lhs_of_assign(self, nid: NodeId) -> bool:
        """True for the target of a plain `=` assignment."""
        parent = self._nodes[nid].parent
        return (
            parent is not None
            and self._nodes[parent].token is Token.ASSIGN
            and self._nodes[parent].children[0] == nid
        )
