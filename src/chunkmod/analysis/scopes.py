"""
Syntactic scope creation.

Builds the scope chain for every input of a program and records, for every
NAME occurrence, the Binding it resolves to. The result (ScopeIndex) is the
BindingResolver the chunk conversion queries.

Scoping rules implemented (script semantics):
- one global scope shared by all inputs; top-level var, function, let and
  const declarations land there
- function scopes hold parameters and hoisted var/function declarations
- blocks hold let/const and nested function declarations
- a named function expression binds its own name in a scope of its own
- the first declaration of a name in a scope wins
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from ..shared.nodes import NodeArena, NodeId, Token
from ..shared.scope import Binding, BindingType, GlobalReference, Scope, ScopeKind
from .chunk_graph import CompilerInput

logger = logging.getLogger(__name__)

_STATEMENT_CONTAINERS = frozenset({Token.SCRIPT, Token.MODULE_BODY, Token.BLOCK, Token.EXPORT})

_LEXICAL_TYPES = {Token.LET: BindingType.LET, Token.CONST: BindingType.CONST}


class ScopeIndex:
    """Resolved bindings keyed by NAME node."""

    def __init__(
        self,
        bindings: Dict[NodeId, Optional[Binding]],
        declarations: Set[NodeId],
        global_scope: Scope,
    ):
        self._bindings = bindings
        self._declarations = declarations
        self.global_scope = global_scope

    def resolve(self, name_node: NodeId) -> Optional[Binding]:
        return self._bindings.get(name_node)

    def resolve_global(self, name_node: NodeId) -> Optional[GlobalReference]:
        binding = self._bindings.get(name_node)
        if binding is None or not binding.is_global or binding.chunk is None:
            return None
        return GlobalReference(
            binding=binding,
            chunk=binding.chunk,
            is_declaration=name_node in self._declarations,
        )

    def is_declaration(self, name_node: NodeId) -> bool:
        return name_node in self._declarations

    def __len__(self) -> int:
        return len(self._bindings)


class ScopeCreator:
    """Walks every input once and produces a ScopeIndex."""

    def __init__(self, arena: NodeArena, inputs: Iterable[CompilerInput]):
        self._arena = arena
        self._inputs: List[CompilerInput] = list(inputs)
        self._bindings: Dict[NodeId, Optional[Binding]] = {}
        self._declarations: Set[NodeId] = set()

    def create(self) -> ScopeIndex:
        global_scope = Scope(parent=None, kind=ScopeKind.GLOBAL)
        # Declare first so that a reference in an earlier input sees a
        # declaration made by a later one.
        for inp in self._inputs:
            self._declare_hoisted(inp.root, global_scope, inp, top=True)
            self._declare_lexical(inp.root, global_scope, inp, top=True)
        for inp in self._inputs:
            for stmt in self._arena.children(inp.root):
                self._visit(stmt, global_scope, inp)
        logger.debug(
            f"[ScopeCreator] {len(global_scope.names())} globals, "
            f"{len(self._bindings)} name occurrences"
        )
        return ScopeIndex(self._bindings, self._declarations, global_scope)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _declare(self, name_node: NodeId, binding_type: BindingType, scope: Scope,
                 inp: CompilerInput) -> None:
        name = self._arena.string(name_node)
        if not name:
            return
        self._declarations.add(name_node)
        scope.define(Binding(name, binding_type, name_node, scope, inp))

    def _declare_hoisted(self, stmt: NodeId, scope: Scope, inp: CompilerInput, top: bool) -> None:
        """var anywhere in the body, function declarations only at the top."""
        arena = self._arena
        tok = arena.token(stmt)
        if tok is Token.VAR:
            for name_node in arena.children(stmt):
                self._declare(name_node, BindingType.VAR, scope, inp)
        elif tok is Token.FUNCTION:
            if top and self._is_function_declaration(stmt):
                self._declare(arena.first_child(stmt), BindingType.FUNCTION, scope, inp)
        elif tok in (Token.SCRIPT, Token.MODULE_BODY):
            for child in arena.children(stmt):
                self._declare_hoisted(child, scope, inp, top)
        elif tok is Token.EXPORT:
            self._declare_hoisted(arena.first_child(stmt), scope, inp, top)
        elif tok is Token.BLOCK:
            for child in arena.children(stmt):
                self._declare_hoisted(child, scope, inp, top=False)
        elif tok is Token.IF:
            for child in arena.children(stmt)[1:]:
                self._declare_hoisted(child, scope, inp, top=False)
        elif tok is Token.WHILE:
            self._declare_hoisted(arena.children(stmt)[1], scope, inp, top=False)

    def _declare_lexical(self, container: NodeId, scope: Scope, inp: CompilerInput, top: bool) -> None:
        arena = self._arena
        for stmt in arena.children(container):
            tok = arena.token(stmt)
            if tok in _LEXICAL_TYPES:
                for name_node in arena.children(stmt):
                    self._declare(name_node, _LEXICAL_TYPES[tok], scope, inp)
            elif tok is Token.FUNCTION and not top:
                self._declare(arena.first_child(stmt), BindingType.FUNCTION, scope, inp)
            elif tok in (Token.MODULE_BODY, Token.EXPORT):
                self._declare_lexical(stmt, scope, inp, top)

    def _is_function_declaration(self, fn: NodeId) -> bool:
        parent = self._arena.parent(fn)
        return parent is not None and self._arena.token(parent) in _STATEMENT_CONTAINERS

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _visit(self, nid: NodeId, scope: Scope, inp: CompilerInput) -> None:
        arena = self._arena
        tok = arena.token(nid)
        if tok is Token.NAME:
            name = arena.string(nid)
            if name:
                self._bindings[nid] = scope.lookup(name)
            for child in arena.children(nid):
                self._visit(child, scope, inp)
        elif tok is Token.FUNCTION:
            self._visit_function(nid, scope, inp)
        elif tok is Token.BLOCK:
            block_scope = Scope(parent=scope, kind=ScopeKind.BLOCK)
            self._declare_lexical(nid, block_scope, inp, top=False)
            for child in arena.children(nid):
                self._visit(child, block_scope, inp)
        else:
            for child in arena.children(nid):
                self._visit(child, scope, inp)

    def _visit_function(self, fn: NodeId, scope: Scope, inp: CompilerInput) -> None:
        arena = self._arena
        name_node, params, body = arena.children(fn)
        outer = scope
        if not self._is_function_declaration(fn) and arena.string(name_node):
            outer = Scope(parent=scope, kind=ScopeKind.FUNCTION_NAME)
            self._declare(name_node, BindingType.FUNCTION, outer, inp)
        if arena.string(name_node):
            self._bindings[name_node] = outer.lookup(arena.string(name_node))

        fn_scope = Scope(parent=outer, kind=ScopeKind.FUNCTION)
        for param in arena.children(params):
            self._declare(param, BindingType.PARAMETER, fn_scope, inp)
            self._bindings[param] = fn_scope.lookup(arena.string(param))
        for stmt in arena.children(body):
            self._declare_hoisted(stmt, fn_scope, inp, top=True)
        self._declare_lexical(body, fn_scope, inp, top=True)
        for stmt in arena.children(body):
            self._visit(stmt, fn_scope, inp)


def create_scope_index(arena: NodeArena, inputs: Iterable[CompilerInput]) -> ScopeIndex:
    return ScopeCreator(arena, inputs).create()
