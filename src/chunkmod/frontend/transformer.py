"""
Lark tree -> arena AST

Builds NodeArena nodes bottom-up while recording which language features the
script uses. The parser sets `arena` and `current_file` before each transform.
"""

import logging
import re
from typing import Any, List, Optional, Set, Union

from lark import Transformer, v_args
from lark.lexer import Token as LarkToken
from typing_extensions import TypeAlias

from ..shared.errors import ChunkModImplementationError
from ..shared.features import Feature, FeatureSet
from ..shared.nodes import NodeArena, NodeId, Prop, Token
from ..shared.source_location import SourceLocation

LarkMeta: TypeAlias = Any  # Lark's internal Meta object
Child: TypeAlias = Union[NodeId, LarkToken]

logger: logging.Logger = logging.getLogger(__name__)


_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '0': '\0', 'b': '\b', 'f': '\f', 'v': '\v'}

# The lexer only admits well-formed escapes, so every match here is decodable.
_ESCAPE = re.compile(
    r'\\(?:x([0-9a-fA-F]{2})|u\{([0-9a-fA-F]+)\}|u([0-9a-fA-F]{4})'
    r'|(\r\n|[\n\r\u2028\u2029])|(.))',
    re.DOTALL,
)


def _decode_escape(match: 're.Match[str]') -> str:
    hex_byte, code_point, code_unit, continuation, single = match.groups()
    if continuation is not None:
        return ''
    if single is not None:
        return _SIMPLE_ESCAPES.get(single, single)
    return chr(int(hex_byte or code_point or code_unit, 16))


def _unquote(literal: str) -> str:
    """Strip quotes and decode the escapes of a string literal."""
    body = literal[1:-1]
    if '\\' not in body:
        return body
    decoded = _ESCAPE.sub(_decode_escape, body)
    # \uD83D\uDE00 style pairs decode to two surrogates; join them into one code point
    return decoded.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')


@v_args(inline=True, meta=True)
class ChunkModTransformer(Transformer):
    """
    Lark Transformer producing arena nodes.

    Every rule method returns a NodeId except `arguments` (a list of NodeIds
    spliced into CALL/NEW) and `prop_def`.
    """

    def __init__(self) -> None:
        super().__init__()
        self.arena: Optional[NodeArena] = None
        self.current_file: str = ""  # Must be set by parser before use
        self.features: Set[Feature] = set()

    def reset(self, arena: NodeArena, source_file: str) -> None:
        self.arena = arena
        self.current_file = source_file
        self.features = set()

    def _extract_location(self, meta: LarkMeta) -> SourceLocation:
        if not self.current_file:
            raise ChunkModImplementationError(
                "Parser bug: current_file not set before transform"
            )
        if meta is None or getattr(meta, 'empty', True):
            return SourceLocation(file=self.current_file, line=0, column=0)
        return SourceLocation(
            file=self.current_file,
            line=meta.line,
            column=meta.column,
            start=meta.start_pos,
            end=meta.end_pos,
            end_line=meta.end_line,
            end_column=meta.end_column,
        )

    def _token_location(self, tok: LarkToken) -> SourceLocation:
        return SourceLocation(
            file=self.current_file,
            line=tok.line or 0,
            column=tok.column or 0,
            start=tok.start_pos or 0,
            end=tok.end_pos or 0,
            end_line=tok.end_line or 0,
            end_column=tok.end_column or 0,
        )

    def _new(self, token: Token, meta: LarkMeta, children=(), string: Optional[str] = None) -> NodeId:
        return self.arena.new(token, string, self._extract_location(meta), children)

    def _name(self, tok: LarkToken) -> NodeId:
        return self.arena.new_name(str(tok), self._token_location(tok))

    # =========================================================================
    # PROGRAM STRUCTURE
    # =========================================================================

    def program(self, meta: LarkMeta, *statements: NodeId) -> NodeId:
        script = self._new(Token.SCRIPT, meta, statements)
        self.arena.put_prop(script, Prop.FEATURE_SET, FeatureSet(self.features))
        self.arena.put_prop(script, Prop.INPUT_NAME, self.current_file)
        return script

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def var_decl(self, meta: LarkMeta, *declarators: NodeId) -> NodeId:
        return self._new(Token.VAR, meta, declarators)

    def let_decl(self, meta: LarkMeta, *declarators: NodeId) -> NodeId:
        self.features.add(Feature.LET_DECLARATIONS)
        return self._new(Token.LET, meta, declarators)

    def const_decl(self, meta: LarkMeta, *declarators: NodeId) -> NodeId:
        self.features.add(Feature.CONST_DECLARATIONS)
        return self._new(Token.CONST, meta, declarators)

    def declarator(self, meta: LarkMeta, name: LarkToken, init: Optional[NodeId] = None) -> NodeId:
        name_node = self._name(name)
        if init is not None:
            self.arena.add_child_to_back(name_node, init)
        return name_node

    def function_decl(self, meta: LarkMeta, name: LarkToken, *rest: NodeId) -> NodeId:
        return self._function(meta, self._name(name), rest)

    def function_expr(self, meta: LarkMeta, *children: Child) -> NodeId:
        if children and isinstance(children[0], str):
            name_node = self._name(children[0])
            rest = children[1:]
        else:
            name_node = self.arena.new_name('', self._extract_location(meta))
            rest = children
        return self._function(meta, name_node, rest)

    def _function(self, meta: LarkMeta, name_node: NodeId, rest) -> NodeId:
        # rest is (params, body) or (body,) when the parameter list is empty
        if len(rest) == 2:
            params, body = rest
        else:
            params = self._new(Token.PARAM_LIST, meta)
            body = rest[0]
        return self._new(Token.FUNCTION, meta, [name_node, params, body])

    def params(self, meta: LarkMeta, *names: LarkToken) -> NodeId:
        return self._new(Token.PARAM_LIST, meta, [self._name(n) for n in names])

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def return_stmt(self, meta: LarkMeta, value: Optional[NodeId] = None) -> NodeId:
        return self._new(Token.RETURN, meta, [] if value is None else [value])

    def if_stmt(self, meta: LarkMeta, cond: NodeId, then: NodeId, otherwise: Optional[NodeId] = None) -> NodeId:
        children = [cond, then] if otherwise is None else [cond, then, otherwise]
        return self._new(Token.IF, meta, children)

    def while_stmt(self, meta: LarkMeta, cond: NodeId, body: NodeId) -> NodeId:
        return self._new(Token.WHILE, meta, [cond, body])

    def block(self, meta: LarkMeta, *statements: NodeId) -> NodeId:
        return self._new(Token.BLOCK, meta, statements)

    def empty_stmt(self, meta: LarkMeta) -> NodeId:
        return self._new(Token.EMPTY, meta)

    def expr_stmt(self, meta: LarkMeta, expr: NodeId) -> NodeId:
        return self._new(Token.EXPR_RESULT, meta, [expr])

    # =========================================================================
    # MODULE SYNTAX
    # =========================================================================

    def import_decl(self, meta: LarkMeta, *children: Child) -> NodeId:
        self.features.add(Feature.MODULES)
        *specs, path = children
        return self._new(Token.IMPORT, meta, [
            self.arena.new_empty(self._extract_location(meta)),
            self._new(Token.IMPORT_SPECS, meta, specs),
            self.arena.new_string(_unquote(str(path)), self._token_location(path)),
        ])

    def import_spec(self, meta: LarkMeta, imported: LarkToken, local: Optional[LarkToken] = None) -> NodeId:
        return self._spec(Token.IMPORT_SPEC, meta, imported, local)

    def export_spec(self, meta: LarkMeta, local: LarkToken, exported: Optional[LarkToken] = None) -> NodeId:
        return self._spec(Token.EXPORT_SPEC, meta, local, exported)

    def _spec(self, token: Token, meta: LarkMeta, first: LarkToken, second: Optional[LarkToken]) -> NodeId:
        spec = self._new(token, meta, [self._name(first), self._name(second or first)])
        if second is None:
            self.arena.put_prop(spec, Prop.IS_SHORTHAND_PROPERTY, True)
        return spec

    def export_specs_decl(self, meta: LarkMeta, *specs: NodeId) -> NodeId:
        self.features.add(Feature.MODULES)
        return self._new(Token.EXPORT, meta, [self._new(Token.EXPORT_SPECS, meta, specs)])

    def export_declaration(self, meta: LarkMeta, declaration: NodeId) -> NodeId:
        self.features.add(Feature.MODULES)
        return self._new(Token.EXPORT, meta, [declaration])

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def assign(self, meta: LarkMeta, target: NodeId, value: NodeId) -> NodeId:
        return self._new(Token.ASSIGN, meta, [target, value])

    def assign_op(self, meta: LarkMeta, target: NodeId, op: LarkToken, value: NodeId) -> NodeId:
        if op == '**=':
            self.features.add(Feature.EXPONENT_OPERATOR)
        return self._new(Token.ASSIGN_OP, meta, [target, value], string=str(op))

    def postfix_update(self, meta: LarkMeta, operand: NodeId, op: LarkToken) -> NodeId:
        node = self._new(Token.UPDATE, meta, [operand], string=str(op))
        self.arena.put_prop(node, Prop.PREFIX, False)
        return node

    def prefix_update(self, meta: LarkMeta, op: LarkToken, operand: NodeId) -> NodeId:
        node = self._new(Token.UPDATE, meta, [operand], string=str(op))
        self.arena.put_prop(node, Prop.PREFIX, True)
        return node

    def hook(self, meta: LarkMeta, cond: NodeId, then: NodeId, otherwise: NodeId) -> NodeId:
        return self._new(Token.HOOK, meta, [cond, then, otherwise])

    def binary(self, meta: LarkMeta, left: NodeId, op: LarkToken, right: NodeId) -> NodeId:
        if op == '**':
            self.features.add(Feature.EXPONENT_OPERATOR)
        return self._new(Token.BINARY, meta, [left, right], string=str(op))

    def unary(self, meta: LarkMeta, op: LarkToken, operand: NodeId) -> NodeId:
        return self._new(Token.UNARY, meta, [operand], string=str(op))

    def getprop(self, meta: LarkMeta, obj: NodeId, prop: LarkToken) -> NodeId:
        return self._new(Token.GETPROP, meta, [obj], string=str(prop))

    def getelem(self, meta: LarkMeta, obj: NodeId, index: NodeId) -> NodeId:
        return self._new(Token.GETELEM, meta, [obj, index])

    def call(self, meta: LarkMeta, callee: NodeId, args: List[NodeId]) -> NodeId:
        return self._new(Token.CALL, meta, [callee, *args])

    def new_expr(self, meta: LarkMeta, target: NodeId, args: List[NodeId]) -> NodeId:
        return self._new(Token.NEW, meta, [target, *args])

    def arguments(self, meta: LarkMeta, *args: NodeId) -> List[NodeId]:
        return list(args)

    def array_lit(self, meta: LarkMeta, *elements: NodeId) -> NodeId:
        return self._new(Token.ARRAY_LIT, meta, elements)

    def object_lit(self, meta: LarkMeta, *props: NodeId) -> NodeId:
        return self._new(Token.OBJECT_LIT, meta, props)

    def prop_def(self, meta: LarkMeta, key: LarkToken, value: NodeId) -> NodeId:
        key_str = _unquote(str(key)) if key.type == 'STRING' else str(key)
        return self._new(Token.STRING_KEY, meta, [value], string=key_str)

    # =========================================================================
    # LITERALS
    # =========================================================================

    def name(self, meta: LarkMeta, tok: LarkToken) -> NodeId:
        return self._name(tok)

    def number(self, meta: LarkMeta, tok: LarkToken) -> NodeId:
        return self._new(Token.NUMBER, meta, string=str(tok))

    def string(self, meta: LarkMeta, tok: LarkToken) -> NodeId:
        return self._new(Token.STRING, meta, string=_unquote(str(tok)))

    def true(self, meta: LarkMeta) -> NodeId:
        return self._new(Token.TRUE, meta)

    def false(self, meta: LarkMeta) -> NodeId:
        return self._new(Token.FALSE, meta)

    def null(self, meta: LarkMeta) -> NodeId:
        return self._new(Token.NULL, meta)

    def this(self, meta: LarkMeta) -> NodeId:
        return self._new(Token.THIS, meta)
