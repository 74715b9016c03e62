"""
JavaScript Code Printer

Renders arena trees back to JavaScript source: one statement per line,
two-space indentation, single-quoted strings and only the parentheses the
operator precedence requires.
"""

import logging
import re
from typing import Callable, Dict, List

from ..shared.errors import ChunkModImplementationError
from ..shared.nodes import NodeArena, NodeId, Prop, Token
from ..utils.config import INDENT, STRING_QUOTE_CHAR

logger = logging.getLogger(__name__)

# Operator precedence; higher binds tighter.
PREC_ASSIGN = 3
PREC_HOOK = 4
PREC_UNARY = 16
PREC_POSTFIX = 17
PREC_MEMBER = 19
PREC_PRIMARY = 21

_BINARY_PRECEDENCE: Dict[str, int] = {
    '||': 5,
    '&&': 6,
    '==': 10, '!=': 10, '===': 10, '!==': 10,
    '<': 11, '>': 11, '<=': 11, '>=': 11,
    '+': 13, '-': 13,
    '*': 14, '/': 14, '%': 14,
    '**': 15,
}

_IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')
_STATEMENT_AMBIGUOUS = re.compile(r'^(\{|function\b)')

_ESCAPES = {'\\': '\\\\', '\n': '\\n', '\r': '\\r', '\t': '\\t', STRING_QUOTE_CHAR: '\\' + STRING_QUOTE_CHAR}


def quote_string(value: str) -> str:
    out = []
    for ch in value:
        code = ord(ch)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif code < 0x20:
            out.append(f'\\x{code:02x}')
        elif 0xD800 <= code <= 0xDFFF or code in (0x2028, 0x2029):
            # lone surrogates cannot be encoded; line separators end a line
            out.append(f'\\u{code:04x}')
        else:
            out.append(ch)
    return STRING_QUOTE_CHAR + ''.join(out) + STRING_QUOTE_CHAR


class CodePrinter:
    """Prints statements and expressions of one NodeArena."""

    def __init__(self, arena: NodeArena):
        self.arena = arena
        self._depth = 0
        self._statement_printers: Dict[Token, Callable[[NodeId, int], List[str]]] = {
            Token.SCRIPT: self._print_body,
            Token.MODULE_BODY: self._print_body,
            Token.VAR: self._print_declaration,
            Token.LET: self._print_declaration,
            Token.CONST: self._print_declaration,
            Token.FUNCTION: self._print_function_statement,
            Token.BLOCK: self._print_block,
            Token.RETURN: self._print_return,
            Token.IF: self._print_if,
            Token.WHILE: self._print_while,
            Token.EXPR_RESULT: self._print_expr_result,
            Token.EMPTY: lambda nid, depth: [INDENT * depth + ';'],
            Token.IMPORT: self._print_import,
            Token.EXPORT: self._print_export,
        }

    def print(self, root: NodeId) -> str:
        lines = self.statement(root, 0)
        return '\n'.join(lines) + '\n' if lines else ''

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def statement(self, nid: NodeId, depth: int) -> List[str]:
        token = self.arena.token(nid)
        printer = self._statement_printers.get(token)
        if printer is None:
            raise ChunkModImplementationError(f"cannot print {token.name} as a statement")
        saved, self._depth = self._depth, depth
        try:
            return printer(nid, depth)
        finally:
            self._depth = saved

    def _print_body(self, nid: NodeId, depth: int) -> List[str]:
        lines: List[str] = []
        for child in self.arena.children(nid):
            lines.extend(self.statement(child, depth))
        return lines

    def _print_block(self, nid: NodeId, depth: int) -> List[str]:
        return self._braced(INDENT * depth, nid, depth)

    def _braced(self, head: str, block: NodeId, depth: int) -> List[str]:
        if self.arena.child_count(block) == 0:
            return [head + '{}']
        return [head + '{'] + self._print_body(block, depth + 1) + [INDENT * depth + '}']

    def _print_declaration(self, nid: NodeId, depth: int) -> List[str]:
        keyword = self.arena.token(nid).value
        declarators = []
        for name_node in self.arena.children(nid):
            text = self.arena.string(name_node)
            init = self.arena.first_child(name_node)
            if init is not None:
                text += ' = ' + self.expr(init, PREC_ASSIGN)
            declarators.append(text)
        return self._split(f"{INDENT * depth}{keyword} {', '.join(declarators)};")

    def _print_function_statement(self, nid: NodeId, depth: int) -> List[str]:
        return (INDENT * depth + self._function_text(nid, depth)).split('\n')

    def _print_return(self, nid: NodeId, depth: int) -> List[str]:
        value = self.arena.first_child(nid)
        if value is None:
            return [INDENT * depth + 'return;']
        return self._split(INDENT * depth + f"return {self.expr(value, 0)};")

    def _print_expr_result(self, nid: NodeId, depth: int) -> List[str]:
        text = self.expr(self.arena.first_child(nid), 0)
        if _STATEMENT_AMBIGUOUS.match(text):
            text = f"({text})"
        return self._split(INDENT * depth + text + ';')

    def _clause(self, head: str, body: NodeId, depth: int, force_block: bool = False) -> List[str]:
        ind = INDENT * depth
        if self.arena.token(body) is Token.BLOCK:
            return self._braced(f"{ind}{head} ", body, depth)
        if force_block:
            return [f"{ind}{head} {{"] + self.statement(body, depth + 1) + [ind + '}']
        return [ind + head] + self.statement(body, depth + 1)

    def _print_if(self, nid: NodeId, depth: int) -> List[str]:
        ind = INDENT * depth
        cond, then, *rest = self.arena.children(nid)
        head = f"if ({self.expr(cond, 0)})"
        force = bool(rest) and self._dangles(then)
        braced = force or self.arena.token(then) is Token.BLOCK
        lines = self._clause(head, then, depth, force_block=force)
        if not rest:
            return lines
        otherwise = rest[0]
        if self.arena.token(otherwise) is Token.IF:
            tail = self._print_if(otherwise, depth)
            tail[0] = 'else ' + tail[0].lstrip()
        else:
            tail = self._clause('else', otherwise, depth)
            tail[0] = tail[0].lstrip()
        if braced:
            lines[-1] = lines[-1] + ' ' + tail[0]
        else:
            lines.append(ind + tail[0])
        return lines + tail[1:]

    def _dangles(self, nid: NodeId) -> bool:
        """True if an `else` printed after nid would bind to an inner `if`."""
        token = self.arena.token(nid)
        if token is Token.IF:
            children = self.arena.children(nid)
            return len(children) == 2 or self._dangles(children[2])
        if token is Token.WHILE:
            return self._dangles(self.arena.children(nid)[1])
        return False

    def _print_while(self, nid: NodeId, depth: int) -> List[str]:
        cond, body = self.arena.children(nid)
        return self._clause(f"while ({self.expr(cond, 0)})", body, depth)

    def _print_import(self, nid: NodeId, depth: int) -> List[str]:
        _, specs, path = self.arena.children(nid)
        return [f"{INDENT * depth}import {self._specs(specs)} from {quote_string(self.arena.string(path))};"]

    def _print_export(self, nid: NodeId, depth: int) -> List[str]:
        child = self.arena.first_child(nid)
        if self.arena.token(child) is Token.EXPORT_SPECS:
            return [f"{INDENT * depth}export {self._specs(child)};"]
        lines = self.statement(child, depth)
        lines[0] = INDENT * depth + 'export ' + lines[0].lstrip()
        return lines

    def _specs(self, specs: NodeId) -> str:
        parts = []
        for spec in self.arena.children(specs):
            first, second = (self.arena.string(n) for n in self.arena.children(spec))
            parts.append(first if first == second else f"{first} as {second}")
        return '{' + ', '.join(parts) + '}'

    @staticmethod
    def _split(text: str) -> List[str]:
        return text.split('\n')

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def expr(self, nid: NodeId, min_prec: int) -> str:
        """Print nid, parenthesized when it binds looser than min_prec."""
        text = self._expr_text(nid)
        if self.precedence(nid) < min_prec:
            return f"({text})"
        return text

    def precedence(self, nid: NodeId) -> int:
        token = self.arena.token(nid)
        if token in (Token.ASSIGN, Token.ASSIGN_OP):
            return PREC_ASSIGN
        if token is Token.HOOK:
            return PREC_HOOK
        if token is Token.BINARY:
            return _BINARY_PRECEDENCE[self.arena.string(nid)]
        if token is Token.UNARY:
            return PREC_UNARY
        if token is Token.UPDATE:
            return PREC_UNARY if self.arena.get_prop(nid, Prop.PREFIX) else PREC_POSTFIX
        if token in (Token.CALL, Token.NEW, Token.GETPROP, Token.GETELEM):
            return PREC_MEMBER
        return PREC_PRIMARY

    def _expr_text(self, nid: NodeId) -> str:
        arena = self.arena
        token = arena.token(nid)
        children = arena.children(nid)

        if token is Token.NAME:
            return arena.string(nid)
        if token is Token.NUMBER:
            return arena.string(nid)
        if token is Token.STRING:
            return quote_string(arena.string(nid))
        if token in (Token.TRUE, Token.FALSE, Token.NULL, Token.THIS):
            return token.value

        if token is Token.ASSIGN:
            return f"{self.expr(children[0], PREC_MEMBER)} = {self.expr(children[1], PREC_ASSIGN)}"
        if token is Token.ASSIGN_OP:
            op = arena.string(nid)
            return f"{self.expr(children[0], PREC_MEMBER)} {op} {self.expr(children[1], PREC_ASSIGN)}"
        if token is Token.HOOK:
            cond, then, otherwise = children
            return (f"{self.expr(cond, PREC_HOOK + 1)} ? {self.expr(then, PREC_ASSIGN)}"
                    f" : {self.expr(otherwise, PREC_ASSIGN)}")
        if token is Token.BINARY:
            op = arena.string(nid)
            prec = _BINARY_PRECEDENCE[op]
            if op == '**':
                # right-associative; a unary operand on the left is a syntax error
                left, right = self.expr(children[0], PREC_POSTFIX), self.expr(children[1], prec)
            else:
                left, right = self.expr(children[0], prec), self.expr(children[1], prec + 1)
            return f"{left} {op} {right}"
        if token is Token.UNARY:
            op = arena.string(nid)
            operand = self.expr(children[0], PREC_UNARY)
            if op == 'typeof' or (op in '+-' and operand.startswith(op)):
                return f"{op} {operand}"
            return op + operand
        if token is Token.UPDATE:
            op = arena.string(nid)
            operand = self.expr(children[0], PREC_MEMBER)
            return op + operand if arena.get_prop(nid, Prop.PREFIX) else operand + op

        if token is Token.GETPROP:
            return f"{self._object(children[0])}.{arena.string(nid)}"
        if token is Token.GETELEM:
            return f"{self._object(children[0])}[{self.expr(children[1], 0)}]"
        if token is Token.CALL:
            callee = self.expr(children[0], PREC_MEMBER)
            if arena.token(children[0]) is Token.FUNCTION:
                callee = f"({callee})"
            return f"{callee}({self._args(children[1:])})"
        if token is Token.NEW:
            target = children[0]
            target_text = self.expr(target, PREC_MEMBER)
            if arena.token(target) is Token.CALL:
                target_text = f"({target_text})"
            return f"new {target_text}({self._args(children[1:])})"

        if token is Token.ARRAY_LIT:
            return f"[{self._args(children)}]"
        if token is Token.OBJECT_LIT:
            if not children:
                return '{}'
            props = []
            for key_node in children:
                key = arena.string(key_node)
                if not _IDENTIFIER.match(key):
                    key = quote_string(key)
                props.append(f"{key}: {self.expr(arena.first_child(key_node), PREC_ASSIGN)}")
            return '{' + ', '.join(props) + '}'
        if token is Token.FUNCTION:
            return self._function_text(nid, self._depth)

        raise ChunkModImplementationError(f"cannot print {token.name} as an expression")

    def _object(self, nid: NodeId) -> str:
        text = self.expr(nid, PREC_MEMBER)
        if self.arena.token(nid) in (Token.NUMBER, Token.FUNCTION):
            return f"({text})"
        return text

    def _args(self, nids: List[NodeId]) -> str:
        return ', '.join(self.expr(n, PREC_ASSIGN) for n in nids)

    def _function_text(self, nid: NodeId, depth: int) -> str:
        name_node, params, body = self.arena.children(nid)
        name = self.arena.string(name_node) or ''
        param_text = ', '.join(self.arena.string(p) for p in self.arena.children(params))
        head = f"function {name}({param_text}) " if name else f"function({param_text}) "
        lines = self._braced(head, body, depth)
        return '\n'.join(lines)


def print_tree(arena: NodeArena, root: NodeId) -> str:
    return CodePrinter(arena).print(root)


def print_expression(arena: NodeArena, nid: NodeId) -> str:
    return CodePrinter(arena).expr(nid, 0)
