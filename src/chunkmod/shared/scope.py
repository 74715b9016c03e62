"""
Scope resolution data types.

A Scope maps names to Bindings and chains to its parent. The global scope is
shared by every input of the program, so a top-level `var a` in one chunk is
visible (statically) from every other chunk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from typing_extensions import Protocol

from .nodes import NodeId

if TYPE_CHECKING:
    from ..analysis.chunk_graph import Chunk, CompilerInput


class ScopeKind(Enum):
    GLOBAL = "global"
    FUNCTION = "function"
    FUNCTION_NAME = "function_name"
    BLOCK = "block"


class BindingType(Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    PARAMETER = "parameter"


@dataclass(eq=False)
class Binding:
    """One declared name."""
    name: str
    binding_type: BindingType
    declaration: NodeId
    scope: Scope
    input: Optional[CompilerInput] = None

    @property
    def is_global(self) -> bool:
        return self.scope.kind is ScopeKind.GLOBAL

    @property
    def chunk(self) -> Optional[Chunk]:
        return self.input.chunk if self.input is not None else None

    def __repr__(self) -> str:
        origin = self.input.name if self.input is not None else "<none>"
        return f"Binding({self.name!r}, {self.binding_type.value}, {self.scope.kind.value}, {origin})"


@dataclass(eq=False)
class Scope:
    """One lexical scope. lookup() walks inner to outer."""

    parent: Optional[Scope]
    kind: ScopeKind
    _bindings: Dict[str, Binding] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope._bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def define(self, binding: Binding) -> Binding:
        """Declare binding; an existing declaration of the same name wins."""
        existing = self._bindings.get(binding.name)
        if existing is not None:
            return existing
        self._bindings[binding.name] = binding
        return binding

    def names(self) -> List[str]:
        return list(self._bindings)


@dataclass(frozen=True)
class GlobalReference:
    """Answer to a global-scope query for one NAME occurrence."""
    binding: Binding
    chunk: Chunk
    is_declaration: bool


class BindingResolver(Protocol):
    """
    Scope query consumed by the chunk conversion.

    Implementations answer per NAME occurrence; the classifier never touches
    symbol-table internals.
    """

    def resolve(self, name_node: NodeId) -> Optional[Binding]:
        ...

    def resolve_global(self, name_node: NodeId) -> Optional[GlobalReference]:
        ...
